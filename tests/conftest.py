"""
Pytest configuration for the contract ledger.

Provides fixtures for:
- Deterministic time (ManualClock) and in-memory components for unit tests
- Database connection management and schema setup for integration tests
- Settings override for integration tests
"""

from __future__ import annotations

import os
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Generator
from uuid import UUID

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from contract_ledger.aggregation import CachedAggregator, DirectAggregator
from contract_ledger.config import Settings
from contract_ledger.domain.clients import Company, InMemoryClientDirectory, Person
from contract_ledger.domain.clock import ManualClock
from contract_ledger.projection.memory import InMemoryProjection
from contract_ledger.service import ContractService
from contract_ledger.store.memory import InMemoryContractStore

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def store() -> InMemoryContractStore:
    return InMemoryContractStore()


@pytest.fixture
def directory() -> InMemoryClientDirectory:
    return InMemoryClientDirectory()


@pytest.fixture
def client_id(directory: InMemoryClientDirectory) -> UUID:
    return directory.register(
        Person(
            name="Ada Lovelace",
            email="ada@example.com",
            phone="+41790000001",
            birth_date=date(1990, 12, 10),
        )
    )


@pytest.fixture
def other_client_id(directory: InMemoryClientDirectory) -> UUID:
    return directory.register(
        Company(
            name="Analytical Engines SA",
            email="contact@engines.example",
            phone="+41220000002",
            company_identifier="CHE-123.456.789",
        )
    )


@pytest.fixture
def projection(store: InMemoryContractStore) -> InMemoryProjection:
    return InMemoryProjection(store)


@pytest.fixture
def direct(store: InMemoryContractStore, clock: ManualClock) -> DirectAggregator:
    return DirectAggregator(store, clock=clock)


@pytest.fixture
def cached(projection: InMemoryProjection) -> CachedAggregator:
    return CachedAggregator(projection)


@pytest.fixture
def service(
    store: InMemoryContractStore,
    direct: DirectAggregator,
    directory: InMemoryClientDirectory,
    clock: ManualClock,
) -> ContractService:
    return ContractService(
        store, direct, directory, clock=clock, default_page_size=2, max_page_size=10
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "contract_ledger"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the database schema is initialized from db/init.sql.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty every table before and after each test function.
    """
    statement = (
        "TRUNCATE TABLE public.active_contracts_snapshot, public.active_contract_sums, "
        "public.projection_refreshes, public.contracts, public.clients CASCADE;"
    )
    with db_connection.cursor() as cur:
        cur.execute(statement)
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute(statement)
    db_connection.commit()


@pytest.fixture(scope="function")
def pg_pool(test_dsn: str, clean_tables) -> Generator[ConnectionPool, None, None]:
    pool = ConnectionPool(conninfo=test_dsn, min_size=1, max_size=4, open=True)
    try:
        yield pool
    finally:
        pool.close()
