"""
PostgreSQL-backed contract store.

Each operation runs in one transaction on a pooled psycopg connection. Writes
are single statements: ``save`` is an upsert and ``close_all_active`` is one
UPDATE, so concurrent readers never see a partially applied change.
Schema lives in ``db/init.sql``.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional
from uuid import UUID

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from contract_ledger.config import get_settings
from contract_ledger.domain.aggregate import AggregateSnapshot
from contract_ledger.domain.clients import Client, Company, Person
from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money
from contract_ledger.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from contract_ledger.store.abstract import AbstractContractStore
from contract_ledger.utils.logging import get_logger

log = get_logger(__name__)

_COLUMNS = "id, client_id, start_date, end_date, cost_amount, last_modified"

_ACTIVE = "(end_date IS NULL OR end_date > %(as_of)s)"


def row_to_contract(row: Dict[str, Any]) -> Contract:
    return Contract(
        id=row["id"],
        client_id=row["client_id"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        cost_amount=Money.of(row["cost_amount"]),
        last_modified=row["last_modified"],
    )


class PostgresContractStore(AbstractContractStore):
    """
    Contract store over the ``public.contracts`` table.

    Parameters
    ----------
    pool : ConnectionPool | None
        Pool to borrow connections from. Defaults to the process-wide pool.
    statement_timeout_ms : int | None
        Per-statement limit. Defaults to settings.
    """

    name: str = "postgres"

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._pool = pool
        self._timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else get_settings().db_statement_timeout_ms
        )

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    @contextmanager
    def _cursor(self, isolation: Optional[str] = None) -> Generator[psycopg.Cursor, None, None]:
        # The pool commits on clean exit and rolls back on error.
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                if isolation:
                    cur.execute(f"SET TRANSACTION ISOLATION LEVEL {isolation}")
                apply_statement_timeout(cur, self._timeout_ms)
                yield cur

    def save(self, contract: Contract) -> Contract:
        contract_id = contract.id or uuid.uuid4()
        with self._cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO public.contracts ({_COLUMNS})
                VALUES (%(id)s, %(client_id)s, %(start_date)s, %(end_date)s,
                        %(cost_amount)s, %(last_modified)s)
                ON CONFLICT (id) DO UPDATE SET
                    end_date = LEAST(public.contracts.end_date, EXCLUDED.end_date),
                    cost_amount = EXCLUDED.cost_amount,
                    last_modified = GREATEST(public.contracts.last_modified,
                                             EXCLUDED.last_modified)
                RETURNING {_COLUMNS}
                """,
                {
                    "id": contract_id,
                    "client_id": contract.client_id,
                    "start_date": contract.start_date,
                    "end_date": contract.end_date,
                    "cost_amount": contract.cost_amount.amount,
                    "last_modified": contract.last_modified,
                },
            )
            row = cur.fetchone()
        contract.id = contract_id
        return row_to_contract(row)

    def find_by_id(self, contract_id: UUID) -> Optional[Contract]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM public.contracts WHERE id = %(id)s",
                {"id": contract_id},
            )
            row = cur.fetchone()
        return row_to_contract(row) if row else None

    def update_cost(self, contract_id: UUID, cost: Money, now: datetime) -> Optional[Contract]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                UPDATE public.contracts
                SET cost_amount = %(cost)s,
                    last_modified = GREATEST(last_modified, %(now)s)
                WHERE id = %(id)s
                RETURNING {_COLUMNS}
                """,
                {"id": contract_id, "cost": cost.amount, "now": now},
            )
            row = cur.fetchone()
        return row_to_contract(row) if row else None

    def close(self, contract_id: UUID, now: datetime) -> Optional[Contract]:
        with self._cursor() as cur:
            cur.execute(
                f"""
                UPDATE public.contracts
                SET end_date = %(now)s,
                    last_modified = GREATEST(last_modified, %(now)s)
                WHERE id = %(id)s
                RETURNING {_COLUMNS}
                """,
                {"id": contract_id, "now": now},
            )
            row = cur.fetchone()
        return row_to_contract(row) if row else None

    def find_active(
        self,
        client_id: UUID,
        as_of: datetime,
        updated_since: Optional[datetime] = None,
    ) -> List[Contract]:
        sql = f"SELECT {_COLUMNS} FROM public.contracts WHERE client_id = %(client_id)s AND {_ACTIVE}"
        params: Dict[str, Any] = {"client_id": client_id, "as_of": as_of}
        if updated_since is not None:
            sql += " AND last_modified >= %(updated_since)s"
            params["updated_since"] = updated_since
        sql += " ORDER BY start_date, id"
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [row_to_contract(row) for row in rows]

    def sum_active(self, client_id: UUID, as_of: datetime) -> Money:
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT COALESCE(SUM(cost_amount), 0) AS total
                FROM public.contracts
                WHERE client_id = %(client_id)s AND {_ACTIVE}
                """,
                {"client_id": client_id, "as_of": as_of},
            )
            row = cur.fetchone()
        return Money.of(row["total"])

    def close_all_active(self, client_id: UUID, as_of: datetime) -> int:
        with self._cursor() as cur:
            cur.execute(
                f"""
                UPDATE public.contracts
                SET end_date = %(as_of)s,
                    last_modified = GREATEST(last_modified, %(as_of)s)
                WHERE client_id = %(client_id)s AND {_ACTIVE}
                """,
                {"client_id": client_id, "as_of": as_of},
            )
            closed = cur.rowcount
        log.info(
            "Closed active contracts",
            extra={"client_id": str(client_id), "closed": closed, "as_of": as_of.isoformat()},
        )
        return closed

    def snapshot_active(self, as_of: datetime) -> AggregateSnapshot:
        with self._cursor(isolation="REPEATABLE READ") as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM public.contracts WHERE {_ACTIVE} "
                "ORDER BY start_date, id",
                {"as_of": as_of},
            )
            rows = cur.fetchall()
        return AggregateSnapshot.build(as_of, (row_to_contract(row) for row in rows))


class PostgresClientLookup:
    """ClientLookup over the ``public.clients`` table."""

    def __init__(self, pool: Optional[ConnectionPool] = None) -> None:
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    def exists(self, client_id: UUID) -> bool:
        with self._get_pool().connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM public.clients WHERE id = %s", (client_id,)
            ).fetchone()
        return row is not None

    def register(self, client: Client) -> UUID:
        client_id = client.id or uuid.uuid4()
        birth_date = client.birth_date if isinstance(client, Person) else None
        identifier = client.company_identifier if isinstance(client, Company) else None
        with self._get_pool().connection() as conn:
            conn.execute(
                """
                INSERT INTO public.clients
                    (id, kind, name, email, phone, birth_date, company_identifier)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    client_id,
                    client.kind,
                    client.name,
                    client.email,
                    client.phone,
                    birth_date,
                    identifier,
                ),
            )
        return client_id


__all__ = ["PostgresClientLookup", "PostgresContractStore", "row_to_contract"]
