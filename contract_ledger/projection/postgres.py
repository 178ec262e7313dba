"""
PostgreSQL projection backed by the ``active_contract_sums`` and
``active_contracts_snapshot`` tables.

A rebuild replaces both tables inside one REPEATABLE READ transaction. Under
MVCC, readers keep seeing the previous rows until the commit, and the scan of
``public.contracts`` takes no row locks, so writers are never blocked.
Reads also use REPEATABLE READ so the sum row and the contract rows of one
call come from the same committed rebuild.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from contract_ledger.config import get_settings
from contract_ledger.domain.aggregate import CachedActiveAggregate
from contract_ledger.domain.money import Money
from contract_ledger.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from contract_ledger.projection.abstract import RefreshResult
from contract_ledger.store.postgres import row_to_contract

_REBUILD_STATEMENTS = (
    "DELETE FROM public.active_contracts_snapshot",
    """
    INSERT INTO public.active_contracts_snapshot
        (id, client_id, start_date, end_date, cost_amount, last_modified, as_of)
    SELECT id, client_id, start_date, end_date, cost_amount, last_modified, %(as_of)s
    FROM public.contracts
    WHERE end_date IS NULL OR end_date > %(as_of)s
    """,
    "DELETE FROM public.active_contract_sums",
    """
    INSERT INTO public.active_contract_sums (client_id, total, active_count, as_of)
    SELECT client_id, SUM(cost_amount), COUNT(*), %(as_of)s
    FROM public.active_contracts_snapshot
    GROUP BY client_id
    """,
    """
    INSERT INTO public.projection_refreshes (id, as_of) VALUES (TRUE, %(as_of)s)
    ON CONFLICT (id) DO UPDATE SET as_of = EXCLUDED.as_of
    """,
)


class PostgresProjection:
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

    @property
    def as_of(self) -> Optional[datetime]:
        with self._get_pool().connection() as conn:
            row = conn.execute("SELECT as_of FROM public.projection_refreshes").fetchone()
        return row[0] if row else None

    def rebuild(self, as_of: datetime) -> RefreshResult:
        with self._get_pool().connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
                apply_statement_timeout(cur, self._timeout_ms)
                for statement in _REBUILD_STATEMENTS:
                    cur.execute(statement, {"as_of": as_of})
                cur.execute(
                    "SELECT COUNT(*), COALESCE(SUM(active_count), 0) "
                    "FROM public.active_contract_sums"
                )
                clients, contracts = cur.fetchone()
        return RefreshResult(as_of=as_of, clients=int(clients), contracts=int(contracts))

    def get(self, client_id: UUID) -> Optional[CachedActiveAggregate]:
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
                cur.execute(
                    "SELECT total, as_of FROM public.active_contract_sums "
                    "WHERE client_id = %(client_id)s",
                    {"client_id": client_id},
                )
                summary = cur.fetchone()
                if summary is None:
                    return None
                cur.execute(
                    """
                    SELECT id, client_id, start_date, end_date, cost_amount, last_modified
                    FROM public.active_contracts_snapshot
                    WHERE client_id = %(client_id)s
                    ORDER BY start_date, id
                    """,
                    {"client_id": client_id},
                )
                rows = cur.fetchall()
        return CachedActiveAggregate(
            client_id=client_id,
            total=Money.of(summary["total"]),
            contracts=tuple(row_to_contract(row) for row in rows),
            as_of=summary["as_of"],
        )


__all__ = ["PostgresProjection"]
