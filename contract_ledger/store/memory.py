"""
In-memory contract store.

The table is a dict of contract copies guarded by one lock. Every operation,
reads included, holds the lock for its whole duration, so a reader sees either
none or all of a bulk close, and a snapshot reflects a single instant.
Objects never leave the store without being copied.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from contract_ledger.domain.aggregate import AggregateSnapshot
from contract_ledger.domain.contract import Contract, is_active
from contract_ledger.domain.money import Money
from contract_ledger.store.abstract import AbstractContractStore
from contract_ledger.utils.logging import get_logger

log = get_logger(__name__)


def _sort_key(contract: Contract) -> tuple:
    return (contract.start_date, str(contract.id))


def _earliest_end(stored: Optional[datetime], incoming: Optional[datetime]) -> Optional[datetime]:
    # NULL-ignoring LEAST, same as the PostgreSQL upsert.
    ends = [end for end in (stored, incoming) if end is not None]
    return min(ends) if ends else None


class InMemoryContractStore(AbstractContractStore):
    name: str = "memory"

    def __init__(self) -> None:
        self._rows: Dict[UUID, Contract] = {}
        self._lock = threading.Lock()

    def save(self, contract: Contract) -> Contract:
        with self._lock:
            contract_id = contract.id or uuid.uuid4()
            previous = self._rows.get(contract_id)
            row = replace(contract, id=contract_id)
            if previous is not None:
                # start_date and client_id are fixed at creation; a stale copy cannot reopen.
                row = replace(
                    row,
                    client_id=previous.client_id,
                    start_date=previous.start_date,
                    end_date=_earliest_end(previous.end_date, row.end_date),
                    last_modified=max(previous.last_modified, row.last_modified),
                )
            self._rows[contract_id] = row
            contract.id = contract_id
            return replace(row)

    def find_by_id(self, contract_id: UUID) -> Optional[Contract]:
        with self._lock:
            row = self._rows.get(contract_id)
            return replace(row) if row is not None else None

    def update_cost(self, contract_id: UUID, cost: Money, now: datetime) -> Optional[Contract]:
        with self._lock:
            row = self._rows.get(contract_id)
            if row is None:
                return None
            row = replace(row, cost_amount=cost, last_modified=max(row.last_modified, now))
            self._rows[contract_id] = row
            return replace(row)

    def close(self, contract_id: UUID, now: datetime) -> Optional[Contract]:
        with self._lock:
            row = self._rows.get(contract_id)
            if row is None:
                return None
            row = replace(row, end_date=now, last_modified=max(row.last_modified, now))
            self._rows[contract_id] = row
            return replace(row)

    def _active_rows(self, client_id: UUID, as_of: datetime) -> List[Contract]:
        return [
            row
            for row in self._rows.values()
            if row.client_id == client_id and is_active(row.end_date, as_of)
        ]

    def find_active(
        self,
        client_id: UUID,
        as_of: datetime,
        updated_since: Optional[datetime] = None,
    ) -> List[Contract]:
        with self._lock:
            rows = self._active_rows(client_id, as_of)
            if updated_since is not None:
                rows = [row for row in rows if row.last_modified >= updated_since]
            return [replace(row) for row in sorted(rows, key=_sort_key)]

    def sum_active(self, client_id: UUID, as_of: datetime) -> Money:
        with self._lock:
            rows = self._active_rows(client_id, as_of)
        return sum((row.cost_amount for row in rows), Money.zero())

    def close_all_active(self, client_id: UUID, as_of: datetime) -> int:
        with self._lock:
            rows = self._active_rows(client_id, as_of)
            for row in rows:
                self._rows[row.id] = replace(
                    row,
                    end_date=as_of,
                    last_modified=max(row.last_modified, as_of),
                )
        log.info(
            "Closed active contracts",
            extra={"client_id": str(client_id), "closed": len(rows), "as_of": as_of.isoformat()},
        )
        return len(rows)

    def snapshot_active(self, as_of: datetime) -> AggregateSnapshot:
        with self._lock:
            active = [
                replace(row) for row in self._rows.values() if is_active(row.end_date, as_of)
            ]
        return AggregateSnapshot.build(as_of, sorted(active, key=_sort_key))

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


__all__ = ["InMemoryContractStore"]
