"""
Process-local projection.

The new snapshot is built from a point-in-time read of the store without
holding any projection lock, then published with a single reference
assignment. Readers grab the reference once per call and work on that
immutable object.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from contract_ledger.domain.aggregate import AggregateSnapshot, CachedActiveAggregate
from contract_ledger.projection.abstract import RefreshResult
from contract_ledger.store.abstract import ContractStore


class InMemoryProjection:
    name: str = "memory"

    def __init__(self, store: ContractStore) -> None:
        self._store = store
        self._snapshot: Optional[AggregateSnapshot] = None

    @property
    def as_of(self) -> Optional[datetime]:
        snapshot = self._snapshot
        return snapshot.as_of if snapshot is not None else None

    @property
    def snapshot(self) -> Optional[AggregateSnapshot]:
        return self._snapshot

    def rebuild(self, as_of: datetime) -> RefreshResult:
        snapshot = self._store.snapshot_active(as_of)
        self._snapshot = snapshot
        return RefreshResult(
            as_of=as_of,
            clients=len(snapshot),
            contracts=sum(a.active_count for a in snapshot.aggregates.values()),
        )

    def get(self, client_id: UUID) -> Optional[CachedActiveAggregate]:
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.get(client_id)


__all__ = ["InMemoryProjection"]
