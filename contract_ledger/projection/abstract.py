"""
Interface for the cached active-aggregate projection.

A projection is rebuilt wholesale from the contract store and swapped into
place in one step: readers see either the previous snapshot or the new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from contract_ledger.domain.aggregate import CachedActiveAggregate


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of one successful rebuild."""

    as_of: datetime
    clients: int
    contracts: int


@runtime_checkable
class ActiveAggregateProjection(Protocol):
    name: str

    @property
    def as_of(self) -> Optional[datetime]:
        """Instant the served snapshot was computed for; None before the first rebuild."""
        ...

    def rebuild(self, as_of: datetime) -> RefreshResult:
        """Recompute every client's aggregate as of ``as_of`` and publish it atomically."""
        ...

    def get(self, client_id: UUID) -> Optional[CachedActiveAggregate]:
        """Aggregate for the client from the current snapshot, None if it has no active contract."""
        ...


__all__ = ["ActiveAggregateProjection", "RefreshResult"]
