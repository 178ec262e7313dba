"""
Cached aggregator: serves the projection's last snapshot.

Reads cost the same regardless of contract volume, at the price of bounded
staleness: a snapshot may be up to one refresh interval old, so right after a
mutation it can disagree with the direct aggregator. Right after a refresh
with no intervening mutation, both agree.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from contract_ledger.aggregation.abstract import AbstractAggregator
from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money
from contract_ledger.projection.abstract import ActiveAggregateProjection


class CachedAggregator(AbstractAggregator):
    name: str = "cached"
    description: str = "Periodically refreshed projection (bounded staleness, O(1) reads)."

    def __init__(
        self,
        projection: ActiveAggregateProjection,
        staleness_bound: timedelta = timedelta(minutes=5),
    ) -> None:
        self._projection = projection
        self.staleness_bound = staleness_bound

    @property
    def as_of(self) -> Optional[datetime]:
        """Instant the served data reflects; None until the first refresh."""
        return self._projection.as_of

    def is_stale(self, now: datetime) -> bool:
        """
        True when nothing has been served yet or the snapshot is older than
        ``staleness_bound``, e.g. because refresh cycles keep failing.
        """
        as_of = self.as_of
        return as_of is None or now - as_of > self.staleness_bound

    def find_active(
        self, client_id: UUID, updated_since: Optional[datetime] = None
    ) -> List[Contract]:
        aggregate = self._projection.get(client_id)
        if aggregate is None:
            return []
        return [
            replace(contract)
            for contract in aggregate.contracts
            if updated_since is None or contract.last_modified >= updated_since
        ]

    def sum_active(self, client_id: UUID) -> Money:
        aggregate = self._projection.get(client_id)
        return aggregate.total if aggregate is not None else Money.zero()


__all__ = ["CachedAggregator"]
