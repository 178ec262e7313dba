"""
Direct (strongly consistent) aggregator: every query hits the store at the
current instant.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from contract_ledger.aggregation.abstract import AbstractAggregator
from contract_ledger.domain.clock import DEFAULT_CLOCK, Clock
from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money
from contract_ledger.store.abstract import ContractStore


class DirectAggregator(AbstractAggregator):
    """
    Live queries against the contract store.

    Read cost grows with the client's contract volume.
    """

    name: str = "direct"
    description: str = "Live store query at the current instant (strongly consistent)."

    def __init__(self, store: ContractStore, clock: Clock = DEFAULT_CLOCK) -> None:
        self._store = store
        self._clock = clock

    def find_active(
        self, client_id: UUID, updated_since: Optional[datetime] = None
    ) -> List[Contract]:
        return self._store.find_active(client_id, self._clock.now(), updated_since)

    def sum_active(self, client_id: UUID) -> Money:
        return self._store.sum_active(client_id, self._clock.now())


__all__ = ["DirectAggregator"]
