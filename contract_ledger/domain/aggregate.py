"""
Precomputed active-set aggregates served by the cached read strategy.

A snapshot is built in one go from a point-in-time read of the contract table
and never modified afterwards; refreshing means building a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple
from uuid import UUID

from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money


@dataclass(frozen=True)
class CachedActiveAggregate:
    """Active contracts and their total cost for one client, as of ``as_of``."""

    client_id: UUID
    total: Money
    contracts: Tuple[Contract, ...]
    as_of: datetime

    @property
    def active_count(self) -> int:
        return len(self.contracts)


@dataclass(frozen=True)
class AggregateSnapshot:
    as_of: datetime
    aggregates: Mapping[UUID, CachedActiveAggregate] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(cls, as_of: datetime, active_contracts: Iterable[Contract]) -> "AggregateSnapshot":
        """
        Group contracts already known to be active at ``as_of`` by client.

        Input order is preserved within each client.
        """
        grouped: dict[UUID, list[Contract]] = {}
        for contract in active_contracts:
            grouped.setdefault(contract.client_id, []).append(contract)
        aggregates = {
            client_id: CachedActiveAggregate(
                client_id=client_id,
                total=sum((c.cost_amount for c in contracts), Money.zero()),
                contracts=tuple(contracts),
                as_of=as_of,
            )
            for client_id, contracts in grouped.items()
        }
        return cls(as_of=as_of, aggregates=MappingProxyType(aggregates))

    def get(self, client_id: UUID) -> Optional[CachedActiveAggregate]:
        return self.aggregates.get(client_id)

    def __len__(self) -> int:
        return len(self.aggregates)


__all__ = ["AggregateSnapshot", "CachedActiveAggregate"]
