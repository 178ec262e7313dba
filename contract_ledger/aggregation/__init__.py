"""
Aggregators package for the contract ledger.

Re-exports the abstract interfaces and the concrete aggregators, and keeps the
registry used to pick one per deployment (``AGGREGATION_STRATEGY``).
"""

from __future__ import annotations

from datetime import timedelta
from typing import Callable, Dict, List, Optional

from contract_ledger.aggregation.abstract import AbstractAggregator, ActiveContractAggregator
from contract_ledger.aggregation.cached import CachedAggregator
from contract_ledger.aggregation.direct import DirectAggregator
from contract_ledger.domain.clock import DEFAULT_CLOCK, Clock
from contract_ledger.projection.abstract import ActiveAggregateProjection
from contract_ledger.store.abstract import ContractStore


def _aggregator_factories(
    store: ContractStore,
    projection: Optional[ActiveAggregateProjection],
    clock: Clock,
    staleness_bound: timedelta,
) -> Dict[str, Callable[[], ActiveContractAggregator]]:
    """Registry of available aggregators."""

    def cached() -> ActiveContractAggregator:
        if projection is None:
            raise ValueError("The 'cached' aggregator needs a projection")
        return CachedAggregator(projection, staleness_bound=staleness_bound)

    return {
        "direct": lambda: DirectAggregator(store, clock=clock),
        "cached": cached,
    }


def available_aggregators() -> List[str]:
    """List available aggregator names."""
    return ["cached", "direct"]


def build_aggregator(
    name: str,
    store: ContractStore,
    projection: Optional[ActiveAggregateProjection] = None,
    clock: Clock = DEFAULT_CLOCK,
    staleness_bound: timedelta = timedelta(minutes=5),
) -> ActiveContractAggregator:
    factories = _aggregator_factories(store, projection, clock, staleness_bound)
    if name not in factories:
        raise ValueError(f"Unknown aggregator '{name}'. Available: {', '.join(sorted(factories))}")
    return factories[name]()


__all__ = [
    # Abstracts
    "AbstractAggregator",
    "ActiveContractAggregator",
    # Concrete aggregators
    "CachedAggregator",
    "DirectAggregator",
    # Registry
    "available_aggregators",
    "build_aggregator",
]
