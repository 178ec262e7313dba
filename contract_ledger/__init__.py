"""
Contract Ledger - contract lifecycle and active-state aggregation engine.

Tracks time-bounded, single-currency contracts owned by clients and answers
two questions cheaply:

- which contracts are currently active for a client
- what the total active cost for a client is

Reads can be served live from the contract store (``direct``) or from a
periodically refreshed projection (``cached``) whose staleness is bounded by
the refresh interval.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from contract_ledger.aggregation import (
    ActiveContractAggregator,
    CachedAggregator,
    DirectAggregator,
    available_aggregators,
    build_aggregator,
)
from contract_ledger.config import Settings, get_settings
from contract_ledger.domain import (
    ClientNotFound,
    Contract,
    ContractNotFound,
    ContractNotOwnedByClient,
    InvalidCost,
    InvalidPeriod,
    Money,
    RefreshFailure,
)
from contract_ledger.projection import InMemoryProjection, PostgresProjection
from contract_ledger.scheduler import ViewRefreshScheduler
from contract_ledger.service import ContractPage, ContractService
from contract_ledger.store import InMemoryContractStore, PostgresContractStore
from contract_ledger.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Contract",
    "Money",
    "ClientNotFound",
    "ContractNotFound",
    "ContractNotOwnedByClient",
    "InvalidCost",
    "InvalidPeriod",
    "RefreshFailure",
    # Stores and projections
    "InMemoryContractStore",
    "PostgresContractStore",
    "InMemoryProjection",
    "PostgresProjection",
    # Aggregation
    "ActiveContractAggregator",
    "CachedAggregator",
    "DirectAggregator",
    "available_aggregators",
    "build_aggregator",
    # Refresh and service
    "ViewRefreshScheduler",
    "ContractPage",
    "ContractService",
    # Logging
    "configure_logging",
    "get_logger",
]
