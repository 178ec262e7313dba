"""
Domain package for the contract ledger.

Exports the core domain models: money, the contract entity and its lifecycle,
the error taxonomy, clocks and the client lookup interface.
Keep this package free of I/O.
"""

from contract_ledger.domain.aggregate import AggregateSnapshot, CachedActiveAggregate
from contract_ledger.domain.clients import (
    Client,
    ClientLookup,
    Company,
    InMemoryClientDirectory,
    Person,
)
from contract_ledger.domain.clock import Clock, ManualClock, SystemClock
from contract_ledger.domain.contract import Contract, is_active
from contract_ledger.domain.errors import (
    ClientNotFound,
    ContractLedgerError,
    ContractNotFound,
    ContractNotOwnedByClient,
    InvalidCost,
    InvalidPeriod,
    RefreshFailure,
)
from contract_ledger.domain.money import Money

__all__ = [
    "AggregateSnapshot",
    "CachedActiveAggregate",
    "Client",
    "ClientLookup",
    "ClientNotFound",
    "Clock",
    "Company",
    "Contract",
    "ContractLedgerError",
    "ContractNotFound",
    "ContractNotOwnedByClient",
    "InMemoryClientDirectory",
    "InvalidCost",
    "InvalidPeriod",
    "ManualClock",
    "Money",
    "Person",
    "RefreshFailure",
    "SystemClock",
    "is_active",
]
