"""
Contract stores: the source-of-truth table behind every query.

Re-exports the abstract interface and the concrete stores so downstream code
can import from `contract_ledger.store` directly.
"""

from contract_ledger.store.abstract import AbstractContractStore, ContractStore
from contract_ledger.store.memory import InMemoryContractStore
from contract_ledger.store.postgres import PostgresClientLookup, PostgresContractStore

__all__ = [
    "AbstractContractStore",
    "ContractStore",
    "InMemoryContractStore",
    "PostgresClientLookup",
    "PostgresContractStore",
]
