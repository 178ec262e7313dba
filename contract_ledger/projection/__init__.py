"""
Cached active-aggregate projections (the materialized view behind the cached
read strategy).
"""

from contract_ledger.projection.abstract import ActiveAggregateProjection, RefreshResult
from contract_ledger.projection.memory import InMemoryProjection
from contract_ledger.projection.postgres import PostgresProjection

__all__ = [
    "ActiveAggregateProjection",
    "InMemoryProjection",
    "PostgresProjection",
    "RefreshResult",
]
