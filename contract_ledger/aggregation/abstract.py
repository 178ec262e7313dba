"""
Abstract aggregator interfaces for active-contract queries.

Concrete aggregators (direct, cached) implement the ActiveContractAggregator
protocol. They trade consistency for read cost: ``direct`` always queries the
store live, ``cached`` serves the last projection snapshot, which may lag the
store by up to one refresh interval.
"""

from __future__ import annotations

import abc
from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable
from uuid import UUID

from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money


@runtime_checkable
class ActiveContractAggregator(Protocol):
    """
    Common interface all aggregators must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the approach.
    """

    name: str
    description: str

    def find_active(
        self, client_id: UUID, updated_since: Optional[datetime] = None
    ) -> List[Contract]:
        """
        Active contracts of the client, optionally only those modified at or
        after ``updated_since``.
        """
        ...

    def sum_active(self, client_id: UUID) -> Money:
        """Total cost of the client's active contracts; zero when there is none."""
        ...


class AbstractAggregator(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses should set `name` and `description` and implement both queries.
    """

    name: str
    description: str

    @abc.abstractmethod
    def find_active(
        self, client_id: UUID, updated_since: Optional[datetime] = None
    ) -> List[Contract]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def sum_active(self, client_id: UUID) -> Money:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = [
    "AbstractAggregator",
    "ActiveContractAggregator",
]
