"""
Abstract store interface for contracts.

Concrete stores (in-memory, PostgreSQL) implement the ContractStore protocol.
The store is the source of truth; every mutating operation is atomic at the
level of the contracts it touches, and ``close_all_active`` is all-or-nothing
for a client's whole active set.
"""

from __future__ import annotations

import abc
from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable
from uuid import UUID

from contract_ledger.domain.aggregate import AggregateSnapshot
from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money


@runtime_checkable
class ContractStore(Protocol):
    """
    Common interface all contract stores must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    """

    name: str

    def save(self, contract: Contract) -> Contract:
        """
        Insert or update a contract.

        Assigns an id on first save. On an existing row, client_id and start_date
        are kept, last_modified never moves backwards and end_date only moves
        earlier: a stale copy can never reopen a contract closed meanwhile. Use
        ``update_cost`` and ``close`` for single-field changes.

        Returns a detached copy of the stored row; later changes to either object
        do not affect the other.
        """
        ...

    def find_by_id(self, contract_id: UUID) -> Optional[Contract]:
        ...

    def update_cost(self, contract_id: UUID, cost: Money, now: datetime) -> Optional[Contract]:
        """
        Replace the cost of the stored row in one atomic write.

        ``last_modified`` becomes ``max(last_modified, now)``; the period is left
        untouched. Returns the updated contract, or None if the id is unknown.
        """
        ...

    def close(self, contract_id: UUID, now: datetime) -> Optional[Contract]:
        """
        Set ``end_date`` of the stored row to ``now`` in one atomic write.

        Returns the updated contract, or None if the id is unknown.
        """
        ...

    def find_active(
        self,
        client_id: UUID,
        as_of: datetime,
        updated_since: Optional[datetime] = None,
    ) -> List[Contract]:
        """
        Contracts of ``client_id`` active at ``as_of``.

        With ``updated_since``, only those whose ``last_modified >= updated_since``.
        Ordered by (start_date, id).
        """
        ...

    def sum_active(self, client_id: UUID, as_of: datetime) -> Money:
        """Total cost of the active set; zero when there is none."""
        ...

    def close_all_active(self, client_id: UUID, as_of: datetime) -> int:
        """
        End every contract of the client active at ``as_of`` at ``as_of``.

        Applied as a single atomic write. Returns the number of contracts closed.
        """
        ...

    def snapshot_active(self, as_of: datetime) -> AggregateSnapshot:
        """Point-in-time read of every client's active set at ``as_of``."""
        ...


class AbstractContractStore(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses should set `name` and implement every operation.
    """

    name: str

    @abc.abstractmethod
    def save(self, contract: Contract) -> Contract:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def find_by_id(self, contract_id: UUID) -> Optional[Contract]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def update_cost(
        self, contract_id: UUID, cost: Money, now: datetime
    ) -> Optional[Contract]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def close(self, contract_id: UUID, now: datetime) -> Optional[Contract]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def find_active(
        self,
        client_id: UUID,
        as_of: datetime,
        updated_since: Optional[datetime] = None,
    ) -> List[Contract]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def sum_active(self, client_id: UUID, as_of: datetime) -> Money:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def close_all_active(self, client_id: UUID, as_of: datetime) -> int:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def snapshot_active(self, as_of: datetime) -> AggregateSnapshot:  # pragma: no cover
        raise NotImplementedError


__all__ = [
    "AbstractContractStore",
    "ContractStore",
]
