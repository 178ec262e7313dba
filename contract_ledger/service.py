"""
Caller-facing contract operations.

This is the seam an application or web layer talks to. Writes go to the
store through the contract's lifecycle methods; reads go through the
configured aggregator, which may serve slightly stale data when it is the
cached one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from contract_ledger.aggregation.abstract import ActiveContractAggregator
from contract_ledger.config import get_settings
from contract_ledger.domain.clients import ClientLookup
from contract_ledger.domain.clock import DEFAULT_CLOCK, Clock
from contract_ledger.domain.contract import Contract
from contract_ledger.domain.errors import ClientNotFound, ContractNotFound, ContractNotOwnedByClient
from contract_ledger.domain.money import Money, MoneyLike
from contract_ledger.store.abstract import ContractStore
from contract_ledger.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ContractPage:
    items: List[Contract]
    page: int
    size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return (self.total_items + self.size - 1) // self.size

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


class ContractService:
    def __init__(
        self,
        store: ContractStore,
        aggregator: ActiveContractAggregator,
        clients: ClientLookup,
        clock: Clock = DEFAULT_CLOCK,
        default_page_size: Optional[int] = None,
        max_page_size: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._store = store
        self._aggregator = aggregator
        self._clients = clients
        self._clock = clock
        self.default_page_size = default_page_size or settings.default_page_size
        self.max_page_size = max_page_size or settings.max_page_size

    def create_contract(
        self,
        client_id: UUID,
        cost: MoneyLike,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> UUID:
        """
        Create and persist a contract, returning its id.

        Raises ClientNotFound, InvalidPeriod or InvalidCost.
        """
        if not self._clients.exists(client_id):
            raise ClientNotFound(client_id)
        contract = Contract.create(client_id, cost, start=start, end=end, clock=self._clock)
        saved = self._store.save(contract)
        log.info(
            "Contract created",
            extra={
                "contract_id": str(saved.id),
                "client_id": str(client_id),
                "cost": str(saved.cost_amount),
            },
        )
        return saved.id

    def _load_owned(self, contract_id: UUID, client_id: Optional[UUID]) -> Optional[Contract]:
        contract = self._store.find_by_id(contract_id)
        if contract is not None and client_id is not None and contract.client_id != client_id:
            raise ContractNotOwnedByClient(contract_id, client_id)
        return contract

    def update_cost(
        self, contract_id: UUID, new_cost: MoneyLike, client_id: Optional[UUID] = None
    ) -> bool:
        """
        Replace a contract's cost. Returns False when the contract does not exist.

        With ``client_id``, raises ContractNotOwnedByClient if another client owns it.
        The write is a single store operation, so a concurrent bulk close is never undone.
        """
        cost = Money.of(new_cost)
        if client_id is not None:
            self._load_owned(contract_id, client_id)
        updated = self._store.update_cost(contract_id, cost, self._clock.now())
        if updated is None:
            return False
        log.info(
            "Contract cost updated",
            extra={"contract_id": str(contract_id), "cost": str(updated.cost_amount)},
        )
        return True

    def close_contract(self, contract_id: UUID, client_id: Optional[UUID] = None) -> bool:
        """End a contract now. Returns False when the contract does not exist."""
        if client_id is not None:
            self._load_owned(contract_id, client_id)
        closed = self._store.close(contract_id, self._clock.now())
        if closed is None:
            return False
        log.info(
            "Contract closed",
            extra={"contract_id": str(contract_id), "end_date": closed.end_date.isoformat()},
        )
        return True

    def get_contract(self, client_id: UUID, contract_id: UUID) -> Contract:
        contract = self._load_owned(contract_id, client_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        return contract

    def active_contracts(
        self, client_id: UUID, updated_since: Optional[datetime] = None
    ) -> List[Contract]:
        return self._aggregator.find_active(client_id, updated_since)

    def active_contracts_page(
        self,
        client_id: UUID,
        updated_since: Optional[datetime] = None,
        page: int = 0,
        size: Optional[int] = None,
    ) -> ContractPage:
        size = self.default_page_size if size is None else size
        if page < 0:
            raise ValueError(f"page must not be negative: {page}")
        if not 1 <= size <= self.max_page_size:
            raise ValueError(f"size must be between 1 and {self.max_page_size}: {size}")
        contracts = self.active_contracts(client_id, updated_since)
        offset = page * size
        return ContractPage(
            items=contracts[offset : offset + size],
            page=page,
            size=size,
            total_items=len(contracts),
        )

    def sum_active(self, client_id: UUID) -> Money:
        return self._aggregator.sum_active(client_id)

    def close_all_active(self, client_id: UUID) -> None:
        self._store.close_all_active(client_id, self._clock.now())


__all__ = ["ContractPage", "ContractService"]
