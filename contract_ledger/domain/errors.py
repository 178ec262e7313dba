"""
Domain error taxonomy for the contract ledger.

Lifecycle errors surface synchronously to the caller of the operation.
Update/close operations on unknown contracts do not raise: they report
"not found" through their return value. Refresh failures never reach readers;
the scheduler records them and retries at the next tick.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID


class ContractLedgerError(Exception):
    """Base class for every error raised by the contract ledger."""


class InvalidPeriod(ContractLedgerError, ValueError):
    """End date supplied and not strictly after the effective start date."""

    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Contract end date must be after start date. Start: {start.isoformat()}, "
            f"End: {end.isoformat()}"
        )


class InvalidCost(ContractLedgerError, ValueError):
    """Cost amount is negative, too precise or too large."""


class ClientNotFound(ContractLedgerError, LookupError):
    def __init__(self, client_id: UUID) -> None:
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class ContractNotFound(ContractLedgerError, LookupError):
    def __init__(self, contract_id: UUID) -> None:
        self.contract_id = contract_id
        super().__init__(f"Contract not found: {contract_id}")


class ContractNotOwnedByClient(ContractLedgerError):
    def __init__(self, contract_id: Optional[UUID], client_id: UUID) -> None:
        self.contract_id = contract_id
        self.client_id = client_id
        super().__init__(f"Contract {contract_id} does not belong to client {client_id}")


class RefreshFailure(ContractLedgerError):
    """A projection refresh cycle could not complete."""

    def __init__(self, as_of: datetime, reason: str) -> None:
        self.as_of = as_of
        super().__init__(f"Refresh as of {as_of.isoformat()} failed: {reason}")


__all__ = [
    "ClientNotFound",
    "ContractLedgerError",
    "ContractNotFound",
    "ContractNotOwnedByClient",
    "InvalidCost",
    "InvalidPeriod",
    "RefreshFailure",
]
