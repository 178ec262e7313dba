"""
Client records and the lookup interface contract creation depends on.

Clients come in two variants, persons and companies. They are modelled as a
tagged union sharing the same contact capability set (name, email, phone)
rather than as a class hierarchy; code that needs variant-specific data
dispatches on ``kind``.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Literal, Optional, Protocol, Union, runtime_checkable
from uuid import UUID

from contract_ledger.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Person:
    name: str
    email: str
    phone: str
    birth_date: date
    id: Optional[UUID] = None
    kind: Literal["person"] = "person"


@dataclass(frozen=True)
class Company:
    name: str
    email: str
    phone: str
    company_identifier: str
    id: Optional[UUID] = None
    kind: Literal["company"] = "company"


Client = Union[Person, Company]


@runtime_checkable
class ClientLookup(Protocol):
    """Checks client existence before a contract is created for it."""

    def exists(self, client_id: UUID) -> bool:
        ...


class InMemoryClientDirectory:
    """Process-local client registry implementing ClientLookup."""

    def __init__(self) -> None:
        self._clients: Dict[UUID, Client] = {}
        self._lock = threading.Lock()

    def register(self, client: Client) -> UUID:
        """Store the client, assigning an id when it has none, and return the id."""
        client_id = client.id or uuid.uuid4()
        with self._lock:
            if any(
                other.email == client.email and other.id != client_id
                for other in self._clients.values()
            ):
                raise ValueError(f"Client already exists: {client.email}")
            self._clients[client_id] = replace(client, id=client_id)
        log.debug("Client registered", extra={"client_id": str(client_id), "kind": client.kind})
        return client_id

    def get(self, client_id: UUID) -> Optional[Client]:
        with self._lock:
            return self._clients.get(client_id)

    def exists(self, client_id: UUID) -> bool:
        with self._lock:
            return client_id in self._clients


__all__ = ["Client", "ClientLookup", "Company", "InMemoryClientDirectory", "Person"]
