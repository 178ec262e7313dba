from __future__ import annotations

import uuid
from datetime import date

import pytest

from contract_ledger.domain.clients import ClientLookup, Company, InMemoryClientDirectory, Person


def test_directory_satisfies_lookup_protocol(directory):
    assert isinstance(directory, ClientLookup)


def test_register_assigns_id_and_stores_variant(directory, client_id, other_client_id):
    person = directory.get(client_id)
    company = directory.get(other_client_id)

    assert isinstance(person, Person)
    assert person.id == client_id
    assert person.kind == "person"
    assert isinstance(company, Company)
    assert company.kind == "company"
    assert company.company_identifier == "CHE-123.456.789"


def test_register_keeps_supplied_id():
    directory = InMemoryClientDirectory()
    fixed = uuid.uuid4()
    company = Company(
        name="Acme", email="acme@example.com", phone="+1", company_identifier="X-1", id=fixed
    )

    assert directory.register(company) == fixed
    assert directory.exists(fixed)


def test_register_rejects_duplicate_email(directory, client_id):
    duplicate = Person(
        name="Someone Else",
        email="ada@example.com",
        phone="+41790000009",
        birth_date=date(2000, 1, 1),
    )
    with pytest.raises(ValueError, match="already exists"):
        directory.register(duplicate)


def test_exists_and_get_for_unknown_client(directory):
    unknown = uuid.uuid4()
    assert not directory.exists(unknown)
    assert directory.get(unknown) is None
