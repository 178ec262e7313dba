from __future__ import annotations

import uuid

from rich.console import Console

from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money
from contract_ledger.projection.abstract import RefreshResult
from contract_ledger.reporter import (
    contracts_total,
    print_cache_status,
    print_contracts,
    print_refresh_result,
)


def _console() -> Console:
    return Console(record=True, width=160, color_system=None)


def test_cache_status_reports_freshness(clock):
    console = _console()

    print_cache_status(None, True, console=console)
    print_cache_status(clock.now(), True, console=console)
    print_cache_status(clock.now(), False, console=console)

    lines = console.export_text().splitlines()
    assert "not refreshed yet" in lines[0]
    assert "stale" in lines[1]
    assert "2024-01-01 12:00:00" in lines[1]
    assert lines[2].startswith("Cached view as of")


def test_print_contracts_shows_rows_and_total(clock):
    console = _console()
    contract = Contract.create(uuid.uuid4(), "12.50", clock=clock)
    contract.id = uuid.uuid4()

    print_contracts([contract], total=Money.of("12.50"), console=console)

    text = console.export_text()
    assert str(contract.id) in text
    assert "open" in text
    assert "Total active cost: 12.50" in text


def test_print_contracts_empty_list(clock):
    console = _console()

    print_contracts([], total=Money.zero(), console=console)

    text = console.export_text()
    assert "No active contracts." in text
    assert "Total active cost: 0.00" in text


def test_print_refresh_result(clock):
    console = _console()

    print_refresh_result(RefreshResult(as_of=clock.now(), clients=2, contracts=5), console=console)
    print_refresh_result(None, console=console)

    text = console.export_text()
    assert "2 clients, 5 active contracts" in text
    assert "Refresh failed" in text


def test_contracts_total_matches_listed_rows(store, clock, cached, projection):
    client_id = uuid.uuid4()
    for cost in ("10.00", "2.50"):
        store.save(Contract.create(client_id, cost, clock=clock))
    projection.rebuild(clock.now())
    listed = cached.find_active(client_id)

    store.save(Contract.create(client_id, "100.00", clock=clock))
    projection.rebuild(clock.advance())

    assert contracts_total(listed) == Money.of("12.50")
    assert cached.sum_active(client_id) == Money.of("112.50")
    assert contracts_total([]) == Money.zero()
