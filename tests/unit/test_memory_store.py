from __future__ import annotations

import threading
import uuid
from datetime import timedelta

from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money
from contract_ledger.store.abstract import ContractStore
from contract_ledger.store.memory import InMemoryContractStore

READER_THREADS = 4
CONTRACTS_PER_CLIENT = 3


def _save(store, clock, client_id, cost="100.00", **kwargs) -> Contract:
    return store.save(Contract.create(client_id, cost, clock=clock, **kwargs))


def test_memory_store_satisfies_protocol(store: InMemoryContractStore):
    assert isinstance(store, ContractStore)


def test_save_assigns_id_and_returns_detached_copy(store, clock):
    contract = Contract.create(uuid.uuid4(), "10.00", clock=clock)

    saved = store.save(contract)
    saved.change_cost("99.00", clock=clock)

    assert saved.id is not None
    assert contract.id == saved.id
    assert store.find_by_id(saved.id).cost_amount == Money.of("10.00")


def test_find_by_id_unknown_returns_none(store):
    assert store.find_by_id(uuid.uuid4()) is None


def test_save_keeps_identity_fields_and_monotonic_last_modified(store, clock):
    client_id = uuid.uuid4()
    saved = _save(store, clock, client_id)
    tampered = Contract(
        id=saved.id,
        client_id=uuid.uuid4(),
        start_date=saved.start_date - timedelta(days=10),
        end_date=None,
        cost_amount=Money.of("5.00"),
        last_modified=saved.last_modified - timedelta(days=1),
    )

    stored = store.save(tampered)

    assert stored.client_id == client_id
    assert stored.start_date == saved.start_date
    assert stored.last_modified == saved.last_modified
    assert stored.cost_amount == Money.of("5.00")


def test_find_active_filters_by_client_and_end_date(store, clock):
    client_id = uuid.uuid4()
    open_ended = _save(store, clock, client_id)
    ending_later = _save(store, clock, client_id, end=clock.now() + timedelta(days=1))
    _save(store, clock, uuid.uuid4())
    ended = _save(store, clock, client_id, end=clock.now() + timedelta(hours=1))

    later = clock.now() + timedelta(hours=2)
    ids = {c.id for c in store.find_active(client_id, later)}

    assert ids == {open_ended.id, ending_later.id}
    assert ended.id not in ids


def test_find_active_orders_by_start_date(store, clock):
    client_id = uuid.uuid4()
    base = clock.now()
    third = _save(store, clock, client_id, start=base - timedelta(days=1))
    first = _save(store, clock, client_id, start=base - timedelta(days=3))
    second = _save(store, clock, client_id, start=base - timedelta(days=2))

    result = store.find_active(client_id, base)

    assert [c.id for c in result] == [first.id, second.id, third.id]
    assert result == store.find_active(client_id, base)


def test_find_active_updated_since_only_returns_recent_changes(store, clock):
    client_id = uuid.uuid4()
    old = _save(store, clock, client_id)
    since = clock.advance(timedelta(hours=1))
    fresh = _save(store, clock, client_id)
    touched = store.find_by_id(old.id)
    clock.advance()
    _save(store, clock, uuid.uuid4())

    result = store.find_active(client_id, clock.now(), updated_since=since)
    assert [c.id for c in result] == [fresh.id]

    touched.change_cost("1.00", clock=clock)
    store.save(touched)
    result = store.find_active(client_id, clock.now(), updated_since=since)
    assert {c.id for c in result} == {old.id, fresh.id}
    assert all(c.last_modified >= since for c in result)


def test_sum_active_is_zero_for_unknown_client(store, clock):
    assert store.sum_active(uuid.uuid4(), clock.now()) == Money.zero()


def test_sum_active_matches_sum_over_active_set(store, clock):
    client_id = uuid.uuid4()
    base = clock.now()
    _save(store, clock, client_id, "100.00")
    _save(store, clock, client_id, "25.25", end=base + timedelta(days=1))
    _save(store, clock, client_id, "10.10", end=base + timedelta(days=5))
    _save(store, clock, uuid.uuid4(), "999.00")

    for offset in (0, 2, 10):
        t = base + timedelta(days=offset)
        expected = sum(
            (c.cost_amount for c in store.find_active(client_id, t)), Money.zero()
        )
        assert store.sum_active(client_id, t) == expected

    assert store.sum_active(client_id, base) == Money.of("135.35")
    assert store.sum_active(client_id, base + timedelta(days=2)) == Money.of("110.10")
    assert store.sum_active(client_id, base + timedelta(days=10)) == Money.of("100.00")


def test_close_all_active_closes_every_active_contract(store, clock):
    client_id = uuid.uuid4()
    other = uuid.uuid4()
    for _ in range(CONTRACTS_PER_CLIENT):
        _save(store, clock, client_id)
    already_ended = _save(store, clock, client_id, end=clock.now() + timedelta(minutes=1))
    _save(store, clock, other)
    closing_at = clock.advance(timedelta(hours=1))

    closed = store.close_all_active(client_id, closing_at)

    assert closed == CONTRACTS_PER_CLIENT
    assert store.find_active(client_id, closing_at) == []
    assert store.sum_active(client_id, closing_at) == Money.zero()
    assert len(store.find_active(other, closing_at)) == 1
    assert store.find_by_id(already_ended.id).end_date == already_ended.end_date


def test_close_all_active_is_idempotent(store, clock):
    client_id = uuid.uuid4()
    for _ in range(CONTRACTS_PER_CLIENT):
        _save(store, clock, client_id)
    now = clock.advance()

    store.close_all_active(client_id, now)
    first = store.find_active(client_id, now)
    assert store.close_all_active(client_id, now) == 0
    second = store.find_active(client_id, now)

    assert first == second == []


def test_close_all_active_is_never_observed_half_applied(store, clock):
    client_id = uuid.uuid4()
    for _ in range(CONTRACTS_PER_CLIENT):
        _save(store, clock, client_id)
    closing_at = clock.advance()
    observed: list[int] = []
    start = threading.Barrier(READER_THREADS + 1)
    done = threading.Event()

    def reader() -> None:
        start.wait()
        while not done.is_set():
            observed.append(len(store.find_active(client_id, closing_at)))
        observed.append(len(store.find_active(client_id, closing_at)))

    threads = [threading.Thread(target=reader) for _ in range(READER_THREADS)]
    for thread in threads:
        thread.start()
    start.wait()
    store.close_all_active(client_id, closing_at)
    done.set()
    for thread in threads:
        thread.join(timeout=5)

    assert observed
    assert set(observed) <= {0, CONTRACTS_PER_CLIENT}
    assert store.find_active(client_id, closing_at) == []


def test_snapshot_active_groups_by_client(store, clock):
    first, second = uuid.uuid4(), uuid.uuid4()
    _save(store, clock, first, "1.00")
    _save(store, clock, first, "2.00")
    _save(store, clock, second, "3.00")
    _save(store, clock, second, "4.00", end=clock.now() + timedelta(seconds=1))
    as_of = clock.advance(timedelta(seconds=5))

    snapshot = store.snapshot_active(as_of)

    assert snapshot.as_of == as_of
    assert len(snapshot) == 2
    assert snapshot.get(first).total == Money.of("3.00")
    assert snapshot.get(first).active_count == 2
    assert snapshot.get(second).total == Money.of("3.00")
    assert snapshot.get(uuid.uuid4()) is None



def test_stale_copy_saved_after_bulk_close_does_not_reopen(store, clock):
    client_id = uuid.uuid4()
    saved = _save(store, clock, client_id)
    stale = store.find_by_id(saved.id)
    closing_at = clock.advance()
    store.close_all_active(client_id, closing_at)

    stale.change_cost("50.00", clock=clock)
    stored = store.save(stale)

    assert stored.end_date == closing_at
    assert stored.cost_amount == Money.of("50.00")
    assert store.find_active(client_id, closing_at) == []


def test_save_keeps_earliest_end_date(store, clock):
    client_id = uuid.uuid4()
    far = clock.now() + timedelta(days=30)
    saved = _save(store, clock, client_id, end=far)
    stale = store.find_by_id(saved.id)
    store.close(saved.id, clock.advance())

    assert store.save(stale).end_date == clock.now()


def test_update_cost_and_close_touch_only_their_field(store, clock):
    client_id = uuid.uuid4()
    saved = _save(store, clock, client_id)
    now = clock.advance()

    updated = store.update_cost(saved.id, Money.of("42.00"), now)
    assert updated.cost_amount == Money.of("42.00")
    assert updated.end_date is None
    assert updated.last_modified == now

    closed = store.close(saved.id, clock.advance())
    assert closed.end_date == clock.now()
    assert closed.cost_amount == Money.of("42.00")

    assert store.update_cost(uuid.uuid4(), Money.of("1.00"), now) is None
    assert store.close(uuid.uuid4(), now) is None


def test_update_cost_never_moves_last_modified_back(store, clock):
    saved = _save(store, clock, uuid.uuid4())

    updated = store.update_cost(saved.id, Money.of("1.00"), saved.last_modified - timedelta(hours=1))

    assert updated.last_modified == saved.last_modified


def test_single_row_writes_racing_bulk_close_never_reopen(store, clock):
    client_id = uuid.uuid4()
    ids = [_save(store, clock, client_id).id for _ in range(CONTRACTS_PER_CLIENT)]
    closing_at = clock.advance()
    start = threading.Barrier(READER_THREADS + 1)

    def writer(contract_id) -> None:
        start.wait()
        for _ in range(200):
            store.update_cost(contract_id, Money.of("7.00"), closing_at)

    threads = [
        threading.Thread(target=writer, args=(ids[i % len(ids)],)) for i in range(READER_THREADS)
    ]
    for thread in threads:
        thread.start()
    start.wait()
    store.close_all_active(client_id, closing_at)
    for thread in threads:
        thread.join(timeout=5)

    assert store.find_active(client_id, closing_at) == []
