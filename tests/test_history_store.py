"""Tests for chime.history.store module."""

import threading

from chime.history import UPDATE_NEW, HistoryStore


def test_insert_allocates_increasing_ids(clock, add):
    """Inserts without replaces_id get strictly increasing IDs, starting at 1."""
    store = HistoryStore(clock=clock)
    ids = [add(store, f"n{i}") for i in range(5)]

    assert ids == [1, 2, 3, 4, 5]
    assert store.next_id == 6


def test_insert_stores_fields(clock):
    """insert() should keep every field as received."""
    store = HistoryStore(clock=clock)
    notification_id = store.insert(
        "mail", 0, "mail-icon", "New mail", "From: bob", ["default", "Open"], {"urgency": 2}, 5000
    )

    n = store.get(notification_id)
    assert n is not None
    assert n.app_name == "mail"
    assert n.app_icon == "mail-icon"
    assert n.summary == "New mail"
    assert n.body == "From: bob"
    assert n.actions == ["default", "Open"]
    assert n.expire_timeout == 5000
    assert n.hints["urgency"].unwrap() == 2
    assert n.time == clock.start


def test_replaces_id_updates_in_place(clock, add):
    """Inserting with an existing replaces_id replaces that record."""
    store = HistoryStore(clock=clock)
    first = add(store, "downloading 10%")
    add(store, "other")

    replaced = add(store, "downloading 50%", replaces_id=first)

    assert replaced == first
    assert len(store) == 2
    assert store.get(first).summary == "downloading 50%"
    # no fresh ID was used up
    assert add(store, "next") == 3


def test_replaces_id_for_missing_record_creates_it(clock, add):
    """replaces_id=5 on an empty store creates ID 5, not a fresh ID."""
    store = HistoryStore(clock=clock)

    assert add(store, "five", replaces_id=5) == 5
    assert store.get(5).summary == "five"
    # the counter moves past the client-chosen ID
    assert add(store, "six") == 6


def test_eviction_keeps_newest(clock, add):
    """With max_items=2, three inserts keep the two newest."""
    store = HistoryStore(max_items=2, clock=clock)
    first = add(store, "first")
    second = add(store, "second")
    third = add(store, "third")

    assert len(store) == 2
    assert store.get(first) is None
    assert {n.id for n in store.snapshot()} == {second, third}


def test_never_exceeds_max_items(clock, add):
    """The store never holds more than max_items after an insert."""
    store = HistoryStore(max_items=3, clock=clock)
    for i in range(20):
        add(store, f"n{i}", replaces_id=(i % 4) if i % 3 == 0 else 0)
        assert len(store) <= 3


def test_eviction_uses_time_not_id(clock, add):
    """A replaced notification is fresh again and survives eviction."""
    store = HistoryStore(max_items=2, clock=clock)
    first = add(store, "first")
    second = add(store, "second")
    add(store, "first again", replaces_id=first)

    add(store, "third")

    assert store.get(first) is not None
    assert store.get(second) is None


def test_remove_missing_is_noop(clock, add):
    """Removing an ID that doesn't exist changes nothing."""
    store = HistoryStore(clock=clock)
    add(store, "keep")

    assert store.remove(42) is False
    assert len(store) == 1


def test_remove_existing(clock, add):
    store = HistoryStore(clock=clock)
    notification_id = add(store, "bye")

    assert store.remove(notification_id) is True
    assert store.get(notification_id) is None


def test_clear_keeps_counter(clock, add):
    """After clear() the store is empty and IDs keep increasing."""
    store = HistoryStore(clock=clock)
    issued = [add(store, f"n{i}") for i in range(3)]

    assert store.clear() == 3
    assert store.snapshot() == []
    assert add(store, "after") > max(issued)


def test_insert_notifies_subscriber(clock, add):
    """Every insert signals the update callback."""
    events = []
    store = HistoryStore(clock=clock, on_insert=events.append)

    add(store, "a")
    add(store, "a2", replaces_id=1)

    assert events == [UPDATE_NEW, UPDATE_NEW]


def test_load_recomputes_counter_and_does_not_trim(clock, persistence, add):
    """load() sets next_id past the loaded IDs; only the next insert evicts, once."""
    big = HistoryStore(max_items=10, clock=clock, persistence=persistence)
    for i in range(5):
        add(big, f"n{i}")
    add(big, "late", replaces_id=40)

    small = HistoryStore(max_items=2, clock=clock, persistence=persistence)
    assert small.load() == 6
    assert small.next_id == 41
    assert len(small) == 6

    add(small, "new")
    assert len(small) == 6
    # the oldest one went
    assert small.get(1) is None


def test_load_without_persistence_is_noop(clock):
    store = HistoryStore(clock=clock)
    assert store.load() == 0
    assert store.next_id == 1


def test_concurrent_inserts_get_unique_ids(add):
    """Parallel inserts never hand out the same ID twice."""
    store = HistoryStore(max_items=1000)
    ids: list[int] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(50):
            notification_id = add(store, "x")
            with lock:
                ids.append(notification_id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(ids) == 200
    assert len(set(ids)) == 200
    assert len(store) == 200
