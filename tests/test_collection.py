from __future__ import annotations

import random
from collections.abc import Iterator
from pathlib import Path

import pytest

from roomboard.collection import CountdownList, SessionList, room_sort_key
from roomboard.events import ADD, ALL, CHANGE, REFRESH, REMOVE, Event
from roomboard.models import Countdown
from roomboard.store import COUNTDOWNS_NAMESPACE, SESSIONS_NAMESPACE, RecordStore


@pytest.fixture
def countdowns(db_path: Path) -> Iterator[CountdownList]:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    yield CountdownList(store)
    store.close()


@pytest.fixture
def sessions(db_path: Path) -> Iterator[SessionList]:
    store = RecordStore(db_path, SESSIONS_NAMESPACE)
    yield SessionList(store)
    store.close()


def test_next_order_increases_by_one_per_create(countdowns: CountdownList) -> None:
    assert countdowns.next_order() == 1
    orders = []
    for text in ["a", "b", "c", "d"]:
        expected = countdowns.next_order()
        countdown = countdowns.create({"content": text})
        assert countdown.order == expected
        orders.append(countdown.order)
    assert orders == [1, 2, 3, 4]
    assert countdowns.next_order() == 5


def test_create_persists_and_adds(countdowns: CountdownList) -> None:
    countdown = countdowns.create({"content": "Buy milk"})
    assert len(countdowns) == 1
    assert countdown in countdowns
    assert countdowns.store is not None
    assert countdowns.store.get(countdown.id) == countdown.to_dict()
    assert countdown.is_new is False


def test_add_is_idempotent_for_same_id(countdowns: CountdownList) -> None:
    events: list[str] = []
    countdowns.on(ALL, lambda event: events.append(event.kind))
    countdown = countdowns.create({"content": "once"})
    twin = Countdown({"content": "twin"}, record_id=countdown.id)

    assert countdowns.add(twin) is countdown
    assert countdowns.add(countdown) is countdown
    assert len(countdowns) == 1
    assert events == [ADD, CHANGE]


def test_add_emits_add_then_change(countdowns: CountdownList) -> None:
    events: list[Event] = []
    countdowns.on(ALL, events.append)
    countdown = countdowns.create({"content": "Buy milk"})
    assert [e.kind for e in events] == [ADD, CHANGE]
    assert events[0].record is countdown


def test_iteration_is_sorted_by_order(countdowns: CountdownList) -> None:
    countdowns.create({"content": "third", "order": 3})
    countdowns.create({"content": "first", "order": 1})
    countdowns.create({"content": "second", "order": 2})
    assert [c.content for c in countdowns] == ["first", "second", "third"]
    assert countdowns.first().content == "first"
    assert countdowns.last().content == "third"


def test_ties_keep_insertion_order(sessions: SessionList) -> None:
    sessions.create({"topic": "B", "inRoom": 5})
    sessions.create({"topic": "A", "inRoom": 3})
    sessions.create({"topic": "C", "inRoom": 5})
    sessions.create({"topic": "D", "inRoom": 3})
    assert [s.get("topic") for s in sessions] == ["A", "D", "B", "C"]


def test_random_create_remove_keeps_stable_sort(sessions: SessionList) -> None:
    rng = random.Random(7)
    inserted: list[tuple[int, str]] = []
    for step in range(60):
        if inserted and rng.random() < 0.3:
            _, topic = inserted.pop(rng.randrange(len(inserted)))
            victim = next(s for s in sessions if s.get("topic") == topic)
            victim.destroy()
            continue
        room = rng.randint(1, 4)
        topic = f"t{step}"
        sessions.create({"topic": topic, "inRoom": room})
        inserted.append((room, topic))

    expected = [topic for _, topic in sorted(inserted, key=lambda pair: pair[0])]
    assert [s.get("topic") for s in sessions] == expected


def test_next_order_independent_of_comparator(sessions: SessionList) -> None:
    sessions.create({"topic": "late", "inRoom": 1, "order": 7})
    sessions.create({"topic": "early", "inRoom": 9, "order": 2})
    assert sessions.last().get("order") == 2
    assert sessions.next_order() == 8


def test_room_sort_key_handles_mixed_values() -> None:
    values = ["10", 2, "B", "", 3]
    assert sorted(values, key=room_sort_key) == [2, 3, "10", "", "B"]


def test_filter_partitions_done_and_remaining(countdowns: CountdownList) -> None:
    created = [countdowns.create({"content": str(i)}) for i in range(6)]
    for countdown in created[::2]:
        countdown.toggle()
    created[1].destroy()

    done = countdowns.done()
    remaining = countdowns.remaining()

    assert {c.id for c in done}.isdisjoint({c.id for c in remaining})
    assert {c.id for c in done} | {c.id for c in remaining} == {c.id for c in countdowns}
    assert len(done) == 3
    assert len(remaining) == 2


def test_filter_is_lazy_and_read_only(countdowns: CountdownList) -> None:
    countdowns.create({"content": "a"})
    result = countdowns.filter(lambda c: True)
    assert not isinstance(result, list)
    assert len(list(result)) == 1
    assert len(countdowns) == 1


def test_destroying_member_removes_it(countdowns: CountdownList) -> None:
    events: list[str] = []
    first = countdowns.create({"content": "A"})
    second = countdowns.create({"content": "B"})
    countdowns.on(ALL, lambda event: events.append(event.kind))

    first.destroy()

    assert list(countdowns) == [second]
    assert events == [REMOVE, CHANGE]
    assert countdowns.store is not None
    assert countdowns.store.exists(first.id) is False
    assert second.order == 2


def test_remove_unknown_record_is_noop(countdowns: CountdownList) -> None:
    assert countdowns.remove(Countdown({"content": "stranger"})) is None


def test_member_change_is_reemitted(countdowns: CountdownList) -> None:
    countdown = countdowns.create({"content": "A"})
    changes: list[Event] = []
    countdowns.on(CHANGE, changes.append)

    countdown.toggle()

    assert len(changes) == 1
    assert changes[0].record is countdown
    assert changes[0].changed_keys() == {"done"}


def test_removed_record_no_longer_reaches_collection(countdowns: CountdownList) -> None:
    countdown = countdowns.create({"content": "A"})
    countdowns.remove(countdown)
    changes: list[Event] = []
    countdowns.on(CHANGE, changes.append)

    countdown.toggle()

    assert changes == []


def test_fetch_replaces_set_and_emits_refresh(db_path: Path, countdowns: CountdownList) -> None:
    countdowns.create({"content": "B", "order": 2})
    countdowns.create({"content": "A", "order": 1})

    other_store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    reloaded = CountdownList(other_store)
    events: list[str] = []
    reloaded.on(ALL, lambda event: events.append(event.kind))

    reloaded.fetch()

    assert events == [REFRESH, CHANGE]
    assert [c.content for c in reloaded] == ["A", "B"]
    assert [c.id for c in reloaded] == [c.id for c in countdowns]
    assert all(not c.is_new for c in reloaded)
    assert reloaded.next_order() == 3
    other_store.close()


def test_fetch_on_empty_namespace(sessions: SessionList) -> None:
    assert sessions.fetch() == []
    assert len(sessions) == 0


def test_clear_completed(countdowns: CountdownList) -> None:
    keep = countdowns.create({"content": "keep"})
    drop = countdowns.create({"content": "drop"})
    drop.toggle()
    assert countdowns.clear_completed() == 1
    assert list(countdowns) == [keep]


def test_clear_all(sessions: SessionList) -> None:
    sessions.create({"topic": "a", "inRoom": 1})
    sessions.create({"topic": "b", "inRoom": 2})
    assert sessions.clear_all() == 2
    assert len(sessions) == 0
    assert sessions.store is not None
    assert sessions.store.count() == 0


def test_find_by_prefix(countdowns: CountdownList) -> None:
    countdown = countdowns.create({"content": "A"})
    assert countdowns.find(countdown.id[:6]) == [countdown]
    assert countdowns.find("zzzz-not-an-id") == []
