from __future__ import annotations

from pathlib import Path

import pytest

from roomboard.errors import DuplicateRecordError, PersistenceError, RecordNotFoundError
from roomboard.store import COUNTDOWNS_NAMESPACE, SESSIONS_NAMESPACE, RecordStore


def test_create_and_load_all_in_creation_order(db_path: Path) -> None:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    store.create("b", {"content": "second", "order": 2})
    store.create("a", {"content": "first", "order": 1})

    loaded = store.load_all()

    assert [r.record_id for r in loaded] == ["b", "a"]
    assert loaded[1].attributes == {"content": "first", "order": 1}
    store.close()


def test_load_all_on_fresh_database_is_empty(tmp_path: Path) -> None:
    store = RecordStore(tmp_path / "nested" / "fresh.sqlite", SESSIONS_NAMESPACE)
    assert store.load_all() == []
    assert store.count() == 0
    store.close()


def test_namespaces_do_not_collide(db_path: Path) -> None:
    countdowns = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    sessions = RecordStore(db_path, SESSIONS_NAMESPACE)
    countdowns.create("same-id", {"content": "milk"})
    sessions.create("same-id", {"topic": "Keynote"})

    assert countdowns.get("same-id") == {"content": "milk"}
    assert sessions.get("same-id") == {"topic": "Keynote"}
    assert sessions.clear() == 1
    assert countdowns.count() == 1
    countdowns.close()
    sessions.close()


def test_update_overwrites_existing_entry(db_path: Path) -> None:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    store.create("x", {"content": "old", "done": False})
    store.update("x", {"content": "new", "done": True})
    assert store.get("x") == {"content": "new", "done": True}
    store.close()


def test_update_unknown_id_raises(db_path: Path) -> None:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    with pytest.raises(RecordNotFoundError, match="missing"):
        store.update("missing", {"content": "nope"})
    assert store.count() == 0
    store.close()


def test_create_duplicate_id_raises(db_path: Path) -> None:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    store.create("x", {"content": "one"})
    with pytest.raises(DuplicateRecordError):
        store.create("x", {"content": "two"})
    assert store.get("x") == {"content": "one"}
    store.close()


def test_destroy_is_idempotent(db_path: Path) -> None:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    store.create("x", {"content": "one"})
    assert store.destroy("x") is True
    assert store.destroy("x") is False
    assert store.exists("x") is False
    store.close()


def test_writes_are_visible_to_a_second_connection(db_path: Path) -> None:
    writer = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    writer.create("x", {"content": "durable"})
    reader = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    assert [r.record_id for r in reader.load_all()] == ["x"]
    writer.destroy("x")
    assert reader.load_all() == []
    writer.close()
    reader.close()


def test_corrupt_entries_are_skipped(db_path: Path) -> None:
    store = RecordStore(db_path, COUNTDOWNS_NAMESPACE)
    store.create("good", {"content": "ok"})
    store.create("bad", {"content": "will break"})
    store.conn.execute(
        "UPDATE records SET attributes_json = ? WHERE record_id = ?", ("{not json", "bad")
    )
    store.conn.commit()

    assert [r.record_id for r in store.load_all()] == ["good"]
    store.close()


def test_namespace_is_required(db_path: Path) -> None:
    with pytest.raises(ValueError):
        RecordStore(db_path, "")


def test_unreadable_database_raises_persistence_error(tmp_path: Path) -> None:
    garbage = tmp_path / "garbage.sqlite"
    garbage.write_bytes(b"this is not a sqlite database" * 64)

    with pytest.raises(PersistenceError, match="cannot open database"):
        RecordStore(garbage, COUNTDOWNS_NAMESPACE)
