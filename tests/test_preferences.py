"""Tests for the key-value preference stores."""
import sqlite3

from bubble_server.preferences import MemoryPreferenceStore, PreferenceStore, SqlitePreferenceStore


def test_sqlite_store_get_and_replace(tmp_path) -> None:
    store = SqlitePreferenceStore(tmp_path / "nested" / "prefs.db")
    assert store.get("notes") is None

    store.set("notes", "[]")
    store.set("settings", "{}")
    store.set("notes", '{"version": 1, "data": []}')
    assert store.get("notes") == '{"version": 1, "data": []}'
    assert store.get("settings") == "{}"
    store.close()

    # A second store on the same file sees the same rows
    assert SqlitePreferenceStore(tmp_path / "nested" / "prefs.db").get("settings") == "{}"


def test_sqlite_store_records_update_time(tmp_path) -> None:
    db = tmp_path / "prefs.db"
    SqlitePreferenceStore(db).set("events", "[]")

    with sqlite3.connect(db) as conn:
        rows = conn.execute("SELECT key, value, updated_at FROM preferences").fetchall()
    assert len(rows) == 1
    assert rows[0][:2] == ("events", "[]")
    assert rows[0][2]


def test_memory_store_satisfies_protocol() -> None:
    store = MemoryPreferenceStore({"notes": "[]"})
    assert isinstance(store, PreferenceStore)
    assert store.get("notes") == "[]"
    store.set("events", "[]")
    assert store.values == {"notes": "[]", "events": "[]"}
