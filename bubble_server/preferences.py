"""
Key-value preference stores.

The store persists each collection as one text blob under its own key.
SqlitePreferenceStore keeps the blobs in a single-table SQLite database;
MemoryPreferenceStore keeps them in a dict for tests and throwaway sessions.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
import typing as t

from bubble_server.logger import get_logger

logger = get_logger(__name__)

CREATE_PREFERENCES_TABLE = """
CREATE TABLE IF NOT EXISTS preferences (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


@t.runtime_checkable
class PreferenceStore(t.Protocol):
    """Minimal key-value interface the store persists through."""

    def get(self, key: str) -> t.Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def close(self) -> None: ...


class MemoryPreferenceStore:
    """Dict-backed preference store."""

    def __init__(self, initial: t.Optional[dict[str, str]] = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> t.Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def close(self) -> None:
        pass


class SqlitePreferenceStore:
    """
    SQLite-backed preference store.

    A fresh connection is opened per call so the store can be used from the
    writer's worker thread as well as the event loop thread.
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the store, creating the database file and table if needed.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_conn() as conn:
            conn.execute(CREATE_PREFERENCES_TABLE)
            conn.commit()
        logger.debug(f"Initialized {self.__class__.__name__} with db_path: {self.db_path}")

    @contextmanager
    def _get_conn(self) -> t.Iterator[sqlite3.Connection]:
        """Yield a connection with Row factory for dict-like access."""
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=30.0,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def get(self, key: str) -> t.Optional[str]:
        """
        Get a stored blob.

        Args:
            key: Preference key

        Returns:
            The stored text, or None if the key was never written
        """
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT value FROM preferences WHERE key = ?",
                (key,),
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        """Insert or replace a blob."""
        with self._get_conn() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO preferences (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, value, datetime.now().isoformat()),
            )
            conn.commit()
        logger.debug(f"Wrote preference '{key}' ({len(value)} chars)")

    def close(self) -> None:
        # Connections are per call; nothing is held open
        pass
