# trackmax/storage/store.py
"""
Key/value persistence for trackmax.

Values are JSON-serializable and stored under namespaced keys
("<prefix><key>"). Store failures never propagate: `load` reports them as
"no data" (None) and `save`/`remove` return False, after logging. `read` is
the exception: it raises StoreError so a missing key and a failed read can
be told apart.

Backends:
- MemoryStore: process-local, used by tests and one-off replays
- SqliteStore: a single `kv_store` table in the trackmax SQLite database
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Optional

from trackmax.errors import DatabaseError, StoreError
from trackmax.util.logging import utc_now_iso, warn

DEFAULT_KEY_PREFIX = "trackmax:"

WORKOUT_SESSIONS_KEY = "workout_sessions"
USER_PREFERENCES_KEY = "user_preferences"


class PersistentStore:
    """
    Base class: subclasses implement raw string get/set/delete.

    The raw methods may raise StoreError (or OSError/sqlite3.Error); the
    public methods catch and log those.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.key_prefix = key_prefix

    def prefixed(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    # ---- backend hooks ----
    def _get(self, full_key: str) -> Optional[str]:
        raise NotImplementedError

    def _set(self, full_key: str, text: str) -> None:
        raise NotImplementedError

    def _delete(self, full_key: str) -> None:
        raise NotImplementedError

    # ---- public API ----
    def read(self, key: str) -> Any:
        """
        Return the parsed value, or None if the key is missing.

        Unlike load(), a value that exists but cannot be read raises
        StoreError, so callers that rewrite a key can tell the two apart.
        """
        try:
            text = self._get(self.prefixed(key))
            return json.loads(text) if text is not None else None
        except StoreError:
            raise
        except (OSError, sqlite3.Error, ValueError) as e:
            raise StoreError(str(e)) from e

    def load(self, key: str) -> Any:
        """Return the parsed value, or None if missing/unreadable."""
        try:
            return self.read(key)
        except StoreError as e:
            warn(f'Error loading data for key "{key}": {e}')
            return None

    def save(self, key: str, value: Any) -> bool:
        try:
            text = json.dumps(value, ensure_ascii=False)
            self._set(self.prefixed(key), text)
            return True
        except (StoreError, OSError, sqlite3.Error, TypeError, ValueError) as e:
            warn(f'Error saving data for key "{key}": {e}')
            return False

    def remove(self, key: str) -> bool:
        try:
            self._delete(self.prefixed(key))
            return True
        except (StoreError, OSError, sqlite3.Error) as e:
            warn(f'Error removing data for key "{key}": {e}')
            return False


class MemoryStore(PersistentStore):
    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX):
        super().__init__(key_prefix)
        self.items: dict[str, str] = {}

    def _get(self, full_key: str) -> Optional[str]:
        return self.items.get(full_key)

    def _set(self, full_key: str, text: str) -> None:
        self.items[full_key] = text

    def _delete(self, full_key: str) -> None:
        self.items.pop(full_key, None)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_utc TEXT NOT NULL
);
"""


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def ensure_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(_SCHEMA)


class SqliteStore(PersistentStore):
    """
    Store backed by a SQLite file.

    A connection is opened per operation so the store can be shared with the
    tracker's ticker thread without sqlite3's same-thread restriction.
    """

    def __init__(self, db_path: Path, key_prefix: str = DEFAULT_KEY_PREFIX):
        super().__init__(key_prefix)
        self.db_path = Path(db_path).expanduser()

    def _open(self) -> sqlite3.Connection:
        try:
            conn = connect(self.db_path)
            ensure_schema(conn)
        except (sqlite3.Error, OSError) as e:
            raise DatabaseError(f"Cannot open {self.db_path}: {e}") from e
        return conn

    def _get(self, full_key: str) -> Optional[str]:
        conn = self._open()
        try:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (full_key,)
            ).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def _set(self, full_key: str, text: str) -> None:
        conn = self._open()
        try:
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_utc) VALUES (?,?,?)
                     ON CONFLICT(key) DO UPDATE
                     SET value = excluded.value, updated_utc = excluded.updated_utc""",
                (full_key, text, utc_now_iso()),
            )
            conn.commit()
        finally:
            conn.close()

    def _delete(self, full_key: str) -> None:
        conn = self._open()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (full_key,))
            conn.commit()
        finally:
            conn.close()
