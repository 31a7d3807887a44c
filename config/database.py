"""
MOOD CASINO — Key-Value Persistence Port

The economy only ever talks to a tiny key-value interface, the same shape as
the on-device defaults store the mobile build uses. Two backends:

  • MemoryStore — dict-backed, for tests and throwaway sessions.
  • SQLiteStore — one `kv` table, values JSON-encoded, for local play.

Usage:
    from config.database import SQLiteStore, get_store

    store = get_store()                 # SQLite at StorageConfig.DB_PATH
    store.set("balance", 1250.0)
    store.get("balance")                # → 1250.0

Writes are synchronous and commit immediately; there is no partial-write
recovery beyond "last write wins".
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Any, Optional

from config.settings import StorageConfig

logger = logging.getLogger("moodcasino.db")


class KeyValueStore(ABC):
    """Abstract load/save port."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def set_many(self, values: dict) -> None:
        for key, value in values.items():
            self.set(key, value)

    def get_bool(self, key: str) -> bool:
        return bool(self.get(key, False))


class MemoryStore(KeyValueStore):
    """In-process store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict] = None):
        self._data = dict(initial or {})

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)

    def snapshot(self) -> dict:
        return dict(self._data)


class SQLiteStore(KeyValueStore):
    """SQLite-backed store. Values are stored as JSON text."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or StorageConfig.DB_PATH
        self._conn = sqlite3.connect(self.path, timeout=10)
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT)")
        self._conn.commit()
        logger.debug(f"SQLite store opened at {self.path}")

    def get(self, key, default=None):
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", [key]).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except (TypeError, ValueError):
            logger.warning(f"Corrupt value for key '{key}', using default")
            return default

    def set(self, key, value):
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
            [key, json.dumps(value)],
        )
        self._conn.commit()

    def set_many(self, values):
        self._conn.executemany(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
            [(k, json.dumps(v)) for k, v in values.items()],
        )
        self._conn.commit()

    def delete(self, key):
        self._conn.execute("DELETE FROM kv WHERE key = ?", [key])
        self._conn.commit()

    def close(self):
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def get_store(path: Optional[str] = None) -> SQLiteStore:
    """Open the default on-disk store."""
    return SQLiteStore(path)
