# SPDX-FileCopyrightText: 2025 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import logging
import sqlite3
import time
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class WriteError(Exception):
    def __init__(self, key: str, reason: str):
        super().__init__(f"Could not write key '{key}': {reason}")
        self.key = key
        self.reason = reason


class KeyValueStore(Protocol):
    """Protocol for the string-to-string store that holds history and document text."""
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key has never been set."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store a value.  Raises WriteError if it cannot be persisted."""
        ...


class MemoryStore:
    ''' A dictionary-backed store, for tests and single-process use. '''

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class TimingConnection(sqlite3.Connection):
    """A Connection subclass that logs statement execution times at DEBUG level."""
    def execute(self, sql: str, *args, **kwargs) -> sqlite3.Cursor:  # type: ignore[no-untyped-def]
        start = time.perf_counter()
        try:
            result = super().execute(sql, *args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug("Query took %.3fs: %s", elapsed, sql)
        return result


class SqliteStore:
    ''' A store persisted in a single SQLite table. '''

    def __init__(self, database: str | Path, *, debug: bool = False):
        connection_class = TimingConnection if debug else sqlite3.Connection
        self._db = sqlite3.connect(database, factory=connection_class)
        self._db.row_factory = sqlite3.Row
        self._db.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
        self._db.commit()

    def get(self, key: str) -> str | None:
        row = self._db.execute("SELECT value FROM kv WHERE key=?", [key]).fetchone()
        if row is None:
            return None
        value: str = row['value']
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self._db.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                [key, value]
            )
            self._db.commit()
        except sqlite3.Error as e:
            raise WriteError(key, str(e)) from e

    def close(self) -> None:
        self._db.close()
