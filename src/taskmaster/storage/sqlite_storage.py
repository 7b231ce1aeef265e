# src/taskmaster/storage/sqlite_storage.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from ..core.ports import TaskRecord
from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class SqliteBlobStorage:
    """
    Task blob kept in a SQLite key-value table.

    Schema:
    - kv(key TEXT PRIMARY KEY, value TEXT NOT NULL, updated_at REAL NOT NULL)

    Thread-safety:
    - each method opens its own SQLite connection
    - the directory and schema are created on first use
    """

    def __init__(self, db_path: str | Path = "taskmaster.sqlite3", *, key: str = "taskmaster_tasks") -> None:
        self._db_path = Path(db_path)
        self._key = key
        self._schema_ready = False

    def describe(self) -> str:
        return f"sqlite:{self._db_path}#{self._key}"

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._get_conn()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"cannot open {self._db_path}: {e}") from e
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot create schema in {self._db_path}: {e}") from e
        finally:
            conn.close()
        self._schema_ready = True
        logger.info("SqliteBlobStorage ready db=%s key=%s", self._db_path, self._key)

    # ---- public API ----

    def load(self) -> list[Any] | None:
        self._ensure_schema()
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (self._key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot read {self.describe()}: {e}") from e

        if row is None or not row[0]:
            return None
        try:
            data = json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"corrupt JSON in {self.describe()}: {e}") from e
        if not isinstance(data, list):
            raise PersistenceError(f"unexpected payload in {self.describe()}: {type(data).__name__}")
        return data

    def save(self, records: list[TaskRecord]) -> None:
        try:
            payload = json.dumps(records, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"cannot encode tasks: {e}") from e

        self._ensure_schema()
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (self._key, payload, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot write {self.describe()}: {e}") from e
        logger.debug("Saved %d task records to %s", len(records), self.describe())
