# src/taskmaster/storage/json_storage.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..core.ports import TaskRecord
from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonFileBlobStorage:
    """
    Task blob kept as `<data_dir>/<key>.json`.

    Writes go to a .tmp sibling first and are moved into place with os.replace,
    so a crash mid-write never leaves a truncated file behind.
    """

    def __init__(self, data_dir: str | Path, *, key: str = "taskmaster_tasks") -> None:
        self._path = Path(data_dir) / f"{key}.json"

    @property
    def path(self) -> Path:
        return self._path

    def describe(self) -> str:
        return f"json:{self._path}"

    def load(self) -> list[Any] | None:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text("utf-8")
        except OSError as e:
            raise PersistenceError(f"cannot read {self._path}: {e}") from e
        if not raw.strip():
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"corrupt JSON in {self._path}: {e}") from e
        if not isinstance(data, list):
            raise PersistenceError(f"unexpected payload in {self._path}: {type(data).__name__}")
        return data

    def save(self, records: list[TaskRecord]) -> None:
        try:
            payload = json.dumps(records, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"cannot encode tasks: {e}") from e

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise PersistenceError(f"cannot write {self._path}: {e}") from e

        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)
        logger.debug("Saved %d task records to %s", len(records), self._path)
