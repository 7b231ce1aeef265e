"""
Storage backends for the task blob.

- json_storage.py: one JSON file per key (atomic replace)
- sqlite_storage.py: a small SQLite key-value table
"""

from __future__ import annotations

from ..errors import ValidationError
from .json_storage import JsonFileBlobStorage
from .sqlite_storage import SqliteBlobStorage


def build_storage(settings) -> JsonFileBlobStorage | SqliteBlobStorage:
    """Pick the backend named by settings.storage_backend."""
    backend = str(getattr(settings, "storage_backend", "json") or "json").strip().lower()
    key = str(getattr(settings, "storage_key", "taskmaster_tasks"))

    if backend == "json":
        return JsonFileBlobStorage(settings.data_dir, key=key)
    if backend == "sqlite":
        return SqliteBlobStorage(settings.tasks_db_path, key=key)
    raise ValidationError(f"Unknown storage backend {backend!r} (expected json or sqlite)")


__all__ = ["JsonFileBlobStorage", "SqliteBlobStorage", "build_storage"]
