# src/taskmaster/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on Protocols instead of concrete backends.
This keeps storage swappable and makes testing easier.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

TaskRecord = dict[str, Any]
# The persisted/exported task shape: {"id": 1, "title": "...", "createdAt": "...Z", ...}.

Clock = Callable[[], datetime]
# Returns an aware "now"; injected so date-dependent logic is testable.

WarningSink = Callable[[str], None]
# Receives non-fatal, user-facing warnings (e.g. a failed save).


class TaskBlobStorage(Protocol):
    """
    Opaque key-value blob holding the whole task list.

    load() returns None when nothing was saved yet.
    Both methods raise PersistenceError on failure.
    """

    def load(self) -> list[Any] | None: ...

    def save(self, records: list[TaskRecord]) -> None: ...

    def describe(self) -> str: ...
