# src/taskmaster/errors.py

from __future__ import annotations


class TaskMasterError(Exception):
    """Base class for every error the core reports to its callers."""


class ValidationError(TaskMasterError):
    """User-supplied input failed a precondition; nothing was changed."""


class NotFoundError(TaskMasterError):
    """A task identifier or subtask index does not exist."""


class PersistenceError(TaskMasterError):
    """The storage backend failed to load or save the task blob."""
