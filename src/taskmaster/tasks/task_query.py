# src/taskmaster/tasks/task_query.py

from __future__ import annotations

"""
Query engine: (tasks, filter selector, search text, now) -> display list.

Pipeline, in this order:
1. search   - case-insensitive substring over title / description / category / tags
2. filter   - one named selector (all, pending, completed, high, urgent, overdue, today)
3. sort     - incomplete first, priority desc, due date (present first, earlier first),
              then newest created first

Pure: input records are never mutated and a new list is returned.
"""

from collections.abc import Callable, Iterable
from datetime import datetime
from enum import StrEnum

from ..datetime_utils import ensure_aware, local_day_bounds, local_now
from ..errors import ValidationError
from .task_models import Priority, Task


class FilterSelector(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    HIGH = "high"
    URGENT = "urgent"
    OVERDUE = "overdue"
    TODAY = "today"

    @classmethod
    def parse(cls, raw: FilterSelector | str | None) -> FilterSelector:
        if raw is None or raw == "":
            return cls.ALL
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(f"Unknown filter {raw!r} (expected one of: {allowed})") from None


def matches_search(task: Task, query: str) -> bool:
    q = query.lower()
    return (
        q in task.title.lower()
        or q in task.description.lower()
        or any(q in tag.lower() for tag in task.tags)
        or q in task.category.value.lower()
    )


def is_overdue(task: Task, now: datetime) -> bool:
    if task.due_date is None or task.completed:
        return False
    return ensure_aware(task.due_date) < ensure_aware(now)


def is_due_today(task: Task, now: datetime) -> bool:
    """Pending task due between local midnight (inclusive) and the next midnight (exclusive)."""
    if task.due_date is None or task.completed:
        return False
    start, end = local_day_bounds(now)
    return start <= ensure_aware(task.due_date) < end


def _selector_predicate(selector: FilterSelector, now: datetime) -> Callable[[Task], bool] | None:
    if selector is FilterSelector.ALL:
        return None
    if selector is FilterSelector.PENDING:
        return lambda t: not t.completed
    if selector is FilterSelector.COMPLETED:
        return lambda t: t.completed
    if selector is FilterSelector.HIGH:
        return lambda t: t.priority is Priority.HIGH
    if selector is FilterSelector.URGENT:
        return lambda t: t.priority is Priority.URGENT
    if selector is FilterSelector.OVERDUE:
        return lambda t: is_overdue(t, now)
    if selector is FilterSelector.TODAY:
        return lambda t: is_due_today(t, now)
    raise ValidationError(f"Unsupported filter: {selector!r}")


def sort_key(task: Task) -> tuple[bool, int, int, float, float]:
    due = ensure_aware(task.due_date)
    return (
        task.completed,
        -task.priority.rank,
        0 if due is not None else 1,
        due.timestamp() if due is not None else 0.0,
        -ensure_aware(task.created_at).timestamp(),
    )


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=sort_key)


def query_tasks(
    tasks: Iterable[Task],
    selector: FilterSelector | str = FilterSelector.ALL,
    search: str = "",
    *,
    now: datetime | None = None,
) -> list[Task]:
    selector = FilterSelector.parse(selector)
    now = now if now is not None else local_now()

    result = list(tasks)
    if search:
        result = [t for t in result if matches_search(t, search)]

    predicate = _selector_predicate(selector, now)
    if predicate is not None:
        result = [t for t in result if predicate(t)]

    return sort_tasks(result)


__all__ = [
    "FilterSelector",
    "is_due_today",
    "is_overdue",
    "matches_search",
    "query_tasks",
    "sort_key",
    "sort_tasks",
]
