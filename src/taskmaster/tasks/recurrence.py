# src/taskmaster/tasks/recurrence.py

from __future__ import annotations

"""
Recurrence date math.

The next due date is always computed from the previous due date, never from
"now". Steps are taken on the local wall clock, so a 09:00 task stays at 09:00
across a DST change. Month and year steps clamp to the last day of the target month
(Jan 31 + 1 month -> Feb 28/29, Feb 29 + 1 year -> Feb 28).
"""

import calendar
from dataclasses import replace
from datetime import datetime, timedelta

from ..datetime_utils import ensure_aware
from .task_models import RecurrencePattern, Subtask, Task


def add_months(dt: datetime, months: int) -> datetime:
    total = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, last_day))


def next_due_date(due: datetime, pattern: RecurrencePattern) -> datetime:
    wall = ensure_aware(due).astimezone().replace(tzinfo=None)
    if pattern is RecurrencePattern.DAILY:
        wall += timedelta(days=1)
    elif pattern is RecurrencePattern.WEEKLY:
        wall += timedelta(days=7)
    elif pattern is RecurrencePattern.MONTHLY:
        wall = add_months(wall, 1)
    elif pattern is RecurrencePattern.YEARLY:
        wall = add_months(wall, 12)
    else:
        raise ValueError(f"unsupported recurrence pattern: {pattern!r}")
    return wall.astimezone()


def spawn_recurrence(task: Task, *, new_id: int, now: datetime) -> Task:
    """
    Clone a just-completed recurring task into its next pending occurrence.

    Subtask titles and order are kept, their completion flags are reset.
    A task without a due date spawns a clone without one.
    """
    due = next_due_date(task.due_date, task.recurrence_pattern) if task.due_date else None
    return replace(
        task,
        id=new_id,
        completed=False,
        completed_at=None,
        created_at=now,
        due_date=due,
        time_spent=0,
        tags=list(task.tags),
        subtasks=[Subtask(title=s.title, completed=False) for s in task.subtasks],
    )
