# src/taskmaster/tasks/stats.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..datetime_utils import ensure_aware
from .task_models import Task


@dataclass(slots=True, frozen=True)
class ProductivityStats:
    total_tasks: int
    total_completed: int
    pending: int
    today_completed: int
    week_completed: int
    completion_rate: int  # percent, rounded


def productivity_stats(tasks: Iterable[Task], now: datetime) -> ProductivityStats:
    tasks = list(tasks)
    now = ensure_aware(now).astimezone()
    today = now.date()
    week_ago = now - timedelta(days=7)

    completed = [t for t in tasks if t.completed]
    done_at = [ensure_aware(t.completed_at) for t in completed if t.completed_at is not None]

    total = len(tasks)
    return ProductivityStats(
        total_tasks=total,
        total_completed=len(completed),
        pending=total - len(completed),
        today_completed=sum(1 for d in done_at if d.astimezone().date() == today),
        week_completed=sum(1 for d in done_at if d >= week_ago),
        completion_rate=round(len(completed) / total * 100) if total else 0,
    )
