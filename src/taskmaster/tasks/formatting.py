# src/taskmaster/tasks/formatting.py

"""Plain-text rendering helpers for the console front-end."""

from __future__ import annotations

from datetime import datetime

from ..datetime_utils import ensure_aware
from .task_models import Task

PRIORITY_MARKS = {
    "urgent": "!!!",
    "high": "!!",
    "medium": "!",
    "low": ".",
}


def format_duration(minutes: int | None) -> str:
    if not minutes:
        return ""
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def format_due(due: datetime | None, now: datetime) -> str:
    if due is None:
        return ""
    local_due = ensure_aware(due).astimezone()
    days = (local_due.date() - ensure_aware(now).astimezone().date()).days
    clock = local_due.strftime("%H:%M")
    if days == 0:
        return f"Today {clock}"
    if days == 1:
        return f"Tomorrow {clock}"
    if days == -1:
        return f"Yesterday {clock}"
    return local_due.strftime("%Y-%m-%d %H:%M")


def subtask_progress(task: Task) -> str:
    if not task.subtasks:
        return ""
    done = sum(1 for s in task.subtasks if s.completed)
    return f"{done}/{len(task.subtasks)}"


def format_task_line(task: Task, now: datetime, *, selected: bool = False) -> str:
    box = "[x]" if task.completed else "[ ]"
    sel = "*" if selected else " "
    parts = [f"{sel}{box} #{task.id} {PRIORITY_MARKS[task.priority.value]} {task.title}"]

    meta: list[str] = [task.category.value]
    due = format_due(task.due_date, now)
    if due:
        meta.append(f"due {due}")
    if task.estimated_time:
        meta.append(format_duration(task.estimated_time))
    progress = subtask_progress(task)
    if progress:
        meta.append(f"subtasks {progress}")
    if task.recurring:
        meta.append(f"repeats {task.recurrence_pattern.value}")
    if task.tags:
        meta.append(" ".join(f"#{t}" for t in task.tags))

    parts.append(f"({', '.join(meta)})")
    return " ".join(parts)


def format_task_details(task: Task, now: datetime) -> str:
    lines = [
        f"#{task.id} {task.title}",
        f"  Status: {'completed' if task.completed else 'pending'}",
        f"  Priority: {task.priority.value}",
        f"  Category: {task.category.label}",
    ]
    if task.description:
        lines.append(f"  Description: {task.description}")
    if task.due_date:
        lines.append(f"  Due: {format_due(task.due_date, now)}")
    if task.estimated_time:
        lines.append(f"  Estimated: {format_duration(task.estimated_time)}")
    if task.tags:
        lines.append(f"  Tags: {', '.join(task.tags)}")
    if task.location:
        lines.append(f"  Location: {task.location}")
    if task.url:
        lines.append(f"  URL: {task.url}")
    if task.recurring:
        lines.append(f"  Repeats: {task.recurrence_pattern.value}")
    for i, sub in enumerate(task.subtasks, start=1):
        lines.append(f"  {i}. [{'x' if sub.completed else ' '}] {sub.title}")
    return "\n".join(lines)
