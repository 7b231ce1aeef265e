# src/taskmaster/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.ports import Clock, TaskBlobStorage, TaskRecord, WarningSink
from ..datetime_utils import local_now
from ..errors import NotFoundError, PersistenceError, ValidationError
from .recurrence import spawn_recurrence
from .task_models import (
    Category,
    Priority,
    RecurrencePattern,
    Subtask,
    Task,
    TaskInput,
    TaskPatch,
    parse_due_date,
    parse_estimated_time,
    parse_subtasks,
    parse_tags,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ToggleResult:
    task: Task
    spawned: Task | None = None


def _coerce_id(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if not raw.is_integer():
            return None
        raw = int(raw)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class TaskStore:
    """
    In-memory owner of the task list.

    - the list is kept most-recent-first (new and spawned tasks go to the front)
    - identifiers come from a counter that only moves forward
    - every mutation is followed by a synchronous save through the blob port;
      a failed save keeps the in-memory change and is reported as a warning

    Thread-safety:
    - mutations are serialized by a re-entrant lock (single writer)
    """

    def __init__(
        self,
        storage: TaskBlobStorage,
        *,
        clock: Clock = local_now,
        on_warning: WarningSink | None = None,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self.on_warning = on_warning
        self.last_persistence_error: PersistenceError | None = None

        self._tasks: list[Task] = []
        self._next_id = 1
        self._lock = threading.RLock()

    # ---- read API ----

    @property
    def tasks(self) -> list[Task]:
        """Snapshot of the stored order (most recent first)."""
        with self._lock:
            return list(self._tasks)

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._tasks)

    def now(self) -> datetime:
        return self._clock()

    def find(self, task_id: int) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def get(self, task_id: int) -> Task:
        task = self.find(task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    # ---- persistence ----

    def load(self) -> int:
        """
        Replace the in-memory list with the stored blob.

        A failing or corrupt blob leaves an empty list. Entries that are not
        mappings are skipped; missing fields are back-filled. Returns the
        number of tasks loaded.
        """
        with self._lock:
            raw: Any = None
            try:
                raw = self._storage.load()
            except PersistenceError as e:
                self._report(e, "load")

            if raw is not None and not isinstance(raw, list):
                logger.warning("Ignoring corrupt task blob (%s) from %s", type(raw).__name__, self._describe())
                raw = None

            tasks, next_id = self._adopt_records(raw or [], taken=set(), next_id=1)
            self._tasks = tasks
            self._next_id = next_id
            logger.info("TaskStore loaded %d tasks from %s (next_id=%d)", len(tasks), self._describe(), next_id)
            return len(tasks)

    def save(self) -> bool:
        """Persist the current list. Returns False when the backend failed."""
        with self._lock:
            return self._persist()

    def export_records(self) -> list[TaskRecord]:
        with self._lock:
            return [t.to_record() for t in self._tasks]

    def import_records(self, records: Any) -> list[Task]:
        """
        Append imported records after the existing ones.

        Identifiers are kept when free; colliding or invalid ones get fresh
        identifiers from the counter.
        """
        if not isinstance(records, (list, tuple)):
            raise ValidationError("Invalid import payload: expected a list of task records")

        with self._lock:
            taken = {t.id for t in self._tasks}
            imported, next_id = self._adopt_records(records, taken=taken, next_id=self._next_id)
            self._tasks.extend(imported)
            self._next_id = next_id
            logger.info("Imported %d tasks (next_id=%d)", len(imported), next_id)
            self._persist()
            return imported

    # ---- mutations ----

    def create(self, data: TaskInput) -> Task:
        title = (data.title or "").strip()
        if not title:
            raise ValidationError("Please enter a task title")

        priority = Priority.parse(data.priority)
        category = Category.parse(data.category)
        pattern = RecurrencePattern.parse(data.recurrence_pattern)
        due_date = parse_due_date(data.due_date)
        estimated_time = parse_estimated_time(data.estimated_time)

        with self._lock:
            task = Task(
                id=self._allocate_id(),
                title=title,
                created_at=self._clock(),
                description=data.description or "",
                priority=priority,
                category=category,
                due_date=due_date,
                estimated_time=estimated_time,
                tags=parse_tags(data.tags),
                subtasks=parse_subtasks(data.subtasks),
                location=data.location or "",
                url=data.url or "",
                recurring=bool(data.recurring),
                recurrence_pattern=pattern,
            )
            self._tasks.insert(0, task)
            logger.debug(
                "Task created id=%s priority=%s category=%s due=%s recurring=%s",
                task.id,
                task.priority.value,
                task.category.value,
                task.due_date,
                task.recurring,
            )
            self._persist()
            return task

    def update(self, task_id: int, patch: TaskPatch) -> Task:
        with self._lock:
            task = self.get(task_id)
            changes = self._validate_patch(patch)
            for name, value in changes.items():
                setattr(task, name, value)
            logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
            self._persist()
            return task

    def toggle_completion(self, task_id: int) -> ToggleResult:
        with self._lock:
            task = self.get(task_id)
            now = self._clock()

            task.completed = not task.completed
            task.completed_at = now if task.completed else None

            spawned: Task | None = None
            if task.completed and task.recurring:
                spawned = spawn_recurrence(task, new_id=self._allocate_id(), now=now)
                self._tasks.insert(0, spawned)
                logger.info(
                    "Recurring task %s spawned id=%s pattern=%s due=%s",
                    task.id,
                    spawned.id,
                    spawned.recurrence_pattern.value,
                    spawned.due_date,
                )

            logger.debug("Task toggled id=%s completed=%s", task_id, task.completed)
            self._persist()
            return ToggleResult(task=task, spawned=spawned)

    def toggle_subtask(self, task_id: int, index: int) -> Subtask:
        """Subtasks are addressed by position; removing or reordering them shifts indices."""
        with self._lock:
            task = self.get(task_id)
            if not 0 <= index < len(task.subtasks):
                raise NotFoundError(f"Task {task_id} has no subtask #{index + 1}")
            sub = task.subtasks[index]
            sub.completed = not sub.completed
            self._persist()
            return sub

    def delete(self, task_id: int) -> bool:
        with self._lock:
            task = self.find(task_id)
            if task is None:
                return False
            self._tasks.remove(task)
            logger.debug("Task deleted id=%s", task_id)
            self._persist()
            return True

    def bulk_delete(self, task_ids: Iterable[int]) -> int:
        """Remove every task whose id is in task_ids; unknown ids are ignored."""
        ids = set(task_ids)
        with self._lock:
            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if t.id not in ids]
            removed = before - len(self._tasks)
            if removed:
                logger.debug("Bulk delete removed=%d requested=%d", removed, len(ids))
                self._persist()
            return removed

    def clear_completed(self) -> int:
        with self._lock:
            before = len(self._tasks)
            self._tasks = [t for t in self._tasks if not t.completed]
            removed = before - len(self._tasks)
            if removed:
                logger.debug("Cleared %d completed tasks", removed)
                self._persist()
            return removed

    # ---- helpers ----

    def _allocate_id(self) -> int:
        task_id = self._next_id
        self._next_id += 1
        return task_id

    def _validate_patch(self, patch: TaskPatch) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for name, value in patch.supplied().items():
            if name == "title":
                title = (value or "").strip()
                if not title:
                    raise ValidationError("Task title cannot be empty")
                changes[name] = title
            elif name in ("description", "location", "url"):
                changes[name] = str(value or "")
            elif name == "priority":
                changes[name] = Priority.parse(value)
            elif name == "category":
                changes[name] = Category.parse(value)
            elif name == "recurrence_pattern":
                changes[name] = RecurrencePattern.parse(value)
            elif name == "due_date":
                changes[name] = parse_due_date(value)
            elif name == "estimated_time":
                changes[name] = parse_estimated_time(value)
            elif name == "tags":
                changes[name] = parse_tags(value)
            elif name == "subtasks":
                changes[name] = parse_subtasks(value)
            elif name == "recurring":
                changes[name] = bool(value)
        return changes

    def _adopt_records(
        self,
        records: Iterable[Any],
        *,
        taken: set[int],
        next_id: int,
    ) -> tuple[list[Task], int]:
        """Turn raw records into Tasks, keeping ids unique against `taken`."""
        now = self._clock()
        mappings = [r for r in records if isinstance(r, Mapping)]

        wanted = [_coerce_id(r.get("id")) for r in mappings]
        next_id = max([next_id, *(i + 1 for i in wanted if i is not None), *(i + 1 for i in taken)])

        used = set(taken)
        out: list[Task] = []
        for raw, task_id in zip(mappings, wanted):
            if task_id is None or task_id in used:
                task_id = next_id
                next_id += 1
            used.add(task_id)
            out.append(Task.from_record(raw, task_id=task_id, now=now))
        return out, next_id

    def _persist(self) -> bool:
        records = [t.to_record() for t in self._tasks]
        try:
            self._storage.save(records)
        except PersistenceError as e:
            self._report(e, "save")
            return False
        self.last_persistence_error = None
        return True

    def _report(self, error: PersistenceError, action: str) -> None:
        self.last_persistence_error = error
        logger.warning("Failed to %s tasks via %s: %s", action, self._describe(), error)
        if self.on_warning is not None:
            with contextlib.suppress(Exception):
                self.on_warning(f"Error {'loading saved' if action == 'load' else 'saving'} tasks: {error}")

    def _describe(self) -> str:
        with contextlib.suppress(Exception):
            return self._storage.describe()
        return type(self._storage).__name__
