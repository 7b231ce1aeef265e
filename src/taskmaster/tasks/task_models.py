# src/taskmaster/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any

from ..datetime_utils import ensure_aware, format_timestamp, parse_timestamp
from ..errors import ValidationError


class _Unset(Enum):
    UNSET = "unset"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET
# Marks a TaskPatch field that was not supplied (as opposed to None = "clear it").


class _RecordEnum(StrEnum):
    """StrEnum with a strict parser for user input and a lenient one for stored records."""

    @classmethod
    def default(cls) -> _RecordEnum:
        raise NotImplementedError

    @classmethod
    def parse(cls, raw: Any) -> _RecordEnum:
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(f"Unknown {cls.__name__.lower()} {raw!r} (expected one of: {allowed})") from None

    @classmethod
    def from_record(cls, raw: Any) -> _RecordEnum:
        if not raw:
            return cls.default()
        try:
            return cls.parse(raw)
        except ValidationError:
            return cls.default()


class Priority(_RecordEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def default(cls) -> Priority:
        return cls.MEDIUM

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[Priority, int] = {
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class Category(_RecordEnum):
    PERSONAL = "personal"
    WORK = "work"
    HEALTH = "health"
    FINANCE = "finance"
    EDUCATION = "education"
    SHOPPING = "shopping"
    TRAVEL = "travel"
    HOME = "home"
    OTHER = "other"

    @classmethod
    def default(cls) -> Category:
        return cls.PERSONAL

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[Category, str] = {
    Category.PERSONAL: "👤 Personal",
    Category.WORK: "💼 Work",
    Category.HEALTH: "🏥 Health",
    Category.FINANCE: "💰 Finance",
    Category.EDUCATION: "📚 Education",
    Category.SHOPPING: "🛒 Shopping",
    Category.TRAVEL: "✈️ Travel",
    Category.HOME: "🏠 Home",
    Category.OTHER: "📋 Other",
}


class RecurrencePattern(_RecordEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def default(cls) -> RecurrencePattern:
        return cls.DAILY


def parse_tags(raw: str | Iterable[Any] | None) -> list[str]:
    """
    Normalize tags.

    A string is split on commas; every piece is trimmed and lowercased, empty
    pieces are dropped and repeats keep their first position.
    """
    if raw is None:
        return []
    pieces: Iterable[Any] = raw.split(",") if isinstance(raw, str) else raw

    out: list[str] = []
    for piece in pieces:
        tag = str(piece).strip().lower()
        if tag and tag not in out:
            out.append(tag)
    return out


def parse_estimated_time(raw: Any) -> int | None:
    """Minutes; None/"" means not set. Negative or non-numeric input is rejected."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid estimated time: {raw!r}")
    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid estimated time: {raw!r}") from None
    if minutes < 0:
        raise ValidationError("Estimated time cannot be negative")
    return minutes


def parse_due_date(raw: Any) -> datetime | None:
    if raw is None or raw == "":
        return None
    dt = parse_timestamp(raw)
    if dt is None:
        raise ValidationError(f"Invalid due date: {raw!r}")
    return dt


@dataclass(slots=True)
class Subtask:
    title: str
    completed: bool = False

    def to_record(self) -> dict[str, Any]:
        return {"title": self.title, "completed": self.completed}

    @classmethod
    def from_any(cls, raw: Any) -> Subtask | None:
        if isinstance(raw, Subtask):
            return cls(title=raw.title, completed=raw.completed)
        if isinstance(raw, Mapping):
            title = str(raw.get("title") or "").strip()
            return cls(title=title, completed=bool(raw.get("completed", False))) if title else None
        if isinstance(raw, str):
            title = raw.strip()
            return cls(title=title) if title else None
        return None


def parse_subtasks(raw: Iterable[Any] | None) -> list[Subtask]:
    if not raw or isinstance(raw, (str, bytes, Mapping)):
        return []
    out: list[Subtask] = []
    for item in raw:
        sub = Subtask.from_any(item)
        if sub is not None:
            out.append(sub)
    return out


@dataclass(slots=True)
class Task:
    id: int
    title: str
    created_at: datetime

    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: Category = Category.PERSONAL
    completed: bool = False
    completed_at: datetime | None = None
    due_date: datetime | None = None
    estimated_time: int | None = None
    tags: list[str] = field(default_factory=list)
    subtasks: list[Subtask] = field(default_factory=list)
    location: str = ""
    url: str = ""
    recurring: bool = False
    recurrence_pattern: RecurrencePattern = RecurrencePattern.DAILY
    time_spent: int = 0

    def to_record(self) -> dict[str, Any]:
        """Serialize into the persisted/exported record shape."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "category": self.category.value,
            "completed": self.completed,
            "createdAt": format_timestamp(self.created_at),
            "completedAt": format_timestamp(self.completed_at),
            "dueDate": format_timestamp(self.due_date),
            "estimatedTime": self.estimated_time,
            "tags": list(self.tags),
            "subtasks": [s.to_record() for s in self.subtasks],
            "location": self.location,
            "url": self.url,
            "recurring": self.recurring,
            "recurrencePattern": self.recurrence_pattern.value,
            "timeSpent": self.time_spent,
        }

    @classmethod
    def from_record(cls, raw: Mapping[str, Any], *, task_id: int, now: datetime) -> Task:
        """
        Build a Task from a stored record, back-filling anything missing.

        Old records kept the title under "text". Values that cannot be parsed
        fall back to their defaults instead of rejecting the record.
        """
        created_at = parse_timestamp(raw.get("createdAt")) or ensure_aware(now)
        completed = bool(raw.get("completed") or False)
        completed_at = parse_timestamp(raw.get("completedAt")) if completed else None
        if completed and completed_at is None:
            completed_at = created_at

        try:
            estimated_time = parse_estimated_time(raw.get("estimatedTime"))
        except ValidationError:
            estimated_time = None

        try:
            time_spent = max(0, int(raw.get("timeSpent") or 0))
        except (TypeError, ValueError):
            time_spent = 0

        tags_raw = raw.get("tags")
        title = str(raw.get("text") or raw.get("title") or "").strip() or "Untitled Task"

        return cls(
            id=task_id,
            title=title,
            created_at=created_at,
            description=str(raw.get("description") or ""),
            priority=Priority.from_record(raw.get("priority")),
            category=Category.from_record(raw.get("category")),
            completed=completed,
            completed_at=completed_at,
            due_date=parse_timestamp(raw.get("dueDate")),
            estimated_time=estimated_time,
            tags=parse_tags(tags_raw if isinstance(tags_raw, (str, list, tuple)) else None),
            subtasks=parse_subtasks(raw.get("subtasks")),
            location=str(raw.get("location") or ""),
            url=str(raw.get("url") or ""),
            recurring=bool(raw.get("recurring") or False),
            recurrence_pattern=RecurrencePattern.from_record(raw.get("recurrencePattern")),
            time_spent=time_spent,
        )


@dataclass(slots=True)
class TaskInput:
    """Fields accepted by TaskStore.create. Tags may be a raw comma-separated string."""

    title: str
    description: str = ""
    priority: Priority | str = Priority.MEDIUM
    category: Category | str = Category.PERSONAL
    due_date: datetime | str | None = None
    estimated_time: int | str | None = None
    tags: str | list[str] | None = None
    subtasks: list[Subtask | Mapping[str, Any] | str] | None = None
    location: str = ""
    url: str = ""
    recurring: bool = False
    recurrence_pattern: RecurrencePattern | str = RecurrencePattern.DAILY


@dataclass(slots=True)
class TaskPatch:
    """
    Partial update for TaskStore.update.

    Fields left as UNSET are not touched. None clears due_date / estimated_time.
    """

    title: str | _Unset = UNSET
    description: str | _Unset = UNSET
    priority: Priority | str | _Unset = UNSET
    category: Category | str | _Unset = UNSET
    due_date: datetime | str | None | _Unset = UNSET
    estimated_time: int | str | None | _Unset = UNSET
    tags: str | list[str] | _Unset = UNSET
    subtasks: list[Subtask | Mapping[str, Any] | str] | _Unset = UNSET
    location: str | _Unset = UNSET
    url: str | _Unset = UNSET
    recurring: bool | _Unset = UNSET
    recurrence_pattern: RecurrencePattern | str | _Unset = UNSET

    def supplied(self) -> dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in self.__dataclass_fields__
            if getattr(self, name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.supplied()
