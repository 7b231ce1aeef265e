# src/taskmaster/datetime_utils.py

"""Helpers for aware datetimes and the ISO-8601 form used in task records."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

UTC = timezone.utc


def local_now() -> datetime:
    return datetime.now().astimezone()


def ensure_aware(dt: datetime | None) -> datetime | None:
    """Naive datetimes are taken as local time."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.astimezone()
    return dt


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse a record timestamp.

    Accepts datetime objects, ISO-8601 strings (with or without a trailing "Z")
    and epoch milliseconds. Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min).astimezone()
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_aware(dt)


def format_timestamp(dt: datetime | None) -> str | None:
    """UTC, millisecond precision, "Z" suffix (2024-01-31T09:00:00.000Z)."""
    if dt is None:
        return None
    dt = ensure_aware(dt).astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def local_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[local midnight, next local midnight) for the calendar day containing now."""
    day = ensure_aware(now).astimezone().date()
    start = datetime.combine(day, time.min).astimezone()
    end = datetime.combine(day + timedelta(days=1), time.min).astimezone()
    return start, end


__all__ = [
    "UTC",
    "ensure_aware",
    "format_timestamp",
    "local_day_bounds",
    "local_now",
    "parse_timestamp",
]
