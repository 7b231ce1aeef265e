# tests/test_task_query.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from taskmaster.datetime_utils import local_day_bounds
from taskmaster.errors import ValidationError
from taskmaster.tasks.task_models import Category, Priority, Task
from taskmaster.tasks.task_query import FilterSelector, is_due_today, query_tasks

NOW = datetime(2024, 3, 15, 12, 0).astimezone()


def make_task(task_id: int, title: str = "task", *, created_offset_min: int = 0, **kwargs) -> Task:
    return Task(
        id=task_id,
        title=title,
        created_at=NOW - timedelta(days=1) + timedelta(minutes=created_offset_min),
        **kwargs,
    )


def ids(tasks: list[Task]) -> list[int]:
    return [t.id for t in tasks]


def test_completion_dominates_priority_then_priority_dominates_due() -> None:
    a = make_task(1, "A", priority=Priority.HIGH, due_date=NOW + timedelta(days=1))
    b = make_task(2, "B", priority=Priority.URGENT)
    c = make_task(3, "C", priority=Priority.URGENT, completed=True, completed_at=NOW, due_date=NOW)

    assert ids(query_tasks([a, c, b], now=NOW)) == [2, 1, 3]


def test_due_dates_sort_before_missing_and_earlier_first() -> None:
    later = make_task(1, due_date=NOW + timedelta(days=3))
    none = make_task(2)
    sooner = make_task(3, due_date=NOW + timedelta(hours=1))

    assert ids(query_tasks([later, none, sooner], now=NOW)) == [3, 1, 2]


def test_remaining_ties_break_by_newest_created() -> None:
    old = make_task(1, created_offset_min=0)
    new = make_task(2, created_offset_min=30)
    same_due_old = make_task(3, created_offset_min=5, due_date=NOW)
    same_due_new = make_task(4, created_offset_min=50, due_date=NOW)

    assert ids(query_tasks([old, new, same_due_old, same_due_new], now=NOW)) == [4, 3, 2, 1]


def test_search_matches_tags_by_substring() -> None:
    milk = make_task(1, "Buy milk", tags=["grocery"])
    mom = make_task(2, "Call mom")

    assert ids(query_tasks([milk, mom], search="gro", now=NOW)) == [1]


def test_search_is_case_insensitive_over_description_and_category() -> None:
    desc = make_task(1, "Plan", description="Book the HOTEL")
    cat = make_task(2, "Passport", category=Category.TRAVEL)
    other = make_task(3, "Laundry", category=Category.HOME)

    assert ids(query_tasks([desc, other], search="hotel", now=NOW)) == [1]
    assert ids(query_tasks([cat, other], search="TRAV", now=NOW)) == [2]


def test_priority_filters_are_exact() -> None:
    high = make_task(1, priority=Priority.HIGH)
    urgent = make_task(2, priority=Priority.URGENT)

    assert ids(query_tasks([high, urgent], "high", now=NOW)) == [1]
    assert ids(query_tasks([high, urgent], FilterSelector.URGENT, now=NOW)) == [2]


def test_pending_and_completed_filters() -> None:
    open_ = make_task(1)
    done = make_task(2, completed=True, completed_at=NOW)

    assert ids(query_tasks([open_, done], "pending", now=NOW)) == [1]
    assert ids(query_tasks([open_, done], "completed", now=NOW)) == [2]
    assert ids(query_tasks([open_, done], "all", now=NOW)) == [1, 2]


def test_overdue_excludes_completed_and_future() -> None:
    late = make_task(1, due_date=NOW - timedelta(minutes=1))
    late_done = make_task(2, due_date=NOW - timedelta(days=2), completed=True, completed_at=NOW)
    future = make_task(3, due_date=NOW + timedelta(minutes=1))
    undated = make_task(4)

    assert ids(query_tasks([late, late_done, future, undated], "overdue", now=NOW)) == [1]


def test_today_is_midnight_inclusive_next_midnight_exclusive() -> None:
    midnight = datetime(2024, 3, 15, 0, 0).astimezone()
    next_midnight = datetime(2024, 3, 16, 0, 0).astimezone()
    last_minute = datetime(2024, 3, 15, 23, 59).astimezone()

    start = make_task(1, due_date=midnight)
    end = make_task(2, due_date=last_minute)
    tomorrow = make_task(3, due_date=next_midnight)
    done_today = make_task(4, due_date=midnight, completed=True, completed_at=NOW)

    assert ids(query_tasks([start, end, tomorrow, done_today], "today", now=NOW)) == [1, 2]
    assert is_due_today(tomorrow, NOW) is False


@pytest.mark.usefixtures("new_york_tz")
def test_today_window_spans_local_midnights_on_dst_change() -> None:
    now = datetime(2024, 3, 10, 12, 0).astimezone()
    start, end = local_day_bounds(now)

    assert start.replace(tzinfo=None) == datetime(2024, 3, 10, 0, 0)
    assert end.replace(tzinfo=None) == datetime(2024, 3, 11, 0, 0)
    assert end - start == timedelta(hours=23)

    late = make_task(1, due_date=datetime(2024, 3, 10, 23, 30).astimezone())
    next_day = make_task(2, due_date=datetime(2024, 3, 11, 0, 30).astimezone())
    assert ids(query_tasks([late, next_day], "today", now=now)) == [1]


def test_search_and_filter_combine() -> None:
    a = make_task(1, "Buy milk", priority=Priority.HIGH)
    b = make_task(2, "Buy bread", priority=Priority.LOW)
    c = make_task(3, "Sell car", priority=Priority.HIGH)

    assert ids(query_tasks([a, b, c], "high", "buy", now=NOW)) == [1]


def test_query_is_deterministic_and_does_not_mutate_input() -> None:
    tasks = [
        make_task(1, priority=Priority.LOW),
        make_task(2, priority=Priority.URGENT, due_date=NOW),
        make_task(3, completed=True, completed_at=NOW),
    ]
    snapshot = [t.to_record() for t in tasks]

    first = query_tasks(tasks, "all", "", now=NOW)
    second = query_tasks(tasks, "all", "", now=NOW)

    assert ids(first) == ids(second)
    assert first is not tasks
    assert ids(tasks) == [1, 2, 3]
    assert [t.to_record() for t in tasks] == snapshot


def test_unknown_filter_is_rejected() -> None:
    with pytest.raises(ValidationError):
        query_tasks([], "someday", now=NOW)
