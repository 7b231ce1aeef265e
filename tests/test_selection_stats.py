# tests/test_selection_stats.py

from __future__ import annotations

from datetime import timedelta

from taskmaster.tasks.formatting import format_due, format_duration
from taskmaster.tasks.selection import Selection
from taskmaster.tasks.stats import productivity_stats
from taskmaster.tasks.task_models import TaskInput
from taskmaster.tasks.task_store import TaskStore

from .fakes import FixedClock


def test_select_all_toggles_between_all_and_none(store: TaskStore) -> None:
    tasks = [store.create(TaskInput(title=t)) for t in ("a", "b", "c")]
    sel = Selection()

    sel.toggle(tasks[0].id)
    assert not sel.all_selected(tasks)

    assert sel.select_all(tasks) is True
    assert sel.ids == {t.id for t in tasks}

    assert sel.select_all(tasks) is False
    assert len(sel) == 0


def test_select_all_keeps_selected_tasks_outside_the_view(store: TaskStore) -> None:
    a, b = (store.create(TaskInput(title=t)) for t in ("a", "b"))
    sel = Selection()
    sel.toggle(a.id)
    sel.toggle(b.id)

    assert sel.select_all([a]) is False
    assert sel.ids == {b.id}


def test_all_selected_is_false_for_empty_view() -> None:
    assert Selection().all_selected([]) is False


def test_productivity_stats(store: TaskStore, clock: FixedClock) -> None:
    today = store.create(TaskInput(title="today"))
    this_week = store.create(TaskInput(title="week"))
    old = store.create(TaskInput(title="old"))
    store.create(TaskInput(title="pending"))

    store.toggle_completion(today.id)
    store.toggle_completion(this_week.id)
    store.toggle_completion(old.id)
    this_week.completed_at = clock.now - timedelta(days=3)
    old.completed_at = clock.now - timedelta(days=10)

    stats = productivity_stats(store.tasks, clock.now)

    assert stats.total_tasks == 4
    assert stats.total_completed == 3
    assert stats.pending == 1
    assert stats.today_completed == 1
    assert stats.week_completed == 2
    assert stats.completion_rate == 75


def test_productivity_stats_empty(clock: FixedClock) -> None:
    assert productivity_stats([], clock.now).completion_rate == 0


def test_format_helpers(clock: FixedClock) -> None:
    assert format_duration(45) == "45m"
    assert format_duration(120) == "2h"
    assert format_duration(90) == "1h 30m"
    assert format_duration(None) == ""
    assert format_due(clock.now + timedelta(days=1), clock.now).startswith("Tomorrow")
    assert format_due(clock.now, clock.now).startswith("Today")
