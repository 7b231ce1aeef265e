# tests/test_task_store.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from taskmaster.errors import NotFoundError, ValidationError
from taskmaster.tasks.task_models import Priority, Subtask, TaskInput, TaskPatch
from taskmaster.tasks.task_store import TaskStore

from .fakes import FakeBlobStorage, FixedClock


def test_create_assigns_increasing_ids_and_prepends(store: TaskStore, storage: FakeBlobStorage) -> None:
    first = store.create(TaskInput(title="  First  "))
    second = store.create(TaskInput(title="Second", priority="high", tags=" Work, URGENT ,, home "))

    assert first.title == "First"
    assert second.id > first.id
    assert [t.id for t in store.tasks] == [second.id, first.id]
    assert second.priority is Priority.HIGH
    assert second.tags == ["work", "urgent", "home"]
    assert first.completed is False and first.completed_at is None
    assert len(storage.saves) == 2
    assert storage.last_saved[0]["id"] == second.id


def test_create_rejects_blank_title_without_side_effects(store: TaskStore, storage: FakeBlobStorage) -> None:
    with pytest.raises(ValidationError):
        store.create(TaskInput(title="   "))
    assert len(store) == 0
    assert storage.saves == []

    task = store.create(TaskInput(title="ok"))
    assert task.id == 1


def test_create_rejects_bad_enum_before_allocating_id(store: TaskStore) -> None:
    with pytest.raises(ValidationError):
        store.create(TaskInput(title="x", category="groceries"))
    assert store.next_id == 1


def test_update_applies_only_supplied_fields(store: TaskStore, clock: FixedClock) -> None:
    task = store.create(
        TaskInput(title="Report", description="draft", due_date=clock.now + timedelta(days=1), estimated_time=30)
    )

    store.update(task.id, TaskPatch(priority="urgent", tags="Q1, Finance"))
    assert task.priority is Priority.URGENT
    assert task.tags == ["q1", "finance"]
    assert task.description == "draft"
    assert task.due_date is not None

    store.update(task.id, TaskPatch(due_date=None, estimated_time=None))
    assert task.due_date is None
    assert task.estimated_time is None
    assert task.title == "Report"


def test_update_is_atomic_on_validation_error(store: TaskStore, storage: FakeBlobStorage) -> None:
    task = store.create(TaskInput(title="Keep"))
    saves = len(storage.saves)

    with pytest.raises(ValidationError):
        store.update(task.id, TaskPatch(description="changed", title="  "))

    assert task.title == "Keep"
    assert task.description == ""
    assert len(storage.saves) == saves


def test_update_unknown_id_raises(store: TaskStore) -> None:
    with pytest.raises(NotFoundError):
        store.update(99, TaskPatch(title="x"))


def test_toggle_completion_is_its_own_inverse(store: TaskStore, clock: FixedClock) -> None:
    task = store.create(TaskInput(title="Once"))

    result = store.toggle_completion(task.id)
    assert result.task.completed is True
    assert result.task.completed_at == clock.now
    assert result.spawned is None

    store.toggle_completion(task.id)
    assert task.completed is False
    assert task.completed_at is None
    assert len(store) == 1


def test_toggle_recurring_task_spawns_next_occurrence(store: TaskStore, clock: FixedClock) -> None:
    due = datetime(2024, 1, 31, 9, 0).astimezone()
    task = store.create(
        TaskInput(
            title="Pay rent",
            due_date=due,
            recurring=True,
            recurrence_pattern="monthly",
            subtasks=[{"title": "transfer", "completed": True}],
        )
    )
    clock.advance(hours=1)

    result = store.toggle_completion(task.id)
    spawned = result.spawned

    assert spawned is not None
    assert len(store) == 2
    assert store.tasks[0] is spawned
    assert task.completed is True
    assert spawned.id not in {task.id} and spawned.id > task.id
    assert spawned.completed is False
    assert spawned.completed_at is None
    assert spawned.created_at == clock.now
    assert spawned.due_date == datetime(2024, 2, 29, 9, 0).astimezone()
    assert spawned.subtasks == [Subtask("transfer", False)]


@pytest.mark.usefixtures("new_york_tz")
def test_recurring_spawn_from_loaded_record_follows_local_calendar(clock: FixedClock) -> None:
    storage = FakeBlobStorage(
        payload=[
            {
                "id": 1,
                "title": "Pay rent",
                "dueDate": "2024-01-31T01:00:00.000Z",
                "recurring": True,
                "recurrencePattern": "monthly",
            }
        ]
    )
    store = TaskStore(storage, clock=clock)
    store.load()

    spawned = store.toggle_completion(1).spawned

    assert spawned is not None and spawned.due_date is not None
    assert spawned.due_date.astimezone().replace(tzinfo=None) == datetime(2024, 2, 29, 20, 0)
    assert storage.last_saved[0]["dueDate"] == "2024-03-01T01:00:00.000Z"


def test_untoggling_recurring_task_does_not_spawn(store: TaskStore) -> None:
    task = store.create(TaskInput(title="Daily", recurring=True))
    store.toggle_completion(task.id)
    assert len(store) == 2

    result = store.toggle_completion(task.id)
    assert result.spawned is None
    assert len(store) == 2


def test_toggle_completion_unknown_id_raises(store: TaskStore) -> None:
    with pytest.raises(NotFoundError):
        store.toggle_completion(123)


def test_toggle_subtask_by_index(store: TaskStore) -> None:
    task = store.create(TaskInput(title="Trip", subtasks=["pack", "tickets"]))

    sub = store.toggle_subtask(task.id, 1)
    assert sub.title == "tickets" and sub.completed is True
    assert task.subtasks[0].completed is False

    for bad in (2, -1):
        with pytest.raises(NotFoundError):
            store.toggle_subtask(task.id, bad)
    with pytest.raises(NotFoundError):
        store.toggle_subtask(999, 0)


def test_delete_reports_missing_without_error(store: TaskStore) -> None:
    task = store.create(TaskInput(title="gone"))
    assert store.delete(task.id) is True
    assert store.delete(task.id) is False
    assert len(store) == 0


def test_bulk_delete_ignores_absent_ids(store: TaskStore) -> None:
    a = store.create(TaskInput(title="a"))
    b = store.create(TaskInput(title="b"))
    c = store.create(TaskInput(title="c"))

    removed = store.bulk_delete({a.id, c.id, 404, 405})

    assert removed == 2
    assert [t.id for t in store.tasks] == [b.id]


def test_clear_completed(store: TaskStore, storage: FakeBlobStorage) -> None:
    a = store.create(TaskInput(title="a"))
    store.create(TaskInput(title="b"))
    store.toggle_completion(a.id)

    assert store.clear_completed() == 1
    assert [t.title for t in store.tasks] == ["b"]

    saves = len(storage.saves)
    assert store.clear_completed() == 0
    assert len(storage.saves) == saves


def test_ids_are_never_reused_after_delete(store: TaskStore) -> None:
    a = store.create(TaskInput(title="a"))
    store.delete(a.id)
    b = store.create(TaskInput(title="b"))
    assert b.id > a.id


def test_load_recovers_counter_and_back_fills(clock: FixedClock) -> None:
    storage = FakeBlobStorage(
        payload=[
            {"id": 5, "title": "five", "priority": "high"},
            {"id": 2, "text": "legacy"},
            "garbage",
            {"id": 5, "title": "duplicate id"},
        ]
    )
    store = TaskStore(storage, clock=clock)

    assert store.load() == 3
    ids = [t.id for t in store.tasks]
    assert ids[:2] == [5, 2]
    assert ids[2] == 6
    assert store.next_id == 7
    assert store.get(2).title == "legacy"
    assert store.create(TaskInput(title="new")).id == 7


def test_load_empty_starts_at_one(store: TaskStore) -> None:
    assert store.load() == 0
    assert store.next_id == 1


def test_load_failure_falls_back_to_empty_list(clock: FixedClock) -> None:
    warnings: list[str] = []
    store = TaskStore(FakeBlobStorage(payload=[{"id": 1, "title": "x"}], fail_load=True), clock=clock)
    store.on_warning = warnings.append

    assert store.load() == 0
    assert store.tasks == []
    assert store.last_persistence_error is not None
    assert warnings and "loading" in warnings[0]


def test_load_ignores_non_list_payload(clock: FixedClock) -> None:
    store = TaskStore(FakeBlobStorage(payload={"tasks": []}), clock=clock)
    assert store.load() == 0


def test_save_failure_keeps_in_memory_change(clock: FixedClock) -> None:
    storage = FakeBlobStorage(fail_save=True)
    warnings: list[str] = []
    store = TaskStore(storage, clock=clock, on_warning=warnings.append)

    task = store.create(TaskInput(title="unsaved"))

    assert store.get(task.id) is task
    assert store.last_persistence_error is not None
    assert len(warnings) == 1

    storage.fail_save = False
    assert store.save() is True
    assert store.last_persistence_error is None
    assert storage.last_saved[0]["title"] == "unsaved"


def test_import_appends_and_reassigns_colliding_ids(store: TaskStore) -> None:
    existing = store.create(TaskInput(title="mine"))

    imported = store.import_records(
        [
            {"id": existing.id, "title": "collides"},
            {"id": 40, "title": "keeps id"},
            {"title": "no id"},
        ]
    )

    assert [t.title for t in store.tasks] == ["mine", "collides", "keeps id", "no id"]
    ids = [t.id for t in store.tasks]
    assert len(set(ids)) == len(ids)
    assert imported[1].id == 40
    assert imported[0].id > 40 and imported[2].id > 40
    assert store.create(TaskInput(title="after")).id > max(ids)


def test_import_rejects_non_list_payload(store: TaskStore) -> None:
    with pytest.raises(ValidationError):
        store.import_records({"title": "not a list"})


def test_export_records_round_trip_through_load(store: TaskStore, storage: FakeBlobStorage, clock: FixedClock) -> None:
    store.create(TaskInput(title="a", tags="x,y", due_date="2024-04-01T10:00:00Z", subtasks=["s1"]))
    records = store.export_records()

    fresh = TaskStore(FakeBlobStorage(payload=records), clock=clock)
    fresh.load()
    assert fresh.export_records() == records
