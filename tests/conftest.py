# tests/conftest.py

from __future__ import annotations

import time
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskmaster.core.state import AppState
from taskmaster.tasks.task_store import TaskStore

from .fakes import FakeBlobStorage, FixedClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskmaster-test",
        log_level="DEBUG",
        console_enabled=False,
        seed_demo=False,
        default_filter="all",
        list_limit=50,
        storage_backend="json",
        storage_key="taskmaster_tasks",
        data_dir=tmp_path / "data",
        tasks_db_path=tmp_path / "data" / "taskmaster.sqlite3",
    )


@pytest.fixture()
def new_york_tz(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run the test with a local zone that observes DST."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture()
def clock() -> FixedClock:
    # Noon local time keeps "today" comfortably away from midnight.
    return FixedClock(datetime(2024, 3, 15, 12, 0).astimezone())


@pytest.fixture()
def storage() -> FakeBlobStorage:
    return FakeBlobStorage()


@pytest.fixture()
def store(storage: FakeBlobStorage, clock: FixedClock) -> TaskStore:
    return TaskStore(storage, clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    return AppState(settings=settings, store=store)
