# src/taskmaster/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the storage backend into the TaskStore and the store into AppState,
- loads saved tasks and seeds the demo set on first run.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..datetime_utils import local_now
from ..errors import ValidationError
from ..storage import build_storage
from ..tasks.demo import seed_demo_tasks
from ..tasks.task_query import FilterSelector
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock = local_now) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(build_storage(settings), clock=clock)

    try:
        current_filter = FilterSelector.parse(getattr(settings, "default_filter", "all"))
    except ValidationError:
        logger.warning("Unknown default filter %r, using 'all'", getattr(settings, "default_filter", None))
        current_filter = FilterSelector.ALL

    return AppState(settings=settings, store=store, current_filter=current_filter)


def load_tasks(state: AppState) -> int:
    """Load saved tasks (best-effort) and seed the demo set when the store is empty."""
    count = state.store.load()
    if count == 0 and getattr(state.settings, "seed_demo", False):
        count = seed_demo_tasks(state.store)
    return count
