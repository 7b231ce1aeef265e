# src/taskmaster/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..tasks.selection import Selection
from ..tasks.task_models import Task
from ..tasks.task_query import FilterSelector, query_tasks
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test double with the same attributes).
    settings: object
    store: TaskStore

    current_filter: FilterSelector = FilterSelector.ALL
    search_query: str = ""
    selection: Selection = field(default_factory=Selection)
    lock: threading.RLock = field(default_factory=threading.RLock)

    def visible_tasks(self) -> list[Task]:
        """The filtered, sorted list the front-end shows right now."""
        return query_tasks(
            self.store.tasks,
            self.current_filter,
            self.search_query,
            now=self.store.now(),
        )

    def set_filter(self, selector: FilterSelector | str) -> FilterSelector:
        self.current_filter = FilterSelector.parse(selector)
        self.selection.clear()
        return self.current_filter

    def set_search(self, query: str) -> None:
        self.search_query = query
        self.selection.clear()
