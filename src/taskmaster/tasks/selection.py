# src/taskmaster/tasks/selection.py

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .task_models import Task


class Selection:
    """Bulk selection: a set of task ids picked from the visible list."""

    def __init__(self) -> None:
        self._ids: set[int] = set()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._ids)

    def toggle(self, task_id: int) -> bool:
        """Returns True when the id ends up selected."""
        if task_id in self._ids:
            self._ids.discard(task_id)
            return False
        self._ids.add(task_id)
        return True

    def discard(self, task_id: int) -> None:
        self._ids.discard(task_id)

    def clear(self) -> None:
        self._ids.clear()

    def all_selected(self, visible: Iterable[Task]) -> bool:
        ids = [t.id for t in visible]
        return bool(ids) and all(i in self._ids for i in ids)

    def select_all(self, visible: Iterable[Task]) -> bool:
        """
        Select every visible task, or deselect them when all of them already
        are. Selected tasks outside the view are kept. Returns True when the
        visible tasks end up selected.
        """
        visible = list(visible)
        if self.all_selected(visible):
            self._ids.difference_update(t.id for t in visible)
            return False
        self._ids.update(t.id for t in visible)
        return True
