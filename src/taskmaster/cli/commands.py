# src/taskmaster/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import json
import logging
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import Any, cast

from ..core.state import AppState
from ..errors import NotFoundError, ValidationError
from ..tasks.formatting import format_task_details, format_task_line
from ..tasks.stats import productivity_stats
from ..tasks.task_models import TaskInput, TaskPatch
from ..tasks.task_query import FilterSelector

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Validation and not-found errors become the reply text.
        """
        if not line.startswith("/"):
            return None

        parts = _split_args(line[1:])
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (ValidationError, NotFoundError) as e:
            logger.debug("Command /%s rejected: %s", name, e)
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----

_OPTION_KEYS = {
    "title": "title",
    "desc": "description",
    "description": "description",
    "p": "priority",
    "priority": "priority",
    "cat": "category",
    "category": "category",
    "due": "due_date",
    "est": "estimated_time",
    "time": "estimated_time",
    "tags": "tags",
    "sub": "subtasks",
    "loc": "location",
    "location": "location",
    "url": "url",
    "repeat": "recurrence",
}


def _split_args(text: str) -> list[str]:
    try:
        return shlex.split(text)
    except ValueError:
        # Unbalanced quotes: fall back to plain whitespace splitting.
        return text.split()


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Separate free words from key=value options (unknown keys stay words)."""
    words: list[str] = []
    options: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        field_name = _OPTION_KEYS.get(key.lower()) if sep else None
        if field_name:
            options[field_name] = value
        else:
            words.append(arg)
    return words, options


def _parse_id(raw: str) -> int:
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        raise ValidationError(f"Invalid task id: {raw!r}") from None


def _option_values(options: dict[str, str]) -> dict[str, Any]:
    """Convert console option text into TaskInput/TaskPatch field values."""
    values: dict[str, Any] = {}
    for name, raw in options.items():
        if name == "subtasks":
            values[name] = [s for s in raw.split(";") if s.strip()]
        elif name == "recurrence":
            off = raw.strip().lower() in ("", "off", "no", "none")
            values["recurring"] = not off
            if not off:
                values["recurrence_pattern"] = raw
        elif name in ("due_date", "estimated_time"):
            values[name] = raw or None
        else:
            values[name] = raw
    return values


def _render_list(state: AppState) -> str:
    tasks = state.visible_tasks()
    header = f"Filter: {state.current_filter.value}"
    if state.search_query:
        header += f" | search: {state.search_query!r}"
    if not tasks:
        if state.search_query:
            return f"{header}\nNo tasks found. Try adjusting your search terms."
        return f"{header}\nNo tasks in this filter."

    limit = int(getattr(state.settings, "list_limit", 50) or 50)
    now = state.store.now()
    lines = [header]
    for task in tasks[:limit]:
        lines.append(format_task_line(task, now, selected=task.id in state.selection))
    if len(tasks) > limit:
        lines.append(f"... and {len(tasks) - limit} more")
    return "\n".join(lines)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.store
    err = store.last_persistence_error
    return (
        "Status:\n"
        f"  Tasks: {len(store)}\n"
        f"  Filter: {state.current_filter.value}\n"
        f"  Search: {state.search_query or '-'}\n"
        f"  Selected: {len(state.selection)}\n"
        f"  Storage: {getattr(state.settings, 'storage_backend', '?')}\n"
        f"  Last storage error: {err or '-'}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title> [p=high] [cat=work] [due=2024-05-01T09:00] [est=30]
         [tags=a,b] [desc="..."] [sub="one;two"] [loc=...] [url=...] [repeat=weekly]
    """
    words, options = _split_options(args)
    values = _option_values(options)
    values.setdefault("title", " ".join(words))
    task = state.store.create(TaskInput(**values))
    return f"Task added successfully: #{task.id} {task.title}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> key=value ...   (due= and est= clear the field, repeat=off stops recurrence)
    """
    if not args:
        return "Usage: /edit <id> key=value ..."
    task_id = _parse_id(args[0])
    words, options = _split_options(args[1:])
    if words:
        return f"Unrecognized arguments: {' '.join(words)}. Use key=value (title, desc, p, cat, due, est, tags, ...)."
    patch = TaskPatch(**_option_values(options))
    if patch.is_empty():
        return "Nothing to update."
    task = state.store.update(task_id, patch)
    return f"Task updated successfully: #{task.id} {task.title}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    result = state.store.toggle_completion(_parse_id(args[0]))
    if not result.task.completed:
        return f"Task #{result.task.id} marked as pending"
    reply = f"Task #{result.task.id} completed! 🎉"
    if result.spawned is not None:
        spawned = result.spawned
        due = spawned.due_date.astimezone().strftime("%Y-%m-%d %H:%M") if spawned.due_date else "no due date"
        reply += f"\nRecurring task created: #{spawned.id} ({due})"
    return reply


def cmd_sub(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /sub <id> <subtask number>"
    task_id = _parse_id(args[0])
    try:
        number = int(args[1])
    except ValueError:
        return f"Invalid subtask number: {args[1]!r}"
    sub = state.store.toggle_subtask(task_id, number - 1)
    return f"Subtask {number} of #{task_id}: [{'x' if sub.completed else ' '}] {sub.title}"


def cmd_del(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <id>"
    task_id = _parse_id(args[0])
    state.selection.discard(task_id)
    if not state.store.delete(task_id):
        return f"Task {task_id} not found"
    return f"Task #{task_id} deleted successfully"


def cmd_select(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /select <id> [<id> ...]"
    lines = []
    for raw in args:
        task_id = _parse_id(raw)
        state.store.get(task_id)
        picked = state.selection.toggle(task_id)
        lines.append(f"#{task_id} {'selected' if picked else 'deselected'}")
    return "\n".join(lines)


def cmd_selectall(state: AppState, args: list[str]) -> str:
    visible = state.visible_tasks()
    if not visible:
        return "No visible tasks to select."
    if state.selection.select_all(visible):
        return f"Selected {len(visible)} visible task(s)"
    return "Selection cleared"


def cmd_delsel(state: AppState, args: list[str]) -> str:
    if not len(state.selection):
        return "No tasks selected"
    count = state.store.bulk_delete(state.selection.ids)
    state.selection.clear()
    return f"{count} task(s) deleted successfully"


def cmd_clear(state: AppState, args: list[str]) -> str:
    removed = state.store.clear_completed()
    if not removed:
        return "No completed tasks to clear"
    state.selection.clear()
    return f"{removed} completed task(s) cleared"


def cmd_filter(state: AppState, args: list[str]) -> str:
    if not args:
        options = ", ".join(m.value for m in FilterSelector)
        return f"Current filter: {state.current_filter.value}. Options: {options}"
    state.set_filter(args[0])
    return _render_list(state)


def cmd_search(state: AppState, args: list[str]) -> str:
    state.set_search(" ".join(args))
    return _render_list(state)


def cmd_list(state: AppState, args: list[str]) -> str:
    return _render_list(state)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    task = state.store.get(_parse_id(args[0]))
    return format_task_details(task, state.store.now())


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = productivity_stats(state.store.tasks, state.store.now())
    return (
        "Productivity:\n"
        f"  Total: {s.total_tasks} (completed {s.total_completed}, pending {s.pending})\n"
        f"  Completed today: {s.today_completed}\n"
        f"  Completed this week: {s.week_completed}\n"
        f"  Completion rate: {s.completion_rate}%"
    )


def cmd_export(state: AppState, args: list[str]) -> str:
    if args:
        path = Path(args[0]).expanduser()
    else:
        path = Path(f"taskmaster-backup-{state.store.now().date().isoformat()}.json")
    records = state.store.export_records()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(records, ensure_ascii=False, indent=2), "utf-8")
    except OSError as e:
        logger.exception("Export to %s failed", path)
        return f"Error exporting tasks: {e}"
    return f"Exported {len(records)} tasks to {path}"


def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /import <path>"
    path = Path(args[0]).expanduser()
    try:
        payload = json.loads(path.read_text("utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.info("Import from %s failed: %s", path, e)
        return "Error importing tasks: Invalid file format"
    if not isinstance(payload, list):
        return "Error importing tasks: Invalid file format"

    imported = state.store.import_records(payload)
    skipped = len(payload) - len(imported)
    if skipped and emit:
        with contextlib.suppress(Exception):
            emit(f"[IMPORT] Skipped {skipped} entries that are not task records.")
    return f"Imported {len(imported)} tasks successfully"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store/filter/selection status.")
registry.register("add", cmd_add, help_text="Add a task: /add <title> [p=high cat=work due=... tags=a,b ...].")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> key=value ...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("sub", cmd_sub, help_text="Toggle a subtask: /sub <id> <n>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <id>.", aliases=["rm"])
registry.register("select", cmd_select, help_text="Toggle selection: /select <id> ...")
registry.register("selectall", cmd_selectall, help_text="Select (or deselect) all visible tasks.")
registry.register("delsel", cmd_delsel, help_text="Delete the selected tasks.")
registry.register("clear", cmd_clear, help_text="Remove all completed tasks.")
registry.register("filter", cmd_filter, help_text="Set filter: all|pending|completed|high|urgent|overdue|today.")
registry.register("search", cmd_search, help_text="Search title/description/category/tags (empty clears).")
registry.register("list", cmd_list, help_text="Show the filtered, sorted task list.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show task details: /show <id>.")
registry.register("stats", cmd_stats, help_text="Show productivity statistics.")
registry.register("export", cmd_export, help_text="Export tasks to JSON: /export [path].")
registry.register("import", cmd_import, help_text="Import tasks from JSON: /import <path>.")
