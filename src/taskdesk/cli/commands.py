# src/taskdesk/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import cast

from ..core.state import AppState
from ..errors import TaskdeskError
from ..sync.dispatcher import SyncMode, export_targets
from ..tasks.derive import ALL, SortOrder, StatusFilter, assignee_stats, due_counts, unique_assignees
from ..tasks.task_api import (
    TaskOverrides,
    add_task_from_text,
    add_task_manual,
    current_view,
    export_backup,
    import_backup,
    read_backup,
)
from ..tasks.task_store import validate_priority
from . import render

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

CONFIRM_FLAG = "--yes"

# User-facing field names -> Task attribute names.
FIELD_ALIASES = {
    "content": "content",
    "system": "system",
    "category": "category",
    "assigner": "assigner",
    "assignee": "assignee",
    "notes": "notes",
    "tags": "tags",
    "priority": "priority",
    "status": "status",
    "progress": "progress",
    "target": "target_date",
    "targetdate": "target_date",
    "target_date": "target_date",
    "assigned": "assigned_date",
    "assigneddate": "assigned_date",
    "assigned_date": "assigned_date",
    "completed": "actual_completed_date",
    "actualcompleteddate": "actual_completed_date",
    "actual_completed_date": "actual_completed_date",
}

_OVERRIDE_KEYS = {"system", "category", "assigner", "assignee", "assigned", "target", "priority"}


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /list, ...)."""

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

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Expected failures (TaskdeskError, ValueError) become the reply text; anything
        else propagates to the connector.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                return cast(CommandHandler3, handler)(state, args, emit)
            return cast(CommandHandler2, handler)(state, args)
        except (TaskdeskError, ValueError) as e:
            logger.info("/%s failed: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Any line that is not a command is added as a new task (LLM extraction).")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def split_overrides(args: list[str]) -> tuple[str, TaskOverrides]:
    """Separate "key=value" override tokens from the free text."""
    words: list[str] = []
    values: dict[str, str] = {}
    for token in args:
        key, sep, value = token.partition("=")
        if sep and key.lower() in _OVERRIDE_KEYS:
            values[key.lower()] = value
        else:
            words.append(token)

    priority = validate_priority(values["priority"]) if values.get("priority") else None
    overrides = TaskOverrides(
        system=values.get("system", ""),
        category=values.get("category", ""),
        assigner=values.get("assigner", ""),
        assignee=values.get("assignee", ""),
        assigned_date=values.get("assigned", ""),
        target_date=values.get("target", ""),
        priority=priority,
    )
    return " ".join(words), overrides


def _confirmed(args: list[str]) -> tuple[bool, list[str]]:
    rest = [a for a in args if a != CONFIRM_FLAG]
    return len(rest) != len(args), rest


def _created_reply(task_number: str, synced: bool) -> str:
    sync_note = " (synced to sheet)" if synced else ""
    return f"Task {task_number} created{sync_note}."


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <text> [assignee=.. target=YYYY-MM-DD priority=.. system=.. category=.. assigner=.. assigned=..]
    """
    text, overrides = split_overrides(args)
    if not text:
        return "Usage: /add <task description> [key=value overrides]"
    if emit:
        emit("Analysing the task description...")
    task = asyncio.run(add_task_from_text(state, text, overrides=overrides))
    return _created_reply(task.task_number, task.synced_sheet) + "\n" + render.task_detail(
        task, state.task_store.today()
    )


def cmd_new(state: AppState, args: list[str]) -> str:
    """/new <content> [key=value overrides] -- create without the LLM."""
    text, overrides = split_overrides(args)
    if not text:
        return "Usage: /new <content> [key=value overrides]"
    task = asyncio.run(add_task_manual(state, text, overrides=overrides))
    return _created_reply(task.task_number, task.synced_sheet)


def cmd_list(state: AppState, args: list[str]) -> str:
    today = state.task_store.today()
    view = current_view(state)
    out = []
    banner = render.due_banner(due_counts(state.task_store.tasks, today))
    if banner:
        out.append(banner)
    v = state.view
    out.append(f"View: search={v.query!r} assignee={v.assignee} status={v.status.value} sort={v.sort.value}")
    out.append(render.task_list(view, today, state.task_store.selected_ids))
    return "\n".join(out)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task number or id>"
    return render.task_detail(state.task_store.find(args[0]), state.task_store.today())


def cmd_search(state: AppState, args: list[str]) -> str:
    state.view = replace(state.view, query=" ".join(args))
    return cmd_list(state, [])


def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter assignee <name|all>
    /filter status <all|unfinished|finished>
    /filter reset
    """
    if not args:
        names = ", ".join(unique_assignees(state.task_store.tasks)) or "-"
        return (
            "Usage: /filter assignee <name|all> | /filter status <all|unfinished|finished> | /filter reset\n"
            f"Assignees: {names}"
        )

    sub = args[0].lower()
    if sub == "reset":
        state.view = replace(state.view, query="", assignee=ALL, status=StatusFilter.ALL)
    elif sub == "assignee" and len(args) >= 2:
        state.view = replace(state.view, assignee=" ".join(args[1:]))
    elif sub == "status" and len(args) == 2:
        state.view = replace(state.view, status=StatusFilter(args[1].lower()))
    else:
        return cmd_filter(state, [])
    return cmd_list(state, [])


def cmd_sort(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /sort default|date-asc|date-desc"
    state.view = replace(state.view, sort=SortOrder(args[0].lower()))
    return cmd_list(state, [])


def cmd_stats(state: AppState, args: list[str]) -> str:
    today = state.task_store.today()
    tasks = state.task_store.tasks
    counts = due_counts(tasks, today)
    return (
        f"Tasks: {len(tasks)}  overdue: {counts.overdue}  due soon: {counts.due_soon}\n"
        + render.stats_table(assignee_stats(tasks, today))
    )


def cmd_status(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /status <ref> not-started|in-progress|waiting|completed"
    store = state.task_store
    task = store.set_status(store.find(args[0]).id, args[1])
    return f"{task.task_number}: {task.status.value}, {task.progress}%, completed={task.actual_completed_date or '-'}"


def cmd_progress(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /progress <ref> <0-100>"
    store = state.task_store
    task = store.set_progress(store.find(args[0]).id, args[1])
    return f"{task.task_number}: {task.status.value}, {task.progress}%, completed={task.actual_completed_date or '-'}"


def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <ref> [YYYY-MM-DD|clear] -- set or clear the actual completion date."""
    if not args or len(args) > 2:
        return "Usage: /done <ref> [YYYY-MM-DD|clear]"
    store = state.task_store
    task = store.find(args[0])
    value = args[1] if len(args) == 2 else store.today().isoformat()
    if value.lower() == "clear":
        value = ""
    task = store.set_completed_date(task.id, value)
    return f"{task.task_number}: {task.status.value}, {task.progress}%, completed={task.actual_completed_date or '-'}"


def cmd_report(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /report <ref> <progress 0-100> [text]"
    store = state.task_store
    before = store.find(args[0])
    task = store.submit_report(before.id, args[1], " ".join(args[2:]))
    if task is before:
        return "Nothing to report (no text and progress unchanged)."
    added = len(task.reports) - len(before.reports)
    return (
        f"{task.task_number}: {task.status.value}, {task.progress}%"
        + (", report saved." if added else ", progress updated.")
    )


def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        fields = ", ".join(sorted({k for k in FIELD_ALIASES if "_" not in k}))
        return f"Usage: /edit <ref> <field> [value]\nFields: {fields}"
    store = state.task_store
    task = store.find(args[0])
    field = FIELD_ALIASES.get(args[1].lower())
    if field is None:
        return f"Unknown field: {args[1]}"

    raw = " ".join(args[2:])
    value: object = raw
    if field == "tags":
        value = raw.split(",")
    task = store.update_field(task.id, field, value)
    return render.task_detail(task, store.today())


def cmd_delete(state: AppState, args: list[str]) -> str:
    confirmed, rest = _confirmed(args)
    if len(rest) != 1:
        return f"Usage: /delete <ref> {CONFIRM_FLAG}"
    task = state.task_store.find(rest[0])
    if not confirmed:
        return f"Delete {task.task_number} '{task.content}'? Re-run with {CONFIRM_FLAG} to confirm."
    state.task_store.delete_task(task.id)
    return f"Deleted {task.task_number}."


def cmd_select(state: AppState, args: list[str]) -> str:
    """/select <ref> toggles; /select all selects the current view; /select none clears."""
    store = state.task_store
    if not args:
        chosen = store.selected_tasks()
        return "Selected: " + (", ".join(t.task_number for t in chosen) or "none")
    sub = args[0].lower()
    if sub == "all":
        store.select_only(t.id for t in current_view(state))
    elif sub == "none":
        store.clear_selection()
    else:
        for ref in args:
            store.toggle_select(store.find(ref).id)
    return f"{len(store.selected_ids)} task(s) selected."


def cmd_sync(state: AppState, args: list[str]) -> str:
    """
    /sync sheet [refs...]   -> refs, else the selection, else the current view
    /sync calendar <ref>
    """
    if not args:
        return "Usage: /sync sheet [refs...] | /sync calendar <ref>"

    store = state.task_store
    target = args[0].lower()

    if target == "sheet":
        if len(args) > 1:
            tasks = [store.find(ref) for ref in args[1:]]
        else:
            tasks = export_targets(store, current_view(state))
        if not tasks:
            return "Nothing to sync."
        outcome = asyncio.run(state.dispatcher.sync_sheet(tasks))
        if outcome.mode == SyncMode.ENDPOINT:
            return f"Sync request sent for {outcome.count} task(s). Check your spreadsheet shortly."
        if outcome.opened_url:
            return f"{outcome.count} row(s) copied; opened {outcome.opened_url}."
        return f"{outcome.count} row(s) copied. Set a sheet URL with /config sheet <url> to open it automatically."

    if target in ("calendar", "cal") and len(args) == 2:
        outcome = asyncio.run(state.dispatcher.sync_calendar(store.find(args[1])))
        if outcome.mode == SyncMode.ENDPOINT:
            return "Calendar event request sent."
        return "Calendar link opened."

    return cmd_sync(state, [])


def cmd_export(state: AppState, args: list[str]) -> str:
    directory = args[0] if args else state.settings.export_dir
    path = export_backup(state, directory)
    return f"Exported {state.task_store.count_tasks()} task(s) to {path}."


def cmd_import(state: AppState, args: list[str]) -> str:
    confirmed, rest = _confirmed(args)
    if len(rest) != 1:
        return f"Usage: /import <file.json> {CONFIRM_FLAG}"
    try:
        tasks = read_backup(rest[0], today=state.task_store.today())
    except OSError as e:
        return f"Import failed: cannot read {rest[0]} ({e.strerror or e})."
    if not confirmed:
        return f"About to import {len(tasks)} task(s), replacing the current data. Re-run with {CONFIRM_FLAG}."
    n = import_backup(state, tasks)
    return f"Restored {n} task(s)."


def cmd_clear(state: AppState, args: list[str]) -> str:
    confirmed, _ = _confirmed(args)
    if not confirmed:
        return f"This deletes ALL {state.task_store.count_tasks()} task(s) and cannot be undone. Re-run with {CONFIRM_FLAG}."
    state.task_store.clear()
    return "All tasks cleared."


def cmd_config(state: AppState, args: list[str]) -> str:
    """
    /config                      -> show
    /config endpoint <url|clear>
    /config sheet <url|clear>
    /config calendar <id|clear>
    """
    prefs = state.preferences
    if not args:
        return (
            "Config:\n"
            f"  endpoint: {prefs.sync_endpoint_url or '(not set: clipboard/link fallback)'}\n"
            f"  sheet:    {prefs.sheet_url or '(not set)'}\n"
            f"  calendar: {prefs.calendar_id or '(default)'}"
        )
    if len(args) != 2:
        return "Usage: /config endpoint|sheet|calendar <value|clear>"

    key, value = args[0].lower(), args[1]
    if value.lower() == "clear":
        value = ""

    if key == "endpoint":
        if value:
            prefs.validate_endpoint(value)
        prefs.sync_endpoint_url = value
    elif key == "sheet":
        prefs.sheet_url = value
    elif key == "calendar":
        prefs.calendar_id = value
    else:
        return f"Unknown config key: {key}"
    return cmd_config(state, [])


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task from free text via the LLM (key=value overrides).")
registry.register("new", cmd_new, help_text="Add a task without the LLM: /new <content> [key=value ...].")
registry.register("list", cmd_list, help_text="List tasks in the current view.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task with its reports.")
registry.register("search", cmd_search, help_text="Set the search text (empty clears).")
registry.register("filter", cmd_filter, help_text="Filter by assignee or status: /filter assignee|status|reset.")
registry.register("sort", cmd_sort, help_text="Sort: default | date-asc | date-desc.")
registry.register("stats", cmd_stats, help_text="Overdue / due-soon counts per assignee.")
registry.register("status", cmd_status, help_text="Set status: /status <ref> <status>.")
registry.register("progress", cmd_progress, help_text="Set progress: /progress <ref> <0-100>.")
registry.register("done", cmd_done, help_text="Set or clear the completion date: /done <ref> [date|clear].")
registry.register("report", cmd_report, help_text="Progress report: /report <ref> <progress> [text].")
registry.register("edit", cmd_edit, help_text="Edit a field: /edit <ref> <field> <value>.")
registry.register("delete", cmd_delete, help_text=f"Delete a task: /delete <ref> {CONFIRM_FLAG}.", aliases=["rm"])
registry.register("select", cmd_select, help_text="Toggle selection: /select <ref...> | all | none.")
registry.register("sync", cmd_sync, help_text="Push to the sheet or calendar: /sync sheet [refs] | /sync calendar <ref>.")
registry.register("export", cmd_export, help_text="Write a JSON backup: /export [dir].")
registry.register("import", cmd_import, help_text=f"Restore a JSON backup: /import <file> {CONFIRM_FLAG}.")
registry.register("clear", cmd_clear, help_text=f"Delete all tasks: /clear {CONFIRM_FLAG}.")
registry.register("config", cmd_config, help_text="Show or set endpoint / sheet / calendar.")
