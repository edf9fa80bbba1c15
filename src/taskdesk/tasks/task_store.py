# src/taskdesk/tasks/task_store.py

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from ..core.ports import KeyValueStorage
from ..errors import ImportFormatError, TaskNotFoundError
from .numbering import allocate_task_number
from .reconcile import EDITABLE_FIELDS, FieldEdit, Mutation, ReportSubmission, reconcile, repair_triangle
from .task_models import Priority, Task, TaskStatus, normalize_tags

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"

DATE_FIELDS = frozenset({"target_date", "actual_completed_date", "assigned_date"})


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """Fields for a new task; everything else starts at its creation default."""

    content: str
    system: str
    category: str
    assigner: str
    assignee: str
    assigned_date: str
    target_date: str | None = None
    priority: Priority = Priority.MEDIUM
    tags: tuple[str, ...] = ()
    notes: str = ""


def _new_id() -> str:
    return uuid.uuid4().hex


class TaskStore:
    """
    Owner of the task collection (newest first).

    All writes go through this class: field edits and reports are routed through the
    reconciliation engine, and the whole collection is written back to storage as one
    JSON array after every mutation.

    Consumers only ever get immutable Task values.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], date] = date.today,
        id_factory: Callable[[], str] = _new_id,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._id_factory = id_factory
        self._time = time_source
        self._tasks: list[Task] = []
        self._selected: set[str] = set()
        self.load()
        logger.info("TaskStore ready total=%s", len(self._tasks))

    # ---- persistence ----

    def load(self) -> None:
        raw = self._storage.get(TASKS_KEY)
        if not raw:
            self._tasks = []
            return
        try:
            self._tasks = decode_tasks(raw, today=self._clock())
        except ImportFormatError:
            logger.exception("Failed to parse saved tasks; starting with an empty list.")
            self._tasks = []

    def _persist(self) -> None:
        self._storage.set(TASKS_KEY, encode_tasks(self._tasks))

    # ---- reads ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def count_tasks(self) -> int:
        return len(self._tasks)

    def today(self) -> date:
        return self._clock()

    def get(self, task_id: str) -> Task:
        for t in self._tasks:
            if t.id == task_id:
                return t
        raise TaskNotFoundError(task_id)

    def find(self, ref: str) -> Task:
        """Resolve a user reference: exact id, then task number, then unique id prefix."""
        ref = (ref or "").strip()
        if not ref:
            raise TaskNotFoundError(ref)
        for t in self._tasks:
            if t.id == ref:
                return t
        for t in self._tasks:
            if t.task_number == ref:
                return t
        prefixed = [t for t in self._tasks if t.id.startswith(ref)]
        if len(prefixed) == 1:
            return prefixed[0]
        raise TaskNotFoundError(ref)

    # ---- writes ----

    def create_task(self, draft: TaskDraft, *, today: date | None = None) -> Task:
        if not draft.content or not draft.content.strip():
            raise ValueError("content is required")

        today = today or self._clock()
        task = Task(
            id=self._id_factory(),
            task_number=allocate_task_number((t.task_number for t in self._tasks), today),
            assigned_date=validate_date(draft.assigned_date) or today.isoformat(),
            system=draft.system,
            category=draft.category,
            assigner=draft.assigner,
            assignee=draft.assignee,
            content=draft.content.strip(),
            target_date=validate_date(draft.target_date) or None,
            priority=draft.priority,
            tags=normalize_tags(draft.tags),
            notes=draft.notes,
        )
        self._tasks.insert(0, task)
        self._persist()
        logger.debug("Task created id=%s number=%s", task.id, task.task_number)
        return task

    def apply(self, task_id: str, mutation: Mutation, *, today: date | None = None) -> Task:
        current = self.get(task_id)
        updated = reconcile(current, mutation, today=today or self._clock())
        if updated is current:
            return current
        self._replace(updated)
        return updated

    def update_field(self, task_id: str, field: str, value: Any, *, today: date | None = None) -> Task:
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field is not editable: {field}")
        if field == "progress":
            value = validate_progress(value)
        elif field == "status":
            value = validate_status(value)
        elif field == "priority":
            value = validate_priority(value)
        elif field in DATE_FIELDS:
            value = validate_date(value)
        return self.apply(task_id, FieldEdit(field, value), today=today)

    def set_status(self, task_id: str, status: TaskStatus | str, *, today: date | None = None) -> Task:
        return self.update_field(task_id, "status", status, today=today)

    def set_progress(self, task_id: str, progress: int, *, today: date | None = None) -> Task:
        return self.update_field(task_id, "progress", progress, today=today)

    def set_completed_date(self, task_id: str, value: str, *, today: date | None = None) -> Task:
        return self.update_field(task_id, "actual_completed_date", value, today=today)

    def submit_report(
        self,
        task_id: str,
        progress: int,
        content: str = "",
        *,
        today: date | None = None,
    ) -> Task:
        sub = ReportSubmission(
            progress=validate_progress(progress),
            content=content or "",
            report_id=self._id_factory(),
            timestamp=self._time(),
        )
        return self.apply(task_id, sub, today=today)

    def mark_synced(self, task_ids: Iterable[str], *, sheet: bool = False, calendar: bool = False) -> None:
        ids = set(task_ids)
        if not ids or not (sheet or calendar):
            return
        changed = False
        for i, t in enumerate(self._tasks):
            if t.id not in ids:
                continue
            updated = replace(
                t,
                synced_sheet=t.synced_sheet or sheet,
                synced_calendar=t.synced_calendar or calendar,
            )
            if updated != t:
                self._tasks[i] = updated
                changed = True
        if changed:
            self._persist()

    def delete_task(self, task_id: str) -> None:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        if len(self._tasks) == before:
            raise TaskNotFoundError(task_id)
        self._selected.discard(task_id)
        self._persist()
        logger.info("Task deleted id=%s", task_id)

    def clear(self) -> None:
        self._tasks = []
        self._selected.clear()
        self._storage.remove(TASKS_KEY)
        logger.info("All tasks cleared.")

    def _replace(self, task: Task) -> None:
        for i, t in enumerate(self._tasks):
            if t.id == task.id:
                self._tasks[i] = task
                break
        else:
            raise TaskNotFoundError(task.id)
        self._persist()

    # ---- selection working set ----

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    def toggle_select(self, task_id: str) -> bool:
        self.get(task_id)
        if task_id in self._selected:
            self._selected.discard(task_id)
            return False
        self._selected.add(task_id)
        return True

    def select_only(self, task_ids: Iterable[str]) -> None:
        known = {t.id for t in self._tasks}
        self._selected = {i for i in task_ids if i in known}

    def clear_selection(self) -> None:
        self._selected.clear()

    def selected_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.id in self._selected]

    # ---- import / export ----

    def export_json(self) -> str:
        return json.dumps([t.to_dict() for t in self._tasks], ensure_ascii=False, indent=2)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self._tasks = list(tasks)
        self._selected.clear()
        self._persist()
        logger.info("Task collection replaced total=%d", len(self._tasks))


# ---- helpers ----


def encode_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def decode_tasks(raw: str, *, today: date | None = None) -> list[Task]:
    """
    Parse a JSON array of tasks; anything else raises ImportFormatError.

    Decoded tasks get a fresh id when theirs is missing or already taken, and are
    put back onto the status/progress/completion-date triangle.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ImportFormatError("File is damaged or not valid JSON.") from e
    if not isinstance(data, list):
        raise ImportFormatError("Content is not a list of tasks.")

    today = today or date.today()
    seen: set[str] = set()
    tasks: list[Task] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        task = repair_triangle(Task.from_dict(item), today=today)
        if not task.id or task.id in seen:
            task = replace(task, id=_new_id())
        seen.add(task.id)
        tasks.append(task)
    return tasks


def validate_progress(value: Any) -> int:
    try:
        progress = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Progress must be an integer 0-100, got {value!r}") from None
    if not 0 <= progress <= 100:
        raise ValueError(f"Progress must be between 0 and 100, got {progress}")
    return progress


def validate_status(value: Any) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    s = str(value or "").strip().lower().replace("_", "-")
    try:
        return TaskStatus(s)
    except ValueError:
        allowed = ", ".join(m.value for m in TaskStatus)
        raise ValueError(f"Unknown status {value!r} (expected one of: {allowed})") from None


def validate_priority(value: Any) -> Priority:
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in Priority)
        raise ValueError(f"Unknown priority {value!r} (expected one of: {allowed})") from None


def validate_date(value: Any) -> str:
    """ISO YYYY-MM-DD or empty (clears the field)."""
    s = str(value or "").strip()
    if not s:
        return ""
    try:
        return date.fromisoformat(s).isoformat()
    except ValueError:
        raise ValueError(f"Dates must be YYYY-MM-DD, got {value!r}") from None
