# src/taskdesk/tasks/task_api.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from ..core.state import AppState
from ..errors import ExtractionError
from ..llm.extraction import ExtractedTask, extract_task
from .derive import derive_view
from .task_models import Priority, Task
from .task_store import TaskDraft, decode_tasks

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM = "Other"
DEFAULT_CATEGORY = "To-do"
UNKNOWN_PERSON = "TBD"


@dataclass(frozen=True, slots=True)
class TaskOverrides:
    """Manually entered fields; any value set here beats what the LLM extracted."""

    system: str = ""
    category: str = ""
    assigner: str = ""
    assignee: str = ""
    assigned_date: str = ""
    target_date: str = ""
    priority: Priority | None = None


def build_draft(extracted: ExtractedTask, overrides: TaskOverrides, today: date) -> TaskDraft:
    """Merge: manual override > extracted value > default."""
    return TaskDraft(
        content=extracted.content,
        system=overrides.system or extracted.system or DEFAULT_SYSTEM,
        category=overrides.category or extracted.category or DEFAULT_CATEGORY,
        assigner=overrides.assigner or extracted.assigner or UNKNOWN_PERSON,
        assignee=overrides.assignee or extracted.assignee or UNKNOWN_PERSON,
        assigned_date=overrides.assigned_date or today.isoformat(),
        target_date=overrides.target_date or extracted.target_date or None,
        priority=overrides.priority or extracted.priority or Priority.MEDIUM,
        tags=extracted.tags,
    )


async def add_task_from_text(
    state: AppState,
    text: str,
    *,
    overrides: TaskOverrides | None = None,
    today: date | None = None,
) -> Task:
    """
    Creation flow: LLM extraction -> new task -> silent sheet auto-sync.

    Raises ExtractionError when the LLM fails or nothing could be extracted; no task
    is created in that case and the caller keeps the input for a retry.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("Task description is empty.")

    today = today or state.task_store.today()
    extracted = await asyncio.to_thread(extract_task, state.llm, text, today=today)
    if extracted is None:
        raise ExtractionError("Could not recognise a task in that text. Try a more complete description.")

    task = state.task_store.create_task(build_draft(extracted, overrides or TaskOverrides(), today), today=today)
    logger.info("Task %s created from text.", task.task_number)

    await auto_sync_new_task(state, task)
    return state.task_store.get(task.id)


async def add_task_manual(
    state: AppState,
    content: str,
    *,
    overrides: TaskOverrides | None = None,
    today: date | None = None,
) -> Task:
    """Creation without the LLM: content plus whatever was entered by hand."""
    today = today or state.task_store.today()
    draft = build_draft(ExtractedTask(content=content.strip()), overrides or TaskOverrides(), today)
    task = state.task_store.create_task(draft, today=today)
    await auto_sync_new_task(state, task)
    return state.task_store.get(task.id)


async def auto_sync_new_task(state: AppState, task: Task) -> None:
    if not getattr(state.settings, "auto_sync_sheet", False):
        return
    # silent=True: failures are logged inside and the task stays unsynced.
    await state.dispatcher.sync_sheet([task], silent=True)


def current_view(state: AppState) -> list[Task]:
    return derive_view(state.task_store.tasks, state.view)


# ---- backup ----


def backup_filename(today: date) -> str:
    return f"tasks_backup_{today.strftime('%Y%m%d')}.json"


def export_backup(state: AppState, directory: str | Path, *, today: date | None = None) -> Path:
    today = today or state.task_store.today()
    path = Path(directory) / backup_filename(today)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(state.task_store.export_json(), "utf-8")
    logger.info("Exported %d task(s) to %s", state.task_store.count_tasks(), path)
    return path


def read_backup(path: str | Path, *, today: date | None = None) -> list[Task]:
    """Parse a backup file; ImportFormatError if it is not a JSON list. Store untouched."""
    return decode_tasks(Path(path).read_text("utf-8"), today=today)


def import_backup(state: AppState, tasks: list[Task]) -> int:
    """Replace the whole collection (caller has already confirmed)."""
    state.task_store.replace_all(tasks)
    return len(tasks)
