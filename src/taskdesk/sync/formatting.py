# src/taskdesk/sync/formatting.py

"""Wire formats for the spreadsheet and calendar sync."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from urllib.parse import urlencode

from ..tasks.task_models import Task

CALENDAR_TEMPLATE_URL = "https://calendar.google.com/calendar/render"


def _slash_date(value: str | None) -> str:
    return value.replace("-", "/") if value else ""


def sheet_row(task: Task) -> list[str]:
    """
    One spreadsheet row. Column order: number, assigned, system, category, assigner,
    content, assignee, target, priority, progress, status, completed.
    """
    return [
        task.task_number,
        _slash_date(task.assigned_date),
        task.system,
        task.category,
        task.assigner,
        task.content,
        task.assignee,
        _slash_date(task.target_date),
        task.priority.value,
        f"{task.progress}%",
        task.status.value,
        _slash_date(task.actual_completed_date),
    ]


def sheet_rows(tasks: Iterable[Task]) -> list[list[str]]:
    return [sheet_row(t) for t in tasks]


def clipboard_text(tasks: Iterable[Task]) -> str:
    """Tab-separated rows, ready to paste into a spreadsheet."""
    return "\n".join("\t".join(row) for row in sheet_rows(tasks))


def sheet_payload(tasks: Iterable[Task]) -> dict[str, Any]:
    return {"action": "sheet", "rows": sheet_rows(tasks)}


def calendar_title(task: Task) -> str:
    return f"[{task.system}] {task.content} - {task.assignee}"


def calendar_description(task: Task) -> str:
    return (
        f"No: {task.task_number}\n"
        f"System: {task.system}\n"
        f"Assigner: {task.assigner}\n"
        f"Content: {task.content}"
    )


def calendar_payload(task: Task) -> dict[str, Any]:
    return {
        "action": "calendar",
        "title": calendar_title(task),
        "date": task.target_date,
        "description": calendar_description(task),
    }


def calendar_template_url(task: Task, *, calendar_id: str = "") -> str:
    """Pre-filled all-day event creation link (used when no endpoint is configured)."""
    day = (task.target_date or "").replace("-", "")
    params = {
        "action": "TEMPLATE",
        "text": calendar_title(task),
        "details": calendar_description(task),
        "dates": f"{day}/{day}",
    }
    if calendar_id:
        params["src"] = calendar_id
    return f"{CALENDAR_TEMPLATE_URL}?{urlencode(params)}"
