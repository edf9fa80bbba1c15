# src/taskdesk/tasks/reconcile.py

from __future__ import annotations

"""
Reconciliation engine.

Keeps the status / progress / actual-completed-date triangle consistent:

    status == completed  <=>  progress == 100  <=>  actual_completed_date != ""

Every write path (status change, progress edit, manual completion date, report
submission) goes through reconcile(). Task creation starts at a consistent point
(not-started, 0, "") so it needs no fixup.

"today" is always injected; nothing here reads the clock.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from .task_models import (
    PROGRESS_STEP,
    Priority,
    ReportEntry,
    Task,
    TaskStatus,
    normalize_tags,
)

# Fields with no cross-field effect.
PASS_THROUGH_FIELDS = frozenset(
    {
        "content",
        "assignee",
        "assigner",
        "assigned_date",
        "target_date",
        "tags",
        "notes",
        "system",
        "category",
        "priority",
    }
)

TRIANGLE_FIELDS = frozenset({"status", "progress", "actual_completed_date"})

EDITABLE_FIELDS = PASS_THROUGH_FIELDS | TRIANGLE_FIELDS

# Where progress lands when a completed task is reopened at 100%.
REOPENED_PROGRESS = 100 - PROGRESS_STEP


@dataclass(frozen=True, slots=True)
class FieldEdit:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class ReportSubmission:
    progress: int
    content: str
    report_id: str
    timestamp: float


Mutation = FieldEdit | ReportSubmission


def reconcile(task: Task, mutation: Mutation, *, today: date) -> Task:
    """Apply one mutation and return a task that satisfies the triangle."""
    if isinstance(mutation, ReportSubmission):
        return _apply_report(task, mutation, today)

    name = mutation.field
    if name == "status":
        return _apply_status(task, TaskStatus.from_raw(mutation.value), today)
    if name == "progress":
        return _apply_progress(task, int(mutation.value), today)
    if name == "actual_completed_date":
        return _apply_completed_date(task, str(mutation.value or "").strip())
    if name == "tags":
        return replace(task, tags=normalize_tags(mutation.value))
    if name == "priority":
        return replace(task, priority=Priority.from_raw(mutation.value))
    if name == "target_date":
        return replace(task, target_date=(str(mutation.value).strip() or None) if mutation.value else None)
    return replace(task, **{name: "" if mutation.value is None else str(mutation.value)})


def repair_triangle(task: Task, *, today: date) -> Task:
    """
    Bring a decoded task (storage or import) back onto the triangle.

    Any completion signal wins: status completed, progress 100 or a non-empty
    completion date makes the task completed at 100%, keeping its date or taking
    `today`. With no signal at all the task is open and left as decoded.
    """
    completed = (
        task.status == TaskStatus.COMPLETED or task.progress == 100 or bool(task.actual_completed_date)
    )
    if not completed:
        return task
    fixed = replace(
        task,
        status=TaskStatus.COMPLETED,
        progress=100,
        actual_completed_date=task.actual_completed_date or today.isoformat(),
    )
    return task if fixed == task else fixed


def _reopened_progress(progress: int) -> int:
    return REOPENED_PROGRESS if progress >= 100 else progress


def _apply_status(task: Task, status: TaskStatus, today: date) -> Task:
    if status == task.status:
        return task

    if status == TaskStatus.COMPLETED:
        return replace(task, status=status, progress=100, actual_completed_date=today.isoformat())

    if task.status == TaskStatus.COMPLETED:
        return replace(
            task,
            status=status,
            progress=_reopened_progress(task.progress),
            actual_completed_date="",
        )

    return replace(task, status=status)


def _apply_progress(task: Task, progress: int, today: date) -> Task:
    if progress == task.progress:
        return task

    if progress == 100:
        return replace(
            task,
            progress=100,
            status=TaskStatus.COMPLETED,
            actual_completed_date=task.actual_completed_date or today.isoformat(),
        )

    if task.progress == 100 or task.status == TaskStatus.COMPLETED:
        return replace(task, progress=progress, status=TaskStatus.IN_PROGRESS, actual_completed_date="")

    return replace(task, progress=progress)


def _apply_completed_date(task: Task, value: str) -> Task:
    if value:
        return replace(task, actual_completed_date=value, progress=100, status=TaskStatus.COMPLETED)

    if task.status == TaskStatus.COMPLETED:
        return replace(
            task,
            actual_completed_date="",
            status=TaskStatus.IN_PROGRESS,
            progress=_reopened_progress(task.progress),
        )

    return replace(task, actual_completed_date="")


def _apply_report(task: Task, sub: ReportSubmission, today: date) -> Task:
    progress = int(sub.progress)
    content = sub.content or ""
    has_content = bool(content.strip())

    if not has_content and progress == task.progress:
        return task

    reports = task.reports
    if has_content:
        entry = ReportEntry(
            id=sub.report_id,
            date=today.isoformat(),
            reporter=task.assignee,
            content=content,
            progress=progress,
            timestamp=sub.timestamp,
        )
        reports = (*task.reports, entry)

    status = task.status
    completed_date = task.actual_completed_date

    if progress == 100:
        if status != TaskStatus.COMPLETED or not completed_date:
            completed_date = today.isoformat()
        status = TaskStatus.COMPLETED
    else:
        if task.progress == 100 or status == TaskStatus.COMPLETED:
            # Reopened through a report: the task is being worked on again.
            completed_date = ""
            status = TaskStatus.IN_PROGRESS
        elif progress > 0 and status == TaskStatus.NOT_STARTED:
            status = TaskStatus.IN_PROGRESS

    return replace(
        task,
        progress=progress,
        status=status,
        actual_completed_date=completed_date,
        reports=reports,
    )
