# src/taskdesk/tasks/derive.py

"""
Read-only views over the task collection.

Everything here is a pure function of (tasks, view params, today); the store is
never mutated. Callers recompute whenever the store or the view params change.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

ALL = "all"

DUE_SOON_DAYS = 3


class DueStatus(StrEnum):
    NORMAL = "normal"
    DUE_SOON = "due-soon"
    OVERDUE = "overdue"


class StatusFilter(StrEnum):
    ALL = "all"
    UNFINISHED = "unfinished"
    FINISHED = "finished"


class SortOrder(StrEnum):
    DEFAULT = "default"
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"


@dataclass(frozen=True, slots=True)
class ViewParams:
    query: str = ""
    assignee: str = ALL
    status: StatusFilter = StatusFilter.ALL
    sort: SortOrder = SortOrder.DEFAULT


@dataclass(frozen=True, slots=True)
class AssigneeStats:
    assignee: str
    overdue: int
    due_soon: int
    total: int


@dataclass(frozen=True, slots=True)
class DueCounts:
    overdue: int
    due_soon: int


def _parse_date(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        logger.debug("Unparseable target date %r; treating as no date.", raw)
        return None


def due_status(task: Task, today: date) -> DueStatus:
    if task.status == TaskStatus.COMPLETED:
        return DueStatus.NORMAL
    due = _parse_date(task.target_date)
    if due is None:
        return DueStatus.NORMAL

    # Both sides are whole dates, so the day difference is already "ceiled".
    diff_days = (due - today).days
    if diff_days < 0:
        return DueStatus.OVERDUE
    if diff_days <= DUE_SOON_DAYS:
        return DueStatus.DUE_SOON
    return DueStatus.NORMAL


# ---- filter stages ----


def matches_query(task: Task, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return True
    haystack = (task.content, task.assignee, task.system, task.assigner, task.task_number, task.notes)
    return any(q in (field or "").lower() for field in haystack)


def matches_assignee(task: Task, assignee: str) -> bool:
    return assignee == ALL or task.assignee == assignee


def matches_status(task: Task, status: StatusFilter) -> bool:
    if status == StatusFilter.UNFINISHED:
        return task.status != TaskStatus.COMPLETED
    if status == StatusFilter.FINISHED:
        return task.status == TaskStatus.COMPLETED
    return True


def filter_tasks(tasks: Iterable[Task], params: ViewParams) -> list[Task]:
    result = [t for t in tasks if matches_query(t, params.query)]
    result = [t for t in result if matches_assignee(t, params.assignee)]
    return [t for t in result if matches_status(t, params.status)]


def sort_tasks(tasks: Sequence[Task], order: SortOrder) -> list[Task]:
    """
    Stable sort.

    - default: task_number descending, compared as strings
    - date-asc / date-desc: by target_date; tasks without one always go last
    """
    if order == SortOrder.DEFAULT:
        return sorted(tasks, key=lambda t: t.task_number, reverse=True)

    dated = [t for t in tasks if t.target_date]
    undated = [t for t in tasks if not t.target_date]
    dated.sort(key=lambda t: t.target_date or "", reverse=(order == SortOrder.DATE_DESC))
    return dated + undated


def derive_view(tasks: Iterable[Task], params: ViewParams) -> list[Task]:
    return sort_tasks(filter_tasks(tasks, params), params.sort)


# ---- statistics ----


def assignee_stats(tasks: Iterable[Task], today: date) -> list[AssigneeStats]:
    """Urgency per assignee over unfinished tasks; only assignees with something urgent."""
    acc: dict[str, list[int]] = {}
    for task in tasks:
        if task.status == TaskStatus.COMPLETED or not task.assignee:
            continue
        counts = acc.setdefault(task.assignee, [0, 0, 0])
        counts[2] += 1
        ds = due_status(task, today)
        if ds == DueStatus.OVERDUE:
            counts[0] += 1
        elif ds == DueStatus.DUE_SOON:
            counts[1] += 1

    stats = [
        AssigneeStats(assignee=name, overdue=o, due_soon=s, total=n)
        for name, (o, s, n) in acc.items()
        if o > 0 or s > 0
    ]
    stats.sort(key=lambda st: (-st.overdue, -st.due_soon))
    return stats


def due_counts(tasks: Iterable[Task], today: date) -> DueCounts:
    overdue = due_soon = 0
    for task in tasks:
        ds = due_status(task, today)
        if ds == DueStatus.OVERDUE:
            overdue += 1
        elif ds == DueStatus.DUE_SOON:
            due_soon += 1
    return DueCounts(overdue=overdue, due_soon=due_soon)


def unique_assignees(tasks: Iterable[Task]) -> list[str]:
    return sorted({t.assignee for t in tasks if t.assignee})
