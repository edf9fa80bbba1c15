# src/taskdesk/cli/render.py

"""Plain-text rendering of tasks and statistics for the console."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from ..tasks.derive import AssigneeStats, DueCounts, DueStatus, due_status
from ..tasks.task_models import Task

_DUE_MARK = {
    DueStatus.OVERDUE: "!!",
    DueStatus.DUE_SOON: "! ",
    DueStatus.NORMAL: "  ",
}


def _sync_marks(task: Task) -> str:
    return ("S" if task.synced_sheet else "-") + ("C" if task.synced_calendar else "-")


def task_line(task: Task, today: date, *, selected: bool = False) -> str:
    sel = "*" if selected else " "
    mark = _DUE_MARK[due_status(task, today)]
    target = task.target_date or "-"
    return (
        f"{sel}{mark} {task.task_number:<8} [{task.status.value:<11}] {task.progress:>3}% "
        f"{task.priority.value:<6} {target:<10} {task.assignee:<10} "
        f"[{task.system}/{task.category}] {task.content} ({_sync_marks(task)})"
    )


def task_list(tasks: Sequence[Task], today: date, selected: frozenset[str] = frozenset()) -> str:
    if not tasks:
        return "No tasks match the current view."
    lines = [task_line(t, today, selected=t.id in selected) for t in tasks]
    lines.append(f"({len(tasks)} task(s))")
    return "\n".join(lines)


def task_detail(task: Task, today: date) -> str:
    lines = [
        f"{task.task_number}  ({task.id})",
        f"  Content:    {task.content}",
        f"  System:     {task.system}    Category: {task.category}",
        f"  Assigner:   {task.assigner}    Assignee: {task.assignee}",
        f"  Assigned:   {task.assigned_date}    Target: {task.target_date or '-'}"
        f"    Due: {due_status(task, today).value}",
        f"  Status:     {task.status.value}    Progress: {task.progress}%"
        f"    Completed: {task.actual_completed_date or '-'}",
        f"  Priority:   {task.priority.value}    Tags: {', '.join(task.tags) or '-'}",
        f"  Synced:     sheet={'yes' if task.synced_sheet else 'no'}"
        f" calendar={'yes' if task.synced_calendar else 'no'}",
    ]
    if task.notes:
        lines.append(f"  Notes:      {task.notes}")
    if task.reports:
        lines.append("  Reports:")
        for r in task.reports:
            lines.append(f"    {r.date} {r.reporter} {r.progress}%: {r.content}")
    return "\n".join(lines)


def stats_table(stats: Sequence[AssigneeStats]) -> str:
    if not stats:
        return "Nobody has overdue or due-soon tasks."
    lines = ["Assignee     overdue  due-soon  open"]
    for s in stats:
        lines.append(f"{s.assignee:<12} {s.overdue:>7}  {s.due_soon:>8}  {s.total:>4}")
    return "\n".join(lines)


def due_banner(counts: DueCounts) -> str | None:
    if counts.overdue == 0 and counts.due_soon == 0:
        return None
    return f"Reminder: {counts.overdue} overdue task(s) and {counts.due_soon} due within 3 days."
