# src/taskdesk/tasks/numbering.py

from __future__ import annotations

from collections.abc import Iterable
from datetime import date


def day_prefix(today: date) -> str:
    return today.strftime("%m%d")


def allocate_task_number(existing: Iterable[str], today: date) -> str:
    """
    Next per-day number: "MMDD-N", N = (numbers already using today's prefix) + 1.

    Counted from a snapshot, so two writers on the same day, or the same month/day in
    different years, can produce duplicates. Numbers are display labels; identity is
    Task.id.
    """
    prefix = day_prefix(today)
    count = sum(1 for n in existing if n.startswith(prefix))
    return f"{prefix}-{count + 1}"
