# src/taskdesk/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

TASK_CATEGORIES = ["Drawing", "Report", "Plan", "Site", "Meeting", "Admin", "To-do", "Other"]

SYSTEM_OPTIONS = [
    "HVAC",
    "Electrical",
    "Fire",
    "Plumbing",
    "Low-voltage",
    "Fit-out",
    "Civil",
    "Other",
]

# Slider granularity for progress edits.
PROGRESS_STEP = 5


class TaskStatus(StrEnum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    WAITING = "waiting"
    COMPLETED = "completed"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        """Lenient decode: accepts values or names in any case; unknown -> not-started."""
        if isinstance(raw, TaskStatus):
            return raw
        s = str(raw or "").strip().lower().replace("_", "-")
        for member in cls:
            if s in (member.value, member.name.lower().replace("_", "-")):
                return member
        return cls.NOT_STARTED


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: Any) -> Priority:
        if isinstance(raw, Priority):
            return raw
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.MEDIUM


@dataclass(frozen=True, slots=True)
class ReportEntry:
    id: str
    date: str
    reporter: str
    content: str
    progress: int
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "reporter": self.reporter,
            "content": self.content,
            "progress": self.progress,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ReportEntry:
        return cls(
            id=str(d.get("id") or ""),
            date=str(d.get("date") or ""),
            reporter=str(d.get("reporter") or ""),
            content=str(d.get("content") or ""),
            progress=clamp_progress(d.get("progress")),
            timestamp=_as_float(d.get("timestamp")),
        )


@dataclass(frozen=True, slots=True)
class Task:
    """
    One tracked unit of work.

    Instances are immutable values; the TaskStore swaps in reconciled copies.
    status / progress / actual_completed_date are kept consistent by tasks.reconcile.
    """

    id: str
    task_number: str
    assigned_date: str
    system: str
    category: str
    assigner: str
    assignee: str
    content: str

    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: Priority = Priority.MEDIUM
    progress: int = 0

    target_date: str | None = None
    actual_completed_date: str = ""

    tags: tuple[str, ...] = ()
    reports: tuple[ReportEntry, ...] = ()
    notes: str = ""

    synced_calendar: bool = False
    synced_sheet: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Persisted layout (camelCase keys, one object per task)."""
        return {
            "id": self.id,
            "taskNumber": self.task_number,
            "assignedDate": self.assigned_date,
            "system": self.system,
            "category": self.category,
            "assigner": self.assigner,
            "assignee": self.assignee,
            "content": self.content,
            "targetDate": self.target_date,
            "actualCompletedDate": self.actual_completed_date,
            "status": self.status.value,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "progress": self.progress,
            "reports": [r.to_dict() for r in self.reports],
            "notes": self.notes,
            "syncedCalendar": self.synced_calendar,
            "syncedSheet": self.synced_sheet,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        raw_reports = d.get("reports")
        reports = tuple(
            ReportEntry.from_dict(r) for r in (raw_reports if isinstance(raw_reports, list) else []) if isinstance(r, dict)
        )
        raw_tags = d.get("tags")
        return cls(
            id=str(d.get("id") or ""),
            task_number=str(d.get("taskNumber") or ""),
            assigned_date=str(d.get("assignedDate") or ""),
            system=str(d.get("system") or ""),
            category=str(d.get("category") or ""),
            assigner=str(d.get("assigner") or ""),
            assignee=str(d.get("assignee") or ""),
            content=str(d.get("content") or ""),
            target_date=(str(d["targetDate"]) if d.get("targetDate") else None),
            actual_completed_date=str(d.get("actualCompletedDate") or ""),
            status=TaskStatus.from_raw(d.get("status")),
            priority=Priority.from_raw(d.get("priority")),
            tags=normalize_tags(raw_tags if isinstance(raw_tags, list) else []),
            progress=clamp_progress(d.get("progress")),
            reports=reports,
            notes=str(d.get("notes") or ""),
            synced_calendar=bool(d.get("syncedCalendar", False)),
            synced_sheet=bool(d.get("syncedSheet", False)),
        )


def clamp_progress(raw: Any) -> int:
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, value))


def normalize_tags(tags: Any) -> tuple[str, ...]:
    """Set-like: strip, drop blanks and duplicates, keep first-seen order."""
    out: list[str] = []
    for t in tags or ():
        s = str(t).strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


def _as_float(raw: Any) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0
