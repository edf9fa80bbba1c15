# tests/test_reconcile.py

from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import date

import pytest

from taskdesk.tasks.reconcile import REOPENED_PROGRESS, FieldEdit, ReportSubmission, reconcile
from taskdesk.tasks.task_models import Priority, Task, TaskStatus

TODAY = date(2026, 10, 18)
LATER = date(2026, 10, 25)

_ids = itertools.count(1)


def make_task(**kw) -> Task:
    base = Task(
        id="t1",
        task_number="1018-1",
        assigned_date="2026-10-18",
        system="HVAC",
        category="Drawing",
        assigner="Sun",
        assignee="Liao",
        content="Publish drawings",
    )
    return replace(base, **kw)


def completed_task(day: str = "2026-10-10") -> Task:
    return make_task(status=TaskStatus.COMPLETED, progress=100, actual_completed_date=day)


def report(progress: int, content: str = "") -> ReportSubmission:
    return ReportSubmission(progress=progress, content=content, report_id=f"r{next(_ids)}", timestamp=1.0)


def assert_triangle(task: Task) -> None:
    completed = task.status == TaskStatus.COMPLETED
    assert completed == (task.progress == 100)
    assert completed == bool(task.actual_completed_date)


# ---- status ----


def test_status_completed_sets_progress_and_today() -> None:
    t = reconcile(make_task(progress=40, status=TaskStatus.IN_PROGRESS), FieldEdit("status", "completed"), today=TODAY)
    assert t.status == TaskStatus.COMPLETED
    assert t.progress == 100
    assert t.actual_completed_date == "2026-10-18"


def test_status_completed_twice_keeps_first_date() -> None:
    once = reconcile(make_task(), FieldEdit("status", TaskStatus.COMPLETED), today=TODAY)
    twice = reconcile(once, FieldEdit("status", TaskStatus.COMPLETED), today=LATER)
    assert twice == once
    assert twice.actual_completed_date == "2026-10-18"


def test_status_away_from_completed_clears_date_and_reopens_progress() -> None:
    t = reconcile(completed_task(), FieldEdit("status", "waiting"), today=TODAY)
    assert t.status == TaskStatus.WAITING
    assert t.actual_completed_date == ""
    assert t.progress == REOPENED_PROGRESS
    assert_triangle(t)


def test_status_change_between_open_states_keeps_progress() -> None:
    t = reconcile(make_task(status=TaskStatus.IN_PROGRESS, progress=30), FieldEdit("status", "waiting"), today=TODAY)
    assert t.status == TaskStatus.WAITING
    assert t.progress == 30
    assert t.actual_completed_date == ""


# ---- progress ----


def test_progress_100_completes() -> None:
    t = reconcile(make_task(progress=80, status=TaskStatus.IN_PROGRESS), FieldEdit("progress", 100), today=TODAY)
    assert t.status == TaskStatus.COMPLETED
    assert t.actual_completed_date == "2026-10-18"


def test_progress_below_100_from_100_reopens() -> None:
    t = reconcile(completed_task(), FieldEdit("progress", 60), today=TODAY)
    assert t.status == TaskStatus.IN_PROGRESS
    assert t.progress == 60
    assert t.actual_completed_date == ""


def test_progress_change_below_100_has_no_cross_effect() -> None:
    t = reconcile(make_task(), FieldEdit("progress", 20), today=TODAY)
    assert t.status == TaskStatus.NOT_STARTED
    assert t.progress == 20


# ---- actual completed date ----


def test_manual_completed_date_completes() -> None:
    t = reconcile(make_task(progress=10), FieldEdit("actual_completed_date", "2026-10-01"), today=TODAY)
    assert t.status == TaskStatus.COMPLETED
    assert t.progress == 100
    assert t.actual_completed_date == "2026-10-01"


def test_clearing_completed_date_reopens() -> None:
    t = reconcile(completed_task(), FieldEdit("actual_completed_date", ""), today=TODAY)
    assert t.status == TaskStatus.IN_PROGRESS
    assert_triangle(t)


# ---- reports ----


def test_report_100_on_not_started_completes_and_appends_one_entry() -> None:
    t = reconcile(make_task(), report(100, "all done"), today=TODAY)
    assert t.status == TaskStatus.COMPLETED
    assert t.actual_completed_date == "2026-10-18"
    assert len(t.reports) == 1
    entry = t.reports[0]
    assert entry.progress == 100
    assert entry.reporter == "Liao"
    assert entry.date == "2026-10-18"


def test_report_partial_progress_starts_task() -> None:
    t = reconcile(make_task(), report(30, "started on site"), today=TODAY)
    assert t.status == TaskStatus.IN_PROGRESS
    assert t.progress == 30


def test_report_below_100_on_completed_task_reopens() -> None:
    t = reconcile(completed_task(), report(80, "found an issue"), today=TODAY)
    assert t.status == TaskStatus.IN_PROGRESS
    assert t.actual_completed_date == ""
    assert_triangle(t)


def test_report_100_on_completed_task_keeps_date() -> None:
    t = reconcile(completed_task("2026-10-10"), report(100, "confirmed by client"), today=TODAY)
    assert t.actual_completed_date == "2026-10-10"
    assert len(t.reports) == 1


def test_blank_report_with_unchanged_progress_is_noop() -> None:
    task = make_task(progress=40, status=TaskStatus.IN_PROGRESS)
    assert reconcile(task, report(40, "   "), today=TODAY) is task


def test_blank_report_with_changed_progress_applies_rules_without_entry() -> None:
    t = reconcile(make_task(progress=40, status=TaskStatus.IN_PROGRESS), report(100), today=TODAY)
    assert t.status == TaskStatus.COMPLETED
    assert t.reports == ()


def test_reports_keep_chronological_order() -> None:
    t = reconcile(make_task(), report(10, "first"), today=TODAY)
    t = reconcile(t, report(20, "second"), today=TODAY)
    assert [r.content for r in t.reports] == ["first", "second"]


# ---- pass-through ----


@pytest.mark.parametrize(
    "field,value",
    [
        ("content", "New content"),
        ("assignee", "Chen"),
        ("notes", "call vendor"),
        ("system", "Fire"),
        ("target_date", "2026-11-01"),
    ],
)
def test_pass_through_fields_do_not_touch_triangle(field: str, value: str) -> None:
    task = completed_task()
    t = reconcile(task, FieldEdit(field, value), today=TODAY)
    assert getattr(t, field) == value
    assert (t.status, t.progress, t.actual_completed_date) == (
        task.status,
        task.progress,
        task.actual_completed_date,
    )


def test_tags_and_priority_are_normalized() -> None:
    t = reconcile(make_task(), FieldEdit("tags", [" cctv", "cctv", "", "ecn"]), today=TODAY)
    assert t.tags == ("cctv", "ecn")
    t = reconcile(t, FieldEdit("priority", "HIGH"), today=TODAY)
    assert t.priority == Priority.HIGH


def test_triangle_holds_across_mixed_sequence() -> None:
    steps = [
        FieldEdit("progress", 50),
        FieldEdit("status", "completed"),
        FieldEdit("progress", 70),
        FieldEdit("actual_completed_date", "2026-10-02"),
        FieldEdit("actual_completed_date", ""),
        report(100, "done"),
        FieldEdit("status", "not-started"),
        report(0, "reset"),
        report(55),
        FieldEdit("progress", 100),
        report(40, "rework"),
        FieldEdit("status", "in-progress"),
    ]
    task = make_task()
    for step in steps:
        task = reconcile(task, step, today=TODAY)
        assert_triangle(task)
