# tests/test_numbering.py

from __future__ import annotations

from datetime import date

from taskdesk.tasks.numbering import allocate_task_number, day_prefix


def test_day_prefix_is_zero_padded() -> None:
    assert day_prefix(date(2026, 3, 7)) == "0307"


def test_numbers_count_only_same_day_prefix() -> None:
    existing = ["1018-1", "1018-2", "1017-1", "0918-1"]
    assert allocate_task_number(existing, date(2026, 10, 18)) == "1018-3"
    assert allocate_task_number(existing, date(2026, 10, 19)) == "1019-1"


def test_same_month_day_in_another_year_shares_the_sequence() -> None:
    # Known gap: the prefix carries no year.
    assert allocate_task_number(["1018-1"], date(2027, 10, 18)) == "1018-2"
