"""Money (Decimal, GBP) and UK time helper tests."""
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from utils.clocking import compute_total_hours
from utils.money import ensure_decimal, line_total, validate_decimal_amount
from utils.uk_time import as_utc, fmt_long_date, fmt_uk_date, fmt_uk_time, uk_date, uk_day_bounds_utc, week_start_for


def test_validate_decimal_amount():
    assert validate_decimal_amount("12.345") == Decimal("12.35")
    assert validate_decimal_amount(7) == Decimal("7.00")
    with pytest.raises(ValueError):
        validate_decimal_amount(1.5)
    with pytest.raises(ValueError):
        validate_decimal_amount("abc")


def test_ensure_decimal_keeps_float_repr():
    assert ensure_decimal(7.1) == Decimal("7.1")
    assert ensure_decimal(None) == Decimal("0")
    with pytest.raises(TypeError):
        ensure_decimal([1])


def test_line_total_rounds_half_up():
    assert line_total(Decimal("7.5"), Decimal("20.00")) == Decimal("150.00")
    assert line_total(0.33, "10.005") == Decimal("3.30")
    assert line_total(Decimal("1"), Decimal("0.125")) == Decimal("0.13")


def test_compute_total_hours():
    start = datetime(2025, 3, 3, 8, 0, tzinfo=timezone.utc)
    assert compute_total_hours(start, datetime(2025, 3, 3, 16, 20, tzinfo=timezone.utc)) == 8.33
    assert compute_total_hours(start, None) is None
    # Naive values (as SQLite returns them) are treated as UTC
    assert compute_total_hours(start.replace(tzinfo=None), datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)) == 1.0


def test_as_utc():
    naive = datetime(2025, 3, 3, 8, 0)
    assert as_utc(naive).tzinfo == timezone.utc
    assert as_utc(None) is None


def test_uk_day_crosses_bst():
    # 23:30 UTC on a BST day is already the next day in London
    late = datetime(2025, 7, 1, 23, 30, tzinfo=timezone.utc)
    assert uk_date(late) == date(2025, 7, 2)
    assert fmt_uk_time(late) == "00:30"
    assert fmt_uk_date(late) == "02/07/2025"

    start, end = uk_day_bounds_utc(date(2025, 7, 2))
    assert start == datetime(2025, 7, 1, 23, 0, tzinfo=timezone.utc)
    assert end == datetime(2025, 7, 2, 23, 0, tzinfo=timezone.utc)

    # Clocks go forward on 30 March 2025: a 23-hour day
    start, end = uk_day_bounds_utc(date(2025, 3, 30))
    assert (end - start).total_seconds() == 23 * 3600


def test_week_start_and_long_date():
    assert week_start_for(date(2025, 3, 9)) == date(2025, 3, 3)
    assert week_start_for(date(2025, 3, 3)) == date(2025, 3, 3)
    assert fmt_long_date(date(2025, 3, 4)) == "Mar 04, 2025"
