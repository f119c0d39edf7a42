from __future__ import annotations

from datetime import date, datetime

import pytest

from employee_dashboard.common.datetime_utils import (
    parse_iso_datetime,
    period_range,
    resolve_range,
    time_ago,
    week_start,
)
from employee_dashboard.core.enums import ReportPeriod
from employee_dashboard.core.exceptions import ValidationError


def test_week_period_starts_on_monday():
    # 2025-01-01 is a Wednesday
    start, end = period_range(ReportPeriod.WEEK, today=date(2025, 1, 1))
    assert start == datetime(2024, 12, 30)
    assert end.date() == date(2025, 1, 5)


def test_month_and_year_periods():
    start, end = period_range(ReportPeriod.MONTH, today=date(2024, 2, 10))
    assert (start.date(), end.date()) == (date(2024, 2, 1), date(2024, 2, 29))

    start, end = period_range(ReportPeriod.YEAR, today=date(2024, 6, 1))
    assert (start.date(), end.date()) == (date(2024, 1, 1), date(2024, 12, 31))


def test_explicit_bounds_override_period_and_cover_end_day():
    start, end = resolve_range(
        period=ReportPeriod.WEEK, start="2024-03-01", end="2024-03-31", today=date(2025, 1, 1)
    )
    assert start == datetime(2024, 3, 1)
    assert end.date() == date(2024, 3, 31)
    assert end.hour == 23


def test_reversed_bounds_rejected():
    with pytest.raises(ValidationError):
        resolve_range(period=ReportPeriod.MONTH, start="2024-03-31", end="2024-03-01", today=date(2025, 1, 1))


def test_single_bound_falls_back_to_period():
    start, _ = resolve_range(period=ReportPeriod.MONTH, start="2024-03-01", end=None, today=date(2025, 1, 15))
    assert start == datetime(2025, 1, 1)


def test_invalid_datetime_reports_field():
    with pytest.raises(ValidationError) as exc:
        parse_iso_datetime("not-a-date", field="dueDate")
    assert exc.value.details[0]["field"] == "dueDate"


def test_week_start():
    assert week_start(date(2025, 1, 5)) == date(2024, 12, 30)
    assert week_start(date(2024, 12, 30)) == date(2024, 12, 30)


def test_time_ago_picks_largest_unit():
    now = datetime(2025, 1, 8, 9, 0)

    assert time_ago(datetime(2025, 1, 8, 8, 59), now) == "1 minute ago"
    assert time_ago(datetime(2025, 1, 8, 6, 30), now) == "2 hours ago"
    assert time_ago(datetime(2025, 1, 5, 9, 0), now) == "3 days ago"
    assert time_ago(datetime(2025, 1, 8, 9, 0, 30), now) == "just now"
