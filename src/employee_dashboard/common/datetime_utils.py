from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from dateutil.parser import isoparse
from dateutil.relativedelta import MO, relativedelta

from ..core.enums import ReportPeriod
from ..core.exceptions import ValidationError


def parse_iso_datetime(value: str, *, field: str = "date") -> datetime:
    """Parse an ISO-8601 string (date or date-time) into a naive local datetime."""
    try:
        parsed = isoparse(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Invalid date: {value}",
            details=[{"field": field, "message": "Must be an ISO-8601 date"}],
        ) from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def is_date_only(value: str) -> bool:
    return len(value.strip()) == 10


def parse_hhmm(value: str) -> time:
    """Parse 'HH:MM' working-hour strings from company settings."""
    return datetime.strptime(value, "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def period_range(period: ReportPeriod, *, today: date) -> Tuple[datetime, datetime]:
    """Inclusive [start, end] bounds of the calendar period containing today.

    Weeks start on Monday.
    """

    if period == ReportPeriod.WEEK:
        start = today + relativedelta(weekday=MO(-1))
        end = start + timedelta(days=6)
    elif period == ReportPeriod.YEAR:
        start = today.replace(month=1, day=1)
        end = today.replace(month=12, day=31)
    else:
        start = today.replace(day=1)
        end = start + relativedelta(months=1, days=-1)
    return start_of_day(start), end_of_day(end)


def resolve_range(
    *,
    period: ReportPeriod,
    start: Optional[str],
    end: Optional[str],
    today: date,
) -> Tuple[datetime, datetime]:
    """Explicit startDate/endDate override the period when both are given."""

    if start and end:
        start_dt = parse_iso_datetime(start, field="startDate")
        end_dt = parse_iso_datetime(end, field="endDate")
        if is_date_only(end):
            end_dt = end_of_day(end_dt.date())
        if start_dt > end_dt:
            raise ValidationError("startDate must not be after endDate")
        return start_dt, end_dt
    return period_range(period, today=today)


def week_start(value: date) -> date:
    return value + relativedelta(weekday=MO(-1))


def time_ago(moment: datetime, now: datetime) -> str:
    """Short relative label such as '5 minutes ago'; future moments read 'just now'."""

    delta = relativedelta(now, moment)
    for unit in ("years", "months", "days", "hours", "minutes"):
        amount = getattr(delta, unit)
        if amount > 0:
            label = unit if amount > 1 else unit[:-1]
            return f"{amount} {label} ago"
    return "just now"
