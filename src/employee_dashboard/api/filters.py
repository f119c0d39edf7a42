"""Composable query predicates built from request parameters.

Each helper returns a SQLAlchemy boolean clause, or None when the parameters
do not constrain the query; `combine` ANDs whatever is left.
"""
from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import Date, DateTime, and_, or_
from sqlalchemy.sql.elements import ColumnElement

from ..common.datetime_utils import end_of_day, is_date_only, parse_iso_datetime


def _contains(model, path: str, pattern: str) -> ColumnElement:
    head, _, tail = path.partition(".")
    attr = getattr(model, head)
    if not tail:
        return attr.ilike(pattern)
    related = attr.property.mapper.class_
    return attr.has(getattr(related, tail).ilike(pattern))


def build_text_search_where(term: Optional[str], fields: Sequence[str], model) -> Optional[ColumnElement]:
    """OR of case-insensitive 'contains' predicates.

    Field paths may use one level of relation nesting, e.g. "user.name".
    """

    term = (term or "").strip()
    if not term or not fields:
        return None
    pattern = f"%{term}%"
    return or_(*(_contains(model, path, pattern) for path in fields))


def build_date_range_where(
    start: Optional[str],
    end: Optional[str],
    column,
) -> Optional[ColumnElement]:
    """Inclusive range when both ISO bounds are present, else no condition.

    A date-only end bound covers the whole day on DATETIME columns.
    """

    if not start or not end:
        return None
    start_dt = parse_iso_datetime(start, field="startDate")
    end_dt = parse_iso_datetime(end, field="endDate")

    column_type = column.type
    if isinstance(column_type, Date) and not isinstance(column_type, DateTime):
        return and_(column >= start_dt.date(), column <= end_dt.date())
    if is_date_only(end):
        end_dt = end_of_day(end_dt.date())
    return and_(column >= start_dt, column <= end_dt)


def combine(*clauses: Optional[ColumnElement]) -> Optional[ColumnElement]:
    present = [c for c in clauses if c is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return and_(*present)
