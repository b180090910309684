"""Deadline lookups for the job calendar."""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Iterable
from zoneinfo import ZoneInfo

from fieldflow.schemas.work_order import WorkOrder


def calendar_day(value: date | datetime, tz: tzinfo | None = None) -> date:
    """Reduce a date or timestamp to a calendar day in ``tz``.

    Aware timestamps are converted to ``tz`` first; naive ones are taken to be
    local already. Plain dates pass through unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def find_by_deadline_day(
    orders: Iterable[WorkOrder], day: date | datetime, tz: tzinfo | None = None,
) -> list[WorkOrder]:
    target = calendar_day(day, tz)
    return [o for o in orders if o.deadline is not None and calendar_day(o.deadline, tz) == target]


def event_days(orders: Iterable[WorkOrder], tz: tzinfo | None = None) -> set[date]:
    """Distinct days that have at least one deadline."""
    return {calendar_day(o.deadline, tz) for o in orders if o.deadline is not None}


def get_calendar_tz(name: str) -> ZoneInfo:
    return ZoneInfo(name)
