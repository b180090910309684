"""Tests for deadline-day lookups."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from fieldflow.schemas import WorkOrder
from fieldflow.services.calendar import calendar_day, event_days, find_by_deadline_day


def _order(order_id, deadline):
    return WorkOrder(
        id=order_id,
        customer_details={"name": "A", "email": "a@b.co", "phone": "1", "address": "x"},
        job_description="Job",
        location="Site",
        urgency="Low",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        deadline=deadline,
    )


def test_deadline_matches_regardless_of_time_of_day():
    late = _order("a", datetime(2024, 5, 10, 23, 59, tzinfo=timezone.utc))
    early = _order("b", datetime(2024, 5, 11, 0, 1, tzinfo=timezone.utc))
    orders = [late, early]

    assert find_by_deadline_day(orders, date(2024, 5, 10), timezone.utc) == [late]
    assert find_by_deadline_day(orders, date(2024, 5, 11), timezone.utc) == [early]


def test_query_with_datetime_uses_its_day():
    order = _order("a", datetime(2024, 5, 10, 8, 0, tzinfo=timezone.utc))
    query = datetime(2024, 5, 10, 22, 0, tzinfo=timezone.utc)
    assert find_by_deadline_day([order], query, timezone.utc) == [order]


def test_orders_without_deadline_never_match():
    assert find_by_deadline_day([_order("a", None)], date(2024, 5, 10)) == []


def test_day_is_taken_in_calendar_timezone():
    # 02:00 UTC on the 11th is still the 10th in New York
    order = _order("a", datetime(2024, 5, 11, 2, 0, tzinfo=timezone.utc))
    ny = ZoneInfo("America/New_York")
    assert find_by_deadline_day([order], date(2024, 5, 10), ny) == [order]
    assert find_by_deadline_day([order], date(2024, 5, 11), ny) == []


def test_naive_timestamps_taken_as_is():
    assert calendar_day(datetime(2024, 5, 10, 23, 59), ZoneInfo("Asia/Tokyo")) == date(2024, 5, 10)


def test_event_days_are_distinct():
    base = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)
    orders = [
        _order("a", base),
        _order("b", base + timedelta(hours=5)),
        _order("c", base + timedelta(days=2)),
        _order("d", None),
    ]
    assert event_days(orders, timezone.utc) == {date(2024, 5, 10), date(2024, 5, 12)}


def test_start_and_end_of_day_both_match():
    orders = [
        _order("a", datetime(2024, 3, 1, 23, 59, tzinfo=timezone.utc)),
        _order("b", datetime(2024, 3, 1, 0, 1, tzinfo=timezone.utc)),
    ]
    assert [o.id for o in find_by_deadline_day(orders, date(2024, 3, 1), timezone.utc)] == ["a", "b"]
