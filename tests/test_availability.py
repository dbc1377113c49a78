from datetime import date, datetime, timedelta, timezone

from app.models.domain import WorkerProfile
from app.services.availability import (
    is_available,
    list_available_dates,
    to_calendar_day,
    unavailable_dates,
)

TODAY = date(2025, 10, 14)
IST = timezone(timedelta(hours=5, minutes=30))


def worker_with(*days):
    return WorkerProfile(id="w1", name="Ravi Kumar", phone="+91 98765 43210",
                         location="Mandya", availability=tuple(days))


def test_listed_future_day_is_available():
    assert is_available([date(2025, 10, 15)], date(2025, 10, 15), today=TODAY)


def test_unlisted_day_is_not_available():
    assert not is_available([date(2025, 10, 15)], date(2025, 10, 16), today=TODAY)


def test_today_is_bookable():
    assert is_available([TODAY], TODAY, today=TODAY)


def test_past_day_is_never_available_even_if_listed():
    past = TODAY - timedelta(days=1)
    assert not is_available([past], past, today=TODAY)


def test_time_of_day_is_ignored():
    open_days = [datetime(2025, 10, 15, 6, 0)]
    assert is_available(open_days, datetime(2025, 10, 15, 17, 45), today=TODAY)


def test_aware_datetimes_compare_on_utc_day():
    # 02:00 IST on the 16th is still the 15th in UTC
    instant = datetime(2025, 10, 16, 2, 0, tzinfo=IST)
    assert to_calendar_day(instant) == date(2025, 10, 15)
    assert is_available([date(2025, 10, 15)], instant, today=TODAY)
    assert to_calendar_day(instant, tz=IST) == date(2025, 10, 16)


def test_list_available_dates_sorted_unique_and_not_past():
    worker = worker_with(date(2025, 10, 17), TODAY - timedelta(days=2), date(2025, 10, 15), date(2025, 10, 17))
    assert list_available_dates(worker, today=TODAY) == [date(2025, 10, 15), date(2025, 10, 17)]


def test_unavailable_dates_keeps_request_order():
    worker = worker_with(date(2025, 10, 15))
    requested = [date(2025, 10, 18), date(2025, 10, 15), date(2025, 10, 13)]
    assert unavailable_dates(worker, requested, today=TODAY) == [date(2025, 10, 18), date(2025, 10, 13)]
