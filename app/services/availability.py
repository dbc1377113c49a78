"""
Khet Mitra - Availability Calendar
Answers "can this worker be booked on this day?" from the worker's open dates.

Dates are compared by calendar day only. Aware datetimes are first moved to
the reference timezone (UTC unless told otherwise) so that an evening slot
in IST and the same instant in UTC land on the same day.
"""

from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Union

from app.models.domain import WorkerProfile

DateLike = Union[date, datetime]


def to_calendar_day(value: DateLike, tz: tzinfo = timezone.utc) -> date:
    """Strip time-of-day (and offset) from a date or datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def is_available(
    availability: Iterable[DateLike],
    day: DateLike,
    today: Optional[date] = None,
    tz: tzinfo = timezone.utc
) -> bool:
    """
    True iff `day` is one of the open dates and is not in the past.

    No retroactive bookings: a day before `today` is never available,
    even when it is still listed.
    """
    target = to_calendar_day(day, tz)
    if today is None:
        today = datetime.now(tz).date()
    if target < today:
        return False
    return any(to_calendar_day(d, tz) == target for d in availability)


def list_available_dates(
    worker: WorkerProfile,
    today: Optional[date] = None,
    tz: tzinfo = timezone.utc
) -> List[date]:
    """The worker's bookable days from `today` onwards, sorted, without repeats."""
    if today is None:
        today = datetime.now(tz).date()
    days = {to_calendar_day(d, tz) for d in worker.availability}
    return sorted(d for d in days if d >= today)


def unavailable_dates(
    worker: WorkerProfile,
    requested: Iterable[DateLike],
    today: Optional[date] = None,
    tz: tzinfo = timezone.utc
) -> List[date]:
    """Requested days the worker cannot take, in request order."""
    return [
        to_calendar_day(d, tz) for d in requested
        if not is_available(worker.availability, d, today=today, tz=tz)
    ]
