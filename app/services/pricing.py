"""
Khet Mitra - Pricing Calculator
Turns a date selection and billing mode into a quoted amount.

PRICING FORMULA:
    daily:  amount = date_count × daily_rate
    hourly: amount = date_count × (end_hour - start_hour) × hourly_rate

An incomplete selection (no dates yet, a missing or inverted time range)
quotes 0. Callers treat 0 as "no quote" and refuse to submit.
"""

from typing import Iterable, Optional, Union

from app.models.domain import BillingMode, WorkerProfile

TimeLike = Union[int, str, None]


def parse_hour(value: TimeLike) -> Optional[int]:
    """
    Hour-of-day from an int or an "HH:MM" string.
    Minutes are ignored; anything unparseable is treated as missing.
    """
    if value is None or value == "":
        return None
    if isinstance(value, int):
        hour = value
    else:
        try:
            hour = int(str(value).split(":")[0])
        except ValueError:
            return None
    if not 0 <= hour <= 24:
        return None
    return hour


def billable_hours(start_time: TimeLike, end_time: TimeLike) -> int:
    """Hours between two slots, or 0 when the pair is incomplete or inverted."""
    start = parse_hour(start_time)
    end = parse_hour(end_time)
    if start is None or end is None or end <= start:
        return 0
    return end - start


def quote_price(
    date_count: int,
    billing_mode: BillingMode,
    daily_rate: float,
    hourly_rate: float,
    start_time: TimeLike = None,
    end_time: TimeLike = None
) -> float:
    """
    Quote a selection for one worker.

    Args:
        date_count: Number of selected work days
        billing_mode: hourly or daily
        daily_rate: Worker's price per day
        hourly_rate: Worker's price per hour
        start_time / end_time: Hour slots, required for hourly billing

    Returns:
        The amount, or 0 for an incomplete selection
    """
    if date_count <= 0:
        return 0
    if BillingMode(billing_mode) == BillingMode.DAILY:
        return date_count * daily_rate
    hours = billable_hours(start_time, end_time)
    return date_count * hours * hourly_rate


def unit_rate_for(worker: WorkerProfile, billing_mode: BillingMode) -> float:
    if BillingMode(billing_mode) == BillingMode.DAILY:
        return worker.daily_rate
    return worker.hourly_rate


def group_total(workers: Iterable[WorkerProfile]) -> float:
    """Per-day cost of a group; groups are always billed daily."""
    return sum(w.daily_rate for w in workers)


def average_rating(workers: Iterable[WorkerProfile]) -> float:
    ratings = [w.rating for w in workers]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)
