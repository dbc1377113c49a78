"""
Khet Mitra - Booking State Machine
Creation, lifecycle transitions and group fan-out for booking requests.

LIFECYCLE:
    pending --accept (worker)-->            confirmed
    pending --decline (worker)-->           cancelled
    pending --cancel (farmer)-->            cancelled
    confirmed --complete (worker|farmer)--> completed

    completed and cancelled are terminal. Every function here returns a new
    BookingRequest or a Rejection; the input booking is never modified.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union
import logging
import uuid

from app.models.domain import BillingMode, BookingRequest, BookingStatus, WorkerProfile
from app.services.pricing import (
    TimeLike,
    average_rating,
    group_total,
    parse_hour,
    quote_price,
    unit_rate_for,
)
from app.services.rejections import Rejection, RejectionReason, invalid_input
from app.utils.payment_reference import payment_method_from_code

logger = logging.getLogger(__name__)


class BookingEvent(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"
    COMPLETE = "complete"


class ActorRole(str, Enum):
    WORKER = "worker"
    FARMER = "farmer"


@dataclass(frozen=True)
class Transition:
    target: BookingStatus
    actors: FrozenSet[ActorRole]


TRANSITIONS: Dict[Tuple[BookingStatus, BookingEvent], Transition] = {
    (BookingStatus.PENDING, BookingEvent.ACCEPT): Transition(
        BookingStatus.CONFIRMED, frozenset({ActorRole.WORKER})
    ),
    (BookingStatus.PENDING, BookingEvent.DECLINE): Transition(
        BookingStatus.CANCELLED, frozenset({ActorRole.WORKER})
    ),
    (BookingStatus.PENDING, BookingEvent.CANCEL): Transition(
        BookingStatus.CANCELLED, frozenset({ActorRole.FARMER})
    ),
    (BookingStatus.CONFIRMED, BookingEvent.COMPLETE): Transition(
        BookingStatus.COMPLETED, frozenset({ActorRole.WORKER, ActorRole.FARMER})
    ),
}


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =========================================================================
# CREATION
# =========================================================================

def create_booking(
    worker: WorkerProfile,
    farmer_id: str,
    work_dates: Iterable[date],
    work_types: Iterable[str],
    billing_mode: BillingMode,
    payment_method: str,
    farmer_location: str,
    start_time: TimeLike = None,
    end_time: TimeLike = None,
    description: str = "",
    group_id: Optional[str] = None,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = _new_id
) -> Union[BookingRequest, Rejection]:
    """
    Build a pending booking for one worker.

    Refused when the date selection, work types or location are empty, the
    payment method is unknown, or the selection has no resolvable price.
    """
    dates = tuple(sorted(set(work_dates)))
    types = tuple(dict.fromkeys(t.strip() for t in work_types if t and t.strip()))
    location = (farmer_location or "").strip()

    if not dates:
        return invalid_input("Select at least one work date")
    if not types:
        return invalid_input("Select at least one work type")
    if not location:
        return invalid_input("Farm location is required")

    try:
        mode = BillingMode(billing_mode)
        payment_method_from_code(payment_method)
    except ValueError as e:
        return invalid_input(str(e))

    start_hour = end_hour = None
    if mode == BillingMode.HOURLY:
        start_hour = parse_hour(start_time)
        end_hour = parse_hour(end_time)
        if start_hour is None or end_hour is None or end_hour <= start_hour:
            return invalid_input("Hourly bookings need an end time after the start time")

    amount = quote_price(
        len(dates), mode, worker.daily_rate, worker.hourly_rate, start_hour, end_hour
    )
    if amount <= 0:
        return invalid_input("Could not price this selection")

    return BookingRequest(
        id=id_factory(),
        worker_id=worker.id,
        farmer_id=farmer_id,
        work_types=types,
        work_dates=dates,
        billing_mode=mode,
        payment_method=payment_method,
        unit_rate=unit_rate_for(worker, mode),
        total_amount=amount,
        farmer_location=location,
        worker_name=worker.name,
        worker_phone=worker.phone,
        start_hour=start_hour,
        end_hour=end_hour,
        description=description or "",
        status=BookingStatus.PENDING,
        has_review=False,
        group_id=group_id,
        created_at=now or _utcnow(),
    )


def recompute_amount(booking: BookingRequest) -> float:
    """Price a stored booking again from its own snapshot."""
    if booking.billing_mode == BillingMode.DAILY:
        return quote_price(booking.day_count, BillingMode.DAILY, booking.unit_rate, 0)
    return quote_price(
        booking.day_count, BillingMode.HOURLY, 0, booking.unit_rate,
        booking.start_hour, booking.end_hour
    )


# =========================================================================
# TRANSITIONS
# =========================================================================

def allowed_events(status: BookingStatus, actor: ActorRole) -> List[BookingEvent]:
    """Events `actor` may raise on a booking in `status`."""
    return [
        event for (source, event), rule in TRANSITIONS.items()
        if source == status and actor in rule.actors
    ]


def transition(
    booking: BookingRequest,
    event: BookingEvent,
    actor: ActorRole,
    expected_status: Optional[BookingStatus] = None
) -> Union[BookingRequest, Rejection]:
    """
    Apply one lifecycle event.

    When `expected_status` is given it must equal the booking's current
    status; otherwise the caller's view is stale and nothing changes.
    """
    if expected_status is not None and BookingStatus(expected_status) != booking.status:
        return Rejection(
            RejectionReason.STALE_STATE,
            f"Booking is {booking.status.value}, expected {BookingStatus(expected_status).value}",
            current_status=booking.status,
        )

    event = BookingEvent(event)
    actor = ActorRole(actor)
    rule = TRANSITIONS.get((booking.status, event))
    if rule is None:
        return Rejection(
            RejectionReason.ILLEGAL_TRANSITION,
            f"Cannot {event.value} a {booking.status.value} booking",
            current_status=booking.status,
        )
    if actor not in rule.actors:
        return Rejection(
            RejectionReason.ILLEGAL_TRANSITION,
            f"A {actor.value} cannot {event.value} this booking",
            current_status=booking.status,
        )

    return replace(booking, status=rule.target)


# =========================================================================
# GROUP BOOKINGS
# =========================================================================

@dataclass(frozen=True)
class GroupBooking:
    """Workers picked together during one search session, in pick order."""
    workers: Tuple[WorkerProfile, ...] = ()

    def contains(self, worker_id: str) -> bool:
        return any(w.id == worker_id for w in self.workers)

    def add(self, worker: WorkerProfile) -> "GroupBooking":
        if self.contains(worker.id):
            return self
        return GroupBooking(self.workers + (worker,))

    def remove(self, worker_id: str) -> "GroupBooking":
        return GroupBooking(tuple(w for w in self.workers if w.id != worker_id))

    def toggle(self, worker: WorkerProfile) -> "GroupBooking":
        if self.contains(worker.id):
            return self.remove(worker.id)
        return self.add(worker)

    @property
    def total_cost(self) -> float:
        return group_total(self.workers)

    @property
    def average_rating(self) -> float:
        return average_rating(self.workers)

    def __len__(self) -> int:
        return len(self.workers)


@dataclass(frozen=True)
class GroupBookingParams:
    work_type: str
    start_date: date
    end_date: date
    farmer_location: str
    payment_method: str = "cash"
    hours_per_day: int = 8
    instructions: str = ""


def date_range(start: date, end: date) -> Tuple[date, ...]:
    """Every calendar day from start to end, inclusive."""
    return tuple(start + timedelta(days=i) for i in range((end - start).days + 1))


def create_group_booking(
    group: GroupBooking,
    params: GroupBookingParams,
    farmer_id: str,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = _new_id
) -> Union[List[BookingRequest], Rejection]:
    """
    Fan a group out into one independent pending booking per worker.

    Members share the date range, work type and location but are priced
    from their own daily rate. Availability is the caller's check.
    """
    if not group.workers:
        return invalid_input("Select at least one worker for a group booking")
    if not (params.work_type or "").strip():
        return invalid_input("Work type is required")
    if not (params.farmer_location or "").strip():
        return invalid_input("Farm location is required")
    if params.start_date > params.end_date:
        return invalid_input("Start date must not be after end date")
    if params.hours_per_day <= 0:
        return invalid_input("Hours per day must be positive")

    group_id = id_factory()
    created_at = now or _utcnow()
    days = date_range(params.start_date, params.end_date)
    description = f"Group booking, {params.hours_per_day} hours/day"
    if params.instructions.strip():
        description = f"{description}. {params.instructions.strip()}"

    bookings = []
    for worker in group.workers:
        result = create_booking(
            worker,
            farmer_id=farmer_id,
            work_dates=days,
            work_types=[params.work_type],
            billing_mode=BillingMode.DAILY,
            payment_method=params.payment_method,
            farmer_location=params.farmer_location,
            description=description,
            group_id=group_id,
            now=created_at,
            id_factory=id_factory,
        )
        if isinstance(result, Rejection):
            logger.warning(f"Group {group_id} refused at worker {worker.id}: {result.message}")
            return result
        bookings.append(result)

    return bookings
