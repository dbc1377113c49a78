"""
Khet Mitra - Booking Service
Runs the booking lifecycle against the store.

FLOW:
    1. Load domain values through the repositories
    2. Check worker availability for every requested day
    3. Apply the pure state machine (create / transition / group fan-out)
    4. Persist with compare-and-swap on status
    5. Chain a ledger entry in the same transaction
"""

from sqlalchemy.orm import Session
from datetime import date
from typing import Iterable, List, Optional, Union
import logging

from app.config import get_settings
from app.models.domain import BillingMode, BookingRequest, BookingStatus, WorkerProfile
from app.repositories import BookingRepository, WorkerRepository
from app.services.availability import unavailable_dates
from app.services.booking_ledger import BookingLedger
from app.services.booking_state_machine import (
    ActorRole,
    BookingEvent,
    GroupBooking,
    GroupBookingParams,
    create_booking,
    create_group_booking,
    date_range,
    transition,
)
from app.services.pricing import TimeLike
from app.services.rejections import Rejection, RejectionReason, invalid_input
from app.utils.payment_reference import (
    PaymentIntent,
    build_payment_address,
    build_payment_intent,
    payment_method_from_code,
)

logger = logging.getLogger(__name__)
settings = get_settings()


class BookingService:
    """
    Booking lifecycle over the booking store.

    Key Methods:
    - create(): single booking from a farmer
    - apply_event(): accept / decline / cancel / complete
    - create_group(): fan a worker group out into bookings
    """

    def __init__(self, db: Session):
        self.db = db
        self.bookings = BookingRepository(db)
        self.workers = WorkerRepository(db)
        self.ledger = BookingLedger(db)

    # =========================================================================
    # CREATION
    # =========================================================================

    def _check_availability(
        self,
        worker: WorkerProfile,
        days: Iterable[date],
        today: Optional[date] = None
    ) -> Optional[Rejection]:
        missing = unavailable_dates(worker, days, today=today)
        if missing:
            listed = ", ".join(d.isoformat() for d in missing)
            return invalid_input(f"{worker.name} is not available on {listed}")
        return None

    def create(
        self,
        worker: WorkerProfile,
        farmer_id: str,
        work_dates: List[date],
        work_types: List[str],
        billing_mode: BillingMode,
        payment_method: str,
        farmer_location: str,
        start_time: TimeLike = None,
        end_time: TimeLike = None,
        description: str = "",
        today: Optional[date] = None
    ) -> Union[BookingRequest, Rejection]:
        """Create and store a pending booking."""
        unavailable = self._check_availability(worker, work_dates, today)
        if unavailable:
            logger.warning(f"Booking refused for worker {worker.id}: {unavailable.message}")
            return unavailable

        result = create_booking(
            worker,
            farmer_id=farmer_id,
            work_dates=work_dates,
            work_types=work_types,
            billing_mode=billing_mode,
            payment_method=payment_method,
            farmer_location=farmer_location,
            start_time=start_time,
            end_time=end_time,
            description=description,
        )
        if isinstance(result, Rejection):
            logger.warning(f"Booking refused for worker {worker.id}: {result.message}")
            return result

        try:
            self.bookings.save(result)
            self.ledger.record(result, action="BOOKING_CREATED", actor=ActorRole.FARMER.value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Booking {result.id} created: worker {worker.id}, amount {result.total_amount}")
        return result

    def create_group(
        self,
        worker_ids: List[str],
        farmer_id: str,
        params: GroupBookingParams,
        today: Optional[date] = None
    ) -> Union[List[BookingRequest], Rejection]:
        """Store one pending booking per group member, all or nothing."""
        group = self.build_group(worker_ids)
        if len(group) != len(dict.fromkeys(worker_ids)):
            return invalid_input("One or more selected workers do not exist")

        if params.start_date <= params.end_date:
            days = date_range(params.start_date, params.end_date)
            for worker in group.workers:
                unavailable = self._check_availability(worker, days, today)
                if unavailable:
                    logger.warning(f"Group booking refused: {unavailable.message}")
                    return unavailable

        result = create_group_booking(group, params, farmer_id=farmer_id)
        if isinstance(result, Rejection):
            return result

        try:
            for booking in result:
                self.bookings.save(booking)
                self.ledger.record(
                    booking,
                    action="BOOKING_CREATED",
                    actor=ActorRole.FARMER.value,
                    extra={"group_id": booking.group_id}
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Group booking {result[0].group_id} created with {len(result)} workers, "
            f"{group.total_cost} per day"
        )
        return result

    def build_group(self, worker_ids: List[str]) -> GroupBooking:
        group = GroupBooking()
        for worker in self.workers.get_many(worker_ids):
            group = group.add(worker)
        return group

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def get(self, booking_id: str) -> Optional[BookingRequest]:
        return self.bookings.get(booking_id)

    def list(
        self,
        status: Optional[BookingStatus] = None,
        farmer_id: Optional[str] = None,
        worker_id: Optional[str] = None,
        group_id: Optional[str] = None
    ) -> List[BookingRequest]:
        return self.bookings.list(status=status, farmer_id=farmer_id, worker_id=worker_id, group_id=group_id)

    def apply_event(
        self,
        booking: BookingRequest,
        event: BookingEvent,
        actor: ActorRole,
        expected_status: Optional[BookingStatus] = None
    ) -> Union[BookingRequest, Rejection]:
        """
        Apply an event to a loaded booking and store it.

        The write only lands if the stored status still equals the status the
        booking was loaded with; a concurrent writer turns this into StaleState.
        """
        result = transition(booking, event, actor, expected_status=expected_status)
        if isinstance(result, Rejection):
            logger.warning(f"Booking {booking.id}: {result.reason.value} - {result.message}")
            return result

        try:
            if not self.bookings.compare_and_set_status(booking.id, booking.status, result.status):
                self.db.rollback()
                current = self.bookings.get(booking.id)
                current_status = current.status if current else None
                logger.warning(f"Booking {booking.id}: lost race applying {BookingEvent(event).value}")
                return Rejection(
                    RejectionReason.STALE_STATE,
                    "Booking was changed by someone else; reload and try again",
                    current_status=current_status,
                )
            self.ledger.record(
                result,
                action=f"BOOKING_{BookingEvent(event).value.upper()}",
                actor=ActorRole(actor).value,
                extra={"from_status": booking.status.value}
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Booking {booking.id}: {booking.status.value} -> {result.status.value} by {ActorRole(actor).value}")
        return result

    # =========================================================================
    # PAYMENT
    # =========================================================================

    def payment_intent(self, booking: BookingRequest) -> Optional[PaymentIntent]:
        """UPI intent for paying the worker; None for cash bookings."""
        method = payment_method_from_code(booking.payment_method)
        address = build_payment_address(booking.worker_phone, method)
        if address is None:
            return None
        return build_payment_intent(
            address,
            payee_name=booking.worker_name,
            amount=booking.total_amount,
            currency=settings.currency
        )
