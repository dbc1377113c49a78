"""
Khet Mitra - Bookings Router
API endpoints for booking requests, their lifecycle and payment details.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.domain import BookingRequest, BookingStatus
from app.repositories import FarmerRepository
from app.routers.common import unwrap
from app.routers.workers import get_worker_or_404
from app.schemas.schemas import (
    Booking,
    BookingCreate,
    BookingHistory,
    BookingList,
    GroupBookingCreate,
    GroupBookingResponse,
    GroupSummary,
    GroupSummaryRequest,
    PaymentIntent,
    TransitionRequest,
    Worker,
)
from app.services.booking_ledger import BookingLedger
from app.services.booking_service import BookingService
from app.services.booking_state_machine import GroupBookingParams
from app.utils.payment_reference import payment_method_from_code

router = APIRouter()


def get_booking_or_404(booking_id: str, service: BookingService) -> BookingRequest:
    booking = service.get(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def require_farmer(farmer_id: str, db: Session) -> None:
    if not FarmerRepository(db).get(farmer_id):
        raise HTTPException(status_code=404, detail="Farmer not found")


# ============================================
# Single Bookings
# ============================================

@router.post("/bookings", status_code=201, response_model=Booking)
async def create_booking(request: BookingCreate, db: Session = Depends(get_db)):
    """
    Create a booking request from a farmer to one worker.

    Refused (422) when no dates or work types are selected, the location is
    blank, a day is outside the worker's availability, or the selection
    cannot be priced (e.g. hourly billing without a valid time range).
    """
    require_farmer(request.farmer_id, db)
    worker = get_worker_or_404(request.worker_id, db)

    booking = unwrap(BookingService(db).create(
        worker,
        farmer_id=request.farmer_id,
        work_dates=request.work_dates,
        work_types=request.work_types,
        billing_mode=request.billing_mode,
        payment_method=request.payment_method,
        farmer_location=request.farmer_location,
        start_time=request.start_time,
        end_time=request.end_time,
        description=request.description
    ))
    return Booking.model_validate(booking)


@router.get("/bookings", response_model=BookingList)
async def list_bookings(
    status: Optional[BookingStatus] = None,
    farmer_id: Optional[str] = None,
    worker_id: Optional[str] = None,
    group_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """
    List bookings, newest first. Filter by status tab, farmer, worker or group.
    """
    bookings = BookingService(db).list(
        status=status, farmer_id=farmer_id, worker_id=worker_id, group_id=group_id
    )[:limit]
    return BookingList(bookings=[Booking.model_validate(b) for b in bookings], count=len(bookings))


@router.get("/bookings/{booking_id}", response_model=Booking)
async def get_booking(booking_id: str, db: Session = Depends(get_db)):
    return Booking.model_validate(get_booking_or_404(booking_id, BookingService(db)))


@router.post("/bookings/{booking_id}/transitions", response_model=Booking)
async def apply_transition(
    booking_id: str,
    request: TransitionRequest,
    db: Session = Depends(get_db)
):
    """
    **Move a booking through its lifecycle**

    | From      | Event    | To        | Actor          |
    |-----------|----------|-----------|----------------|
    | pending   | accept   | confirmed | worker         |
    | pending   | decline  | cancelled | worker         |
    | pending   | cancel   | cancelled | farmer         |
    | confirmed | complete | completed | worker, farmer |

    Anything else is a 409 with the unchanged `current_status`. Send
    `expected_status` to get a 409 `stale_state` instead of acting on an
    outdated view.
    """
    service = BookingService(db)
    booking = get_booking_or_404(booking_id, service)
    updated = unwrap(service.apply_event(
        booking,
        request.event,
        request.actor,
        expected_status=request.expected_status
    ))
    return Booking.model_validate(updated)


@router.get("/bookings/{booking_id}/history", response_model=BookingHistory)
async def get_booking_history(booking_id: str, db: Session = Depends(get_db)):
    """
    Hash-chained event history of a booking, with chain verification.
    """
    get_booking_or_404(booking_id, BookingService(db))
    ledger = BookingLedger(db)
    verification = ledger.verify(booking_id)
    return BookingHistory(
        booking_id=booking_id,
        entries=ledger.history(booking_id),
        verified=verification["verified"],
        broken_at=verification["broken_at"]
    )


@router.get("/bookings/{booking_id}/payment-intent", response_model=PaymentIntent)
async def get_payment_intent(booking_id: str, db: Session = Depends(get_db)):
    """
    UPI payment details (and QR payload) for paying the worker.
    Cash bookings have none (404).
    """
    service = BookingService(db)
    booking = get_booking_or_404(booking_id, service)
    intent = service.payment_intent(booking)
    if intent is None:
        raise HTTPException(status_code=404, detail="Cash bookings have no payment intent")
    return PaymentIntent(
        **intent.to_dict(),
        uri=intent.to_uri(),
        shows_qr=payment_method_from_code(booking.payment_method).shows_qr
    )


# ============================================
# Group Bookings
# ============================================

@router.post("/group-bookings/summary", response_model=GroupSummary)
async def group_summary(request: GroupSummaryRequest, db: Session = Depends(get_db)):
    """
    Per-day cost and average rating of a worker selection.
    Unknown and repeated worker ids are ignored.
    """
    group = BookingService(db).build_group(request.worker_ids)
    return GroupSummary(
        workers=[Worker.model_validate(w) for w in group.workers],
        worker_count=len(group),
        total_cost_per_day=group.total_cost,
        average_rating=round(group.average_rating, 1)
    )


@router.post("/group-bookings", status_code=201, response_model=GroupBookingResponse)
async def create_group_booking(request: GroupBookingCreate, db: Session = Depends(get_db)):
    """
    Book several workers together under shared terms.

    Creates one independent pending booking per worker over every day of the
    range, each priced from that worker's daily rate. All or nothing.
    """
    require_farmer(request.farmer_id, db)
    params = GroupBookingParams(
        work_type=request.work_type,
        start_date=request.start_date,
        end_date=request.end_date,
        farmer_location=request.farmer_location,
        payment_method=request.payment_method,
        hours_per_day=request.hours_per_day,
        instructions=request.special_instructions
    )
    bookings = unwrap(BookingService(db).create_group(
        request.worker_ids,
        farmer_id=request.farmer_id,
        params=params
    ))
    return GroupBookingResponse(
        group_id=bookings[0].group_id,
        bookings=[Booking.model_validate(b) for b in bookings],
        total_amount=sum(b.total_amount for b in bookings)
    )
