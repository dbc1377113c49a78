"""
Khet Mitra - Repositories
Storage seam between the pure booking core and SQLAlchemy.

Each repository hands out frozen domain values and persists new ones;
the core never sees a Session or an ORM row.
"""

from datetime import date
from typing import List, Optional, Protocol, TypeVar

from sqlalchemy.orm import Session

from app.models.domain import (
    BillingMode,
    BookingRequest,
    BookingStatus,
    Review,
    ReviewResponse,
    WorkerProfile,
)
from app.models.models import Booking, BookingEventRecord, Farmer, ReviewRecord, Worker

T = TypeVar("T")


class Repository(Protocol[T]):
    def get(self, entity_id: str) -> Optional[T]:
        ...

    def list(self) -> List[T]:
        ...

    def save(self, entity: T) -> T:
        ...


# ============================================
# Row <-> domain conversion
# ============================================

def worker_to_domain(row: Worker) -> WorkerProfile:
    return WorkerProfile(
        id=row.id,
        name=row.name,
        phone=row.phone or "",
        location=row.location or "",
        skills=tuple(row.skills or ()),
        experience_years=row.experience_years or 0,
        daily_rate=row.daily_rate,
        hourly_rate=row.hourly_rate,
        rating=row.rating or 0.0,
        total_reviews=row.total_reviews or 0,
        bio=row.bio or "",
        availability=tuple(date.fromisoformat(d) for d in (row.availability or ())),
        is_available=bool(row.is_available),
        languages=tuple(row.languages or ()),
        latitude=row.latitude,
        longitude=row.longitude,
    )


def booking_to_domain(row: Booking) -> BookingRequest:
    return BookingRequest(
        id=row.id,
        worker_id=row.worker_id,
        farmer_id=row.farmer_id,
        work_types=tuple(row.work_types or ()),
        work_dates=tuple(date.fromisoformat(d) for d in row.work_dates),
        billing_mode=BillingMode(row.billing_mode),
        payment_method=row.payment_method,
        unit_rate=row.unit_rate,
        total_amount=row.total_amount,
        farmer_location=row.farmer_location,
        worker_name=row.worker_name or "",
        worker_phone=row.worker_phone or "",
        start_hour=row.start_hour,
        end_hour=row.end_hour,
        description=row.description or "",
        status=BookingStatus(row.status),
        has_review=bool(row.has_review),
        group_id=row.group_id,
        created_at=row.created_at,
    )


def review_to_domain(row: ReviewRecord) -> Review:
    response = None
    if row.response_comment is not None:
        response = ReviewResponse(comment=row.response_comment, created_at=row.response_created_at)
    return Review(
        id=row.id,
        booking_id=row.booking_id,
        worker_id=row.worker_id,
        farmer_id=row.farmer_id,
        rating=row.rating,
        comment=row.comment,
        work_types=tuple(row.work_types or ()),
        work_date=row.work_date,
        created_at=row.created_at,
        helpful_count=row.helpful_count or 0,
        response=response,
    )


# ============================================
# Workers & Farmers
# ============================================

class WorkerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, worker_id: str) -> Optional[WorkerProfile]:
        row = self.db.get(Worker, worker_id)
        return worker_to_domain(row) if row else None

    def get_many(self, worker_ids: List[str]) -> List[WorkerProfile]:
        """Workers in the order the ids were given; unknown ids are skipped."""
        rows = {w.id: w for w in self.db.query(Worker).filter(Worker.id.in_(worker_ids)).all()}
        return [worker_to_domain(rows[i]) for i in worker_ids if i in rows]

    def list(self) -> List[WorkerProfile]:
        rows = self.db.query(Worker).order_by(Worker.created_at, Worker.id).all()
        return [worker_to_domain(r) for r in rows]

    def save(self, worker: WorkerProfile) -> WorkerProfile:
        row = self.db.get(Worker, worker.id) or Worker(id=worker.id)
        row.name = worker.name
        row.phone = worker.phone
        row.location = worker.location
        row.skills = list(worker.skills)
        row.languages = list(worker.languages)
        row.availability = [d.isoformat() for d in worker.availability]
        row.experience_years = worker.experience_years
        row.daily_rate = worker.daily_rate
        row.hourly_rate = worker.hourly_rate
        row.rating = worker.rating
        row.total_reviews = worker.total_reviews
        row.bio = worker.bio
        row.is_available = worker.is_available
        row.latitude = worker.latitude
        row.longitude = worker.longitude
        self.db.add(row)
        self.db.flush()
        return worker

    def update_rating(self, worker_id: str, rating: float, total_reviews: int) -> None:
        self.db.query(Worker).filter(Worker.id == worker_id).update(
            {"rating": rating, "total_reviews": total_reviews},
            synchronize_session=False
        )


class FarmerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, farmer_id: str) -> Optional[Farmer]:
        return self.db.get(Farmer, farmer_id)

    def list(self) -> List[Farmer]:
        return self.db.query(Farmer).order_by(Farmer.created_at.desc()).all()

    def save(self, farmer: Farmer) -> Farmer:
        self.db.add(farmer)
        self.db.flush()
        return farmer


# ============================================
# Bookings
# ============================================

class BookingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: str) -> Optional[BookingRequest]:
        row = self.db.get(Booking, booking_id)
        return booking_to_domain(row) if row else None

    def list(
        self,
        status: Optional[BookingStatus] = None,
        farmer_id: Optional[str] = None,
        worker_id: Optional[str] = None,
        group_id: Optional[str] = None
    ) -> List[BookingRequest]:
        query = self.db.query(Booking)
        if status is not None:
            query = query.filter(Booking.status == status)
        if farmer_id:
            query = query.filter(Booking.farmer_id == farmer_id)
        if worker_id:
            query = query.filter(Booking.worker_id == worker_id)
        if group_id:
            query = query.filter(Booking.group_id == group_id)
        rows = query.order_by(Booking.created_at.desc(), Booking.id).all()
        return [booking_to_domain(r) for r in rows]

    def save(self, booking: BookingRequest) -> BookingRequest:
        """Insert a new booking. Status changes go through compare_and_set_status."""
        self.db.add(Booking(
            id=booking.id,
            worker_id=booking.worker_id,
            farmer_id=booking.farmer_id,
            group_id=booking.group_id,
            work_types=list(booking.work_types),
            work_dates=[d.isoformat() for d in booking.work_dates],
            start_date=booking.start_date,
            end_date=booking.end_date,
            start_hour=booking.start_hour,
            end_hour=booking.end_hour,
            billing_mode=booking.billing_mode,
            payment_method=booking.payment_method,
            unit_rate=booking.unit_rate,
            total_amount=booking.total_amount,
            description=booking.description,
            farmer_location=booking.farmer_location,
            worker_name=booking.worker_name,
            worker_phone=booking.worker_phone,
            status=booking.status,
            has_review=booking.has_review,
            created_at=booking.created_at,
        ))
        self.db.flush()
        return booking

    def compare_and_set_status(
        self,
        booking_id: str,
        expected: BookingStatus,
        new: BookingStatus
    ) -> bool:
        """
        Move a booking from `expected` to `new` only if it is still `expected`.
        Returns False when another writer got there first.
        """
        updated = self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.status == expected
        ).update({"status": new}, synchronize_session=False)
        return updated == 1

    def mark_reviewed(self, booking_id: str) -> bool:
        """Flip has_review false -> true on a completed booking, exactly once."""
        updated = self.db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.status == BookingStatus.COMPLETED,
            Booking.has_review.is_(False)
        ).update({"has_review": True}, synchronize_session=False)
        return updated == 1


# ============================================
# Reviews
# ============================================

class ReviewRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, review_id: str) -> Optional[Review]:
        row = self.db.get(ReviewRecord, review_id)
        return review_to_domain(row) if row else None

    def get_for_booking(self, booking_id: str) -> Optional[Review]:
        row = self.db.query(ReviewRecord).filter(ReviewRecord.booking_id == booking_id).first()
        return review_to_domain(row) if row else None

    def list(self, worker_id: Optional[str] = None, farmer_id: Optional[str] = None) -> List[Review]:
        query = self.db.query(ReviewRecord)
        if worker_id:
            query = query.filter(ReviewRecord.worker_id == worker_id)
        if farmer_id:
            query = query.filter(ReviewRecord.farmer_id == farmer_id)
        rows = query.order_by(ReviewRecord.created_at.desc()).all()
        return [review_to_domain(r) for r in rows]

    def save(self, review: Review) -> Review:
        row = self.db.get(ReviewRecord, review.id) or ReviewRecord(id=review.id)
        row.booking_id = review.booking_id
        row.worker_id = review.worker_id
        row.farmer_id = review.farmer_id
        row.rating = review.rating
        row.comment = review.comment
        row.work_types = list(review.work_types)
        row.work_date = review.work_date
        row.helpful_count = review.helpful_count
        row.created_at = review.created_at
        if review.response is not None:
            row.response_comment = review.response.comment
            row.response_created_at = review.response.created_at
        self.db.add(row)
        self.db.flush()
        return review

    def add_response(self, review: Review) -> bool:
        """Store a response only if none exists yet."""
        updated = self.db.query(ReviewRecord).filter(
            ReviewRecord.id == review.id,
            ReviewRecord.response_comment.is_(None)
        ).update({
            "response_comment": review.response.comment,
            "response_created_at": review.response.created_at,
        }, synchronize_session=False)
        return updated == 1

    def increment_helpful(self, review_id: str) -> None:
        self.db.query(ReviewRecord).filter(ReviewRecord.id == review_id).update(
            {"helpful_count": ReviewRecord.helpful_count + 1},
            synchronize_session=False
        )


# ============================================
# Booking ledger
# ============================================

class BookingLedgerRepository:
    def __init__(self, db: Session):
        self.db = db

    def last_hash(self, booking_id: str) -> Optional[str]:
        row = self.db.query(BookingEventRecord).filter(
            BookingEventRecord.booking_id == booking_id
        ).order_by(BookingEventRecord.id.desc()).first()
        return row.hash if row else None

    def list(self, booking_id: str) -> List[dict]:
        rows = self.db.query(BookingEventRecord).filter(
            BookingEventRecord.booking_id == booking_id
        ).order_by(BookingEventRecord.id).all()
        return [
            {
                "hash": r.hash,
                "prev_hash": r.prev_hash,
                "action": r.action,
                "actor": r.actor,
                "payload": r.payload,
                "timestamp": r.timestamp,
            }
            for r in rows
        ]

    def save(self, booking_id: str, entry: dict) -> dict:
        self.db.add(BookingEventRecord(
            booking_id=booking_id,
            action=entry["action"],
            actor=entry["actor"],
            payload=entry["payload"],
            timestamp=entry["timestamp"],
            hash=entry["hash"],
            prev_hash=entry["prev_hash"],
        ))
        self.db.flush()
        return entry