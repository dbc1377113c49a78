"""
Khet Mitra - Review Gate
One review per completed booking, one worker response per review.

A successful review returns the Review together with the booking copy whose
has_review flag is set; the two are stored as a single unit so a booking is
never marked reviewed without its Review, and never reviewed twice.
"""

from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Union
import uuid

from app.models.domain import (
    BookingRequest,
    BookingStatus,
    RatingSummary,
    Review,
    ReviewResponse,
)
from app.services.rejections import Rejection, RejectionReason, invalid_input

MIN_RATING = 1
MAX_RATING = 5
MIN_COMMENT_LENGTH = 10


@dataclass(frozen=True)
class ReviewSubmission:
    review: Review
    booking: BookingRequest


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def submit_review(
    booking: BookingRequest,
    rating: int,
    comment: str,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4())
) -> Union[ReviewSubmission, Rejection]:
    """
    File the farmer's review of a completed booking.

    The duplicate check runs before input validation so a second attempt is
    always reported as a duplicate.
    """
    if booking.status != BookingStatus.COMPLETED:
        return Rejection(
            RejectionReason.ILLEGAL_TRANSITION,
            f"Only completed bookings can be reviewed (booking is {booking.status.value})",
            current_status=booking.status,
        )
    if booking.has_review:
        return Rejection(
            RejectionReason.DUPLICATE_REVIEW,
            "This booking has already been reviewed",
            current_status=booking.status,
        )
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        return invalid_input(f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}")
    text = (comment or "").strip()
    if len(text) < MIN_COMMENT_LENGTH:
        return invalid_input(f"Please provide a detailed review (at least {MIN_COMMENT_LENGTH} characters)")

    review = Review(
        id=id_factory(),
        booking_id=booking.id,
        worker_id=booking.worker_id,
        farmer_id=booking.farmer_id,
        rating=rating,
        comment=text,
        work_types=booking.work_types,
        work_date=booking.end_date,
        created_at=now or _utcnow(),
    )
    return ReviewSubmission(review=review, booking=replace(booking, has_review=True))


def submit_response(
    review: Review,
    comment: str,
    now: Optional[datetime] = None
) -> Union[Review, Rejection]:
    """Attach the worker's single reply to a review."""
    if review.response is not None:
        return Rejection(RejectionReason.DUPLICATE_RESPONSE, "This review already has a response")
    text = (comment or "").strip()
    if len(text) < MIN_COMMENT_LENGTH:
        return invalid_input(f"Please provide a detailed response (at least {MIN_COMMENT_LENGTH} characters)")
    return replace(review, response=ReviewResponse(comment=text, created_at=now or _utcnow()))


def mark_helpful(review: Review) -> Review:
    return replace(review, helpful_count=review.helpful_count + 1)


def rating_summary(reviews: Iterable[Review]) -> RatingSummary:
    """Count, one-decimal average and per-star distribution."""
    ratings = [r.rating for r in reviews]
    counts = Counter(ratings)
    distribution = {star: counts.get(star, 0) for star in range(MIN_RATING, MAX_RATING + 1)}
    if not ratings:
        return RatingSummary(count=0, average=0.0, distribution=distribution)
    return RatingSummary(
        count=len(ratings),
        average=round(sum(ratings) / len(ratings), 1),
        distribution=distribution,
    )


def recent_reviews(
    reviews: Iterable[Review],
    now: Optional[datetime] = None,
    days: int = 7
) -> List[Review]:
    cutoff = (now or _utcnow()) - timedelta(days=days)
    return [r for r in reviews if _aware(r.created_at) > _aware(cutoff)]


def top_reviews(reviews: Iterable[Review], min_rating: int = 4) -> List[Review]:
    return [r for r in reviews if r.rating >= min_rating]


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; those are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
