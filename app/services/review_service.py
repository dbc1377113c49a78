"""
Khet Mitra - Review Service
Stores reviews through the review gate and keeps worker ratings current.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional, Union
import logging

from app.config import get_settings
from app.models.domain import BookingRequest, RatingSummary, Review
from app.repositories import BookingRepository, ReviewRepository, WorkerRepository
from app.services.booking_ledger import BookingLedger
from app.services.rejections import Rejection, RejectionReason
from app.services.review_gate import (
    rating_summary,
    recent_reviews,
    submit_response,
    submit_review,
    top_reviews,
)

logger = logging.getLogger(__name__)
settings = get_settings()

DUPLICATE_REVIEW = Rejection(RejectionReason.DUPLICATE_REVIEW, "This booking has already been reviewed")


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.reviews = ReviewRepository(db)
        self.bookings = BookingRepository(db)
        self.workers = WorkerRepository(db)
        self.ledger = BookingLedger(db)

    def get(self, review_id: str) -> Optional[Review]:
        return self.reviews.get(review_id)

    def submit(
        self,
        booking: BookingRequest,
        rating: int,
        comment: str
    ) -> Union[Review, Rejection]:
        """
        File a review and flip the booking's has_review flag in one transaction.
        """
        result = submit_review(booking, rating, comment)
        if isinstance(result, Rejection):
            logger.warning(f"Review refused for booking {booking.id}: {result.message}")
            return result

        try:
            if not self.bookings.mark_reviewed(booking.id):
                self.db.rollback()
                logger.warning(f"Booking {booking.id} was reviewed concurrently")
                return DUPLICATE_REVIEW
            self.reviews.save(result.review)
            self._refresh_worker_rating(result.review.worker_id)
            self.ledger.record(
                result.booking,
                action="BOOKING_REVIEWED",
                actor="farmer",
                extra={"review_id": result.review.id, "rating": result.review.rating}
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Booking {booking.id} already has a stored review")
            return DUPLICATE_REVIEW
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Review {result.review.id} filed for booking {booking.id} ({result.review.rating} stars)")
        return result.review

    def _refresh_worker_rating(self, worker_id: str) -> None:
        """Recalculate the worker's aggregate rating from stored reviews."""
        self.db.flush()
        summary = rating_summary(self.reviews.list(worker_id=worker_id))
        self.workers.update_rating(worker_id, summary.average, summary.count)

    def respond(self, review: Review, comment: str) -> Union[Review, Rejection]:
        result = submit_response(review, comment)
        if isinstance(result, Rejection):
            return result

        try:
            if not self.reviews.add_response(result):
                self.db.rollback()
                logger.warning(f"Review {review.id} was answered concurrently")
                return Rejection(RejectionReason.DUPLICATE_RESPONSE, "This review already has a response")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Worker responded to review {review.id}")
        return result

    def mark_helpful(self, review: Review) -> Review:
        """Count one more helpful vote; returns the stored review."""
        try:
            self.reviews.increment_helpful(review.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.reviews.get(review.id)

    def for_worker(
        self,
        worker_id: str,
        view: str = "all",
        now: Optional[datetime] = None
    ) -> List[Review]:
        """Reviews of a worker: all, recent (last 7 days) or top (4+ stars)."""
        reviews = self.reviews.list(worker_id=worker_id)
        if view == "recent":
            return recent_reviews(reviews, now=now, days=settings.recent_review_days)
        if view == "top":
            return top_reviews(reviews)
        return reviews

    def summary(self, worker_id: str) -> RatingSummary:
        return rating_summary(self.reviews.list(worker_id=worker_id))
