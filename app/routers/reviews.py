"""
Khet Mitra - Reviews Router
API endpoints for farmer reviews, worker responses and rating summaries.
"""

from enum import Enum
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.routers.bookings import get_booking_or_404
from app.routers.common import unwrap
from app.routers.workers import get_worker_or_404
from app.schemas.schemas import RatingSummary, Review, ReviewCreate, ResponseCreate
from app.services.booking_service import BookingService
from app.services.review_service import ReviewService

router = APIRouter()


class ReviewView(str, Enum):
    ALL = "all"
    RECENT = "recent"
    TOP = "top"


def get_review_or_404(review_id: str, service: ReviewService):
    review = service.get(review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.post("/bookings/{booking_id}/review", status_code=201, response_model=Review)
async def submit_review(
    booking_id: str,
    request: ReviewCreate,
    db: Session = Depends(get_db)
):
    """
    Review a completed booking. One review per booking.

    - 409 `illegal_transition`: booking is not completed
    - 409 `duplicate_review`: booking already reviewed
    - 422 `invalid_input`: rating outside 1-5 or comment under 10 characters
    """
    booking = get_booking_or_404(booking_id, BookingService(db))
    review = unwrap(ReviewService(db).submit(booking, request.rating, request.comment))
    return Review.model_validate(review)


@router.post("/reviews/{review_id}/response", response_model=Review)
async def respond_to_review(
    review_id: str,
    request: ResponseCreate,
    db: Session = Depends(get_db)
):
    """
    The worker's single public reply to a review.
    """
    service = ReviewService(db)
    review = get_review_or_404(review_id, service)
    return Review.model_validate(unwrap(service.respond(review, request.comment)))


@router.post("/reviews/{review_id}/helpful", response_model=Review)
async def mark_review_helpful(review_id: str, db: Session = Depends(get_db)):
    service = ReviewService(db)
    review = get_review_or_404(review_id, service)
    return Review.model_validate(service.mark_helpful(review))


@router.get("/workers/{worker_id}/reviews")
async def list_worker_reviews(
    worker_id: str,
    view: ReviewView = ReviewView.ALL,
    db: Session = Depends(get_db)
):
    """
    Reviews received by a worker, newest first.

    - **all**: every review
    - **recent**: written in the last 7 days
    - **top**: 4 stars and above
    """
    get_worker_or_404(worker_id, db)
    reviews = ReviewService(db).for_worker(worker_id, view=view.value)
    return {
        "worker_id": worker_id,
        "view": view.value,
        "reviews": [Review.model_validate(r) for r in reviews],
        "count": len(reviews)
    }


@router.get("/workers/{worker_id}/rating-summary", response_model=RatingSummary)
async def get_rating_summary(worker_id: str, db: Session = Depends(get_db)):
    get_worker_or_404(worker_id, db)
    summary = ReviewService(db).summary(worker_id)
    return RatingSummary(
        worker_id=worker_id,
        count=summary.count,
        average=summary.average,
        distribution=summary.distribution
    )
