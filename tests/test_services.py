from datetime import timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.models.domain import BillingMode, BookingStatus
from app.repositories import BookingRepository, WorkerRepository
from app.services.booking_ledger import BookingLedger
from app.services.booking_service import BookingService
from app.services.booking_state_machine import ActorRole, BookingEvent, GroupBookingParams
from app.services.rejections import RejectionReason
from app.services.review_service import ReviewService
from app.services.search_engine import SearchCriteria, SortKey, SortOrder
from app.services.search_service import SearchService


def book(service, worker, farmer, days, **overrides):
    fields = dict(
        farmer_id=farmer.id,
        work_dates=list(days),
        work_types=["Harvesting"],
        billing_mode=BillingMode.DAILY,
        payment_method="phonepe",
        farmer_location="Mandya, Karnataka",
    )
    fields.update(overrides)
    return service.create(worker, **fields)


def test_create_stores_booking_and_ledger_entry(db_session, make_worker, farmer, future_days):
    worker = make_worker()
    booking = book(BookingService(db_session), worker, farmer, future_days[:2])

    stored = BookingRepository(db_session).get(booking.id)
    assert stored.status == BookingStatus.PENDING
    assert stored.total_amount == 1200
    assert stored.work_dates == future_days[:2]

    verification = BookingLedger(db_session).verify(booking.id)
    assert verification["entries"] == 1
    assert verification["verified"]


def test_create_refuses_days_outside_availability(db_session, make_worker, farmer, future_days):
    worker = make_worker(availability=future_days[:1])
    result = book(BookingService(db_session), worker, farmer, future_days[:2])
    assert result.reason == RejectionReason.INVALID_INPUT
    assert BookingRepository(db_session).list() == []


def test_lost_race_reports_stale_state(db_session, make_worker, farmer, future_days):
    service = BookingService(db_session)
    booking = book(service, make_worker(), farmer, future_days[:1])

    # Worker accepts while the farmer still holds the pending copy
    service.apply_event(booking, BookingEvent.ACCEPT, ActorRole.WORKER)
    result = service.apply_event(booking, BookingEvent.CANCEL, ActorRole.FARMER)

    assert result.reason == RejectionReason.STALE_STATE
    assert result.current_status == BookingStatus.CONFIRMED
    assert service.get(booking.id).status == BookingStatus.CONFIRMED
    assert len(BookingLedger(db_session).history(booking.id)) == 2


def test_group_booking_is_all_or_nothing(db_session, make_worker, farmer, future_days):
    ravi = make_worker(name="Ravi Kumar", daily_rate=600)
    busy = make_worker(name="Suresh Patil", daily_rate=750, availability=future_days[:1])
    params = GroupBookingParams(work_type="Harvesting", start_date=future_days[0],
                                end_date=future_days[2], farmer_location="Mandya")

    result = BookingService(db_session).create_group([ravi.id, busy.id], farmer.id, params)
    assert result.reason == RejectionReason.INVALID_INPUT
    assert BookingRepository(db_session).list() == []


def test_group_booking_unknown_worker(db_session, make_worker, farmer, future_days):
    params = GroupBookingParams(work_type="Harvesting", start_date=future_days[0],
                                end_date=future_days[0], farmer_location="Mandya")
    result = BookingService(db_session).create_group([make_worker().id, "missing"], farmer.id, params)
    assert result.reason == RejectionReason.INVALID_INPUT


def test_review_updates_worker_rating(db_session, make_worker, farmer, future_days):
    worker = make_worker(rating=0.0, total_reviews=0)
    service = BookingService(db_session)
    booking = book(service, worker, farmer, future_days[:1])
    booking = service.apply_event(booking, BookingEvent.ACCEPT, ActorRole.WORKER)
    booking = service.apply_event(booking, BookingEvent.COMPLETE, ActorRole.FARMER)

    reviews = ReviewService(db_session)
    review = reviews.submit(booking, 4, "Careful and quick harvest")
    assert review.rating == 4

    db_session.expire_all()
    refreshed = WorkerRepository(db_session).get(worker.id)
    assert refreshed.rating == 4.0
    assert refreshed.total_reviews == 1
    assert service.get(booking.id).has_review is True

    # Stale copy of the booking still says has_review=False
    again = reviews.submit(booking, 5, "Trying to review twice")
    assert again.reason == RejectionReason.DUPLICATE_REVIEW
    stored = reviews.reviews.get_for_booking(booking.id)
    assert (stored.id, stored.rating, stored.comment) == (review.id, 4, "Careful and quick harvest")
    assert [r.id for r in reviews.for_worker(worker.id)] == [review.id]


def test_search_service_adds_distances(db_session, make_worker):
    near = make_worker(name="Near", latitude=12.52, longitude=76.90)
    far = make_worker(name="Far", latitude=13.34, longitude=77.12)
    unknown = make_worker(name="Unplaced")

    criteria = SearchCriteria(max_distance=50, sort_by=SortKey.DISTANCE, sort_order=SortOrder.ASC)
    results, pool_size = SearchService(db_session).search(criteria, origin=(12.5218, 76.8951))

    assert pool_size == 3
    assert [w.id for w in results] == [unknown.id, near.id]
    assert results[1].distance_km < 1
    assert far.id not in [w.id for w in results]


def test_payment_intent_for_wallet_booking(db_session, make_worker, farmer, future_days):
    worker = make_worker(phone="+91 98765 43210")
    service = BookingService(db_session)
    booking = book(service, worker, farmer, future_days[:3])
    intent = service.payment_intent(booking)
    assert intent.payee_address == "+919876543210@ybl"
    assert intent.amount == 1800

    cash = book(service, worker, farmer, future_days[3:4], payment_method="cash")
    assert service.payment_intent(cash) is None


def test_worker_availability_round_trips_through_store(db_session, make_worker, today):
    worker = make_worker(availability=(today - timedelta(days=1), today))
    assert WorkerRepository(db_session).get(worker.id).availability == (today - timedelta(days=1), today)


def completed_review(db_session, make_worker, farmer, days):
    service = BookingService(db_session)
    booking = book(service, make_worker(), farmer, days)
    booking = service.apply_event(booking, BookingEvent.ACCEPT, ActorRole.WORKER)
    booking = service.apply_event(booking, BookingEvent.COMPLETE, ActorRole.WORKER)
    return ReviewService(db_session).submit(booking, 5, "Finished the ploughing early")


def test_helpful_count_is_read_back_from_store(db_session, make_worker, farmer, future_days):
    review = completed_review(db_session, make_worker, farmer, future_days[:1])
    service = ReviewService(db_session)

    # Both votes start from the same loaded copy
    service.mark_helpful(review)
    assert service.mark_helpful(review).helpful_count == 2


def test_failed_response_write_rolls_back(db_session, make_worker, farmer, future_days, monkeypatch):
    review = completed_review(db_session, make_worker, farmer, future_days[:1])
    service = ReviewService(db_session)

    def broken_add_response(_review):
        raise SQLAlchemyError("store unavailable")

    monkeypatch.setattr(service.reviews, "add_response", broken_add_response)
    with pytest.raises(SQLAlchemyError):
        service.respond(review, "Thank you for the kind words")

    assert service.get(review.id).response is None
