"""
Khet Mitra - Workers Router
API endpoints for worker registration, lookup, availability, search and quotes.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
import uuid

from app.database import get_db
from app.models.domain import BillingMode, WorkerProfile
from app.repositories import WorkerRepository
from app.schemas.schemas import (
    QuoteRequest,
    QuoteResponse,
    SearchRequest,
    SearchResponse,
    Worker,
    WorkerAvailability,
    WorkerCreate,
)
from app.services.availability import list_available_dates
from app.services.pricing import billable_hours, quote_price
from app.services.search_service import SearchService

router = APIRouter()


def get_worker_or_404(worker_id: str, db: Session) -> WorkerProfile:
    worker = WorkerRepository(db).get(worker_id)
    if not worker:
        raise HTTPException(status_code=404, detail=f"Worker {worker_id} not found")
    return worker


# ============================================
# Worker Endpoints
# ============================================

@router.post("/workers", status_code=201, response_model=Worker)
async def create_worker(worker: WorkerCreate, db: Session = Depends(get_db)):
    """
    Register a new worker.

    - Skills and languages are de-duplicated, keeping their order
    - Rating starts at 0 and is recalculated from reviews
    """
    profile = WorkerProfile(
        id=str(uuid.uuid4()),
        name=worker.name,
        phone=worker.phone,
        location=worker.location,
        skills=tuple(dict.fromkeys(s.strip() for s in worker.skills if s.strip())),
        experience_years=worker.experience_years,
        daily_rate=worker.daily_rate,
        hourly_rate=worker.hourly_rate,
        bio=worker.bio,
        availability=tuple(sorted(set(worker.availability))),
        is_available=worker.is_available,
        languages=tuple(dict.fromkeys(worker.languages)),
        latitude=worker.latitude,
        longitude=worker.longitude,
    )
    repo = WorkerRepository(db)
    try:
        repo.save(profile)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=400,
            detail="Worker with this phone number already registered"
        )
    except Exception:
        db.rollback()
        raise
    return Worker.model_validate(profile)


@router.get("/workers")
async def list_workers(
    available_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """
    List registered workers in registration order.
    """
    workers = WorkerRepository(db).list()
    if available_only:
        workers = [w for w in workers if w.is_available]
    workers = workers[:limit]
    return {
        "workers": [Worker.model_validate(w) for w in workers],
        "count": len(workers)
    }


@router.get("/workers/{worker_id}", response_model=Worker)
async def get_worker(worker_id: str, db: Session = Depends(get_db)):
    return Worker.model_validate(get_worker_or_404(worker_id, db))


@router.get("/workers/{worker_id}/availability", response_model=WorkerAvailability)
async def get_worker_availability(worker_id: str, db: Session = Depends(get_db)):
    """
    Bookable days for a worker, from today onwards.

    Past days are never offered, even if still listed on the profile.
    """
    worker = get_worker_or_404(worker_id, db)
    return WorkerAvailability(worker_id=worker.id, available_dates=list_available_dates(worker))


# ============================================
# Search & Quotes
# ============================================

@router.post("/search", response_model=SearchResponse)
async def search_workers(request: SearchRequest, db: Session = Depends(get_db)):
    """
    **Search and rank workers**

    Filters (all must hold):
    - **query**: name, location or skill contains the text
    - **skills**: worker has at least one of them
    - **price_min / price_max**: daily rate range, inclusive
    - **min_rating**, **max_distance**, **available_only**

    Results are sorted by `sort_by` in `sort_order`; ties keep registration
    order. Pass `latitude`/`longitude` to rank by real distance.
    """
    if request.price_min > request.price_max:
        raise HTTPException(status_code=422, detail="price_min must not exceed price_max")

    origin: Optional[tuple] = None
    if request.latitude is not None and request.longitude is not None:
        origin = (request.latitude, request.longitude)

    results, pool_size = SearchService(db).search(request.to_criteria(), origin)
    return SearchResponse(
        workers=[Worker.model_validate(w) for w in results],
        count=len(results),
        pool_size=pool_size
    )


@router.post("/quotes", response_model=QuoteResponse)
async def quote(request: QuoteRequest, db: Session = Depends(get_db)):
    """
    Price a selection for one worker. An incomplete selection quotes 0.
    """
    worker = get_worker_or_404(request.worker_id, db)
    amount = quote_price(
        request.date_count,
        request.billing_mode,
        worker.daily_rate,
        worker.hourly_rate,
        request.start_time,
        request.end_time
    )
    hours = 0
    if request.billing_mode == BillingMode.HOURLY:
        hours = billable_hours(request.start_time, request.end_time)
    return QuoteResponse(
        worker_id=worker.id,
        billing_mode=request.billing_mode,
        date_count=request.date_count,
        hours=hours,
        amount=amount
    )
