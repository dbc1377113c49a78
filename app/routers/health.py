"""
Khet Mitra - Health Check Router
Liveness of the API and the booking store.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime, timezone
import logging

from app.config import get_settings
from app.database import get_db
from app.models.models import Booking, BookingEventRecord, Farmer, ReviewRecord, Worker

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    API status plus a round trip to the booking store.
    Reports "degraded" rather than failing when the store is unreachable.
    """
    try:
        db.execute(text("SELECT 1")).fetchone()
        store = {"status": "healthy", "message": "Booking store reachable"}
    except SQLAlchemyError as e:
        logger.error(f"Health check could not reach the store: {e}")
        store = {"status": "unhealthy", "message": str(e)}

    return {
        "status": "ok" if store["status"] == "healthy" else "degraded",
        "service": "khet-mitra-api",
        "version": settings.app_version,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"database": store}
    }


@router.get("/health/db")
async def database_health(db: Session = Depends(get_db)):
    """
    Row counts per table and bookings per lifecycle status.
    """
    try:
        counts = {
            "workers": db.query(Worker).count(),
            "farmers": db.query(Farmer).count(),
            "bookings": db.query(Booking).count(),
            "reviews": db.query(ReviewRecord).count(),
            "booking_events": db.query(BookingEventRecord).count(),
        }
        by_status = {
            status.value: total
            for status, total in db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status)
        }
    except SQLAlchemyError as e:
        logger.error(f"Store statistics unavailable: {e}")
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "tables": counts,
        "bookings_by_status": by_status,
        "total_records": sum(counts.values())
    }
