"""
Khet Mitra - Farmers Router
API endpoints for farmers and their bookings.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.models import Farmer as FarmerRecord
from app.repositories import BookingRepository, FarmerRepository
from app.schemas.schemas import Booking, Farmer, FarmerCreate

router = APIRouter()


@router.post("/farmers", status_code=201, response_model=Farmer)
async def create_farmer(farmer: FarmerCreate, db: Session = Depends(get_db)):
    """
    Register a new farmer who can search and book workers.
    """
    record = FarmerRecord(name=farmer.name, phone=farmer.phone, location=farmer.location)
    try:
        FarmerRepository(db).save(record)
        db.commit()
        db.refresh(record)
    except Exception:
        db.rollback()
        raise
    return Farmer.model_validate(record)


@router.get("/farmers/{farmer_id}")
async def get_farmer(farmer_id: str, db: Session = Depends(get_db)):
    """
    Get farmer details including their open (pending or confirmed) bookings.
    """
    farmer = FarmerRepository(db).get(farmer_id)
    if not farmer:
        raise HTTPException(status_code=404, detail="Farmer not found")

    bookings = BookingRepository(db).list(farmer_id=farmer_id)
    active = [b for b in bookings if not b.status.is_terminal]

    farmer_dict = Farmer.model_validate(farmer).model_dump()
    farmer_dict["active_bookings"] = [Booking.model_validate(b) for b in active]
    return farmer_dict
