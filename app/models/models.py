from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.domain import BillingMode, BookingStatus
import uuid


def _uuid() -> str:
    return str(uuid.uuid4())


class Farmer(Base):
    __tablename__ = "farmers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    phone = Column(String, index=True)
    location = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="farmer")


class Worker(Base):
    __tablename__ = "workers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, index=True, nullable=False)
    phone = Column(String, unique=True, index=True)
    location = Column(String, default="")
    skills = Column(JSON, default=list)
    languages = Column(JSON, default=list)
    # ISO dates ("2025-10-15") the worker is open for
    availability = Column(JSON, default=list)

    experience_years = Column(Integer, default=0)
    daily_rate = Column(Float, nullable=False)
    hourly_rate = Column(Float, nullable=False)

    # Aggregates recalculated from reviews
    rating = Column(Float, default=0.0)
    total_reviews = Column(Integer, default=0)

    bio = Column(Text, default="")
    is_available = Column(Boolean, default=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="worker")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_uuid)
    worker_id = Column(String(36), ForeignKey("workers.id"), index=True, nullable=False)
    farmer_id = Column(String(36), ForeignKey("farmers.id"), index=True, nullable=False)
    group_id = Column(String(36), index=True, nullable=True)

    work_types = Column(JSON, nullable=False)
    work_dates = Column(JSON, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_hour = Column(Integer, nullable=True)
    end_hour = Column(Integer, nullable=True)

    billing_mode = Column(Enum(BillingMode), nullable=False)
    payment_method = Column(String, nullable=False)
    unit_rate = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)

    description = Column(Text, default="")
    farmer_location = Column(String, nullable=False)
    worker_name = Column(String, default="")
    worker_phone = Column(String, default="")

    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, index=True)
    has_review = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    worker = relationship("Worker", back_populates="bookings")
    farmer = relationship("Farmer", back_populates="bookings")
    review = relationship("ReviewRecord", back_populates="booking", uselist=False)


class ReviewRecord(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=_uuid)
    booking_id = Column(String(36), ForeignKey("bookings.id"), unique=True, nullable=False)
    worker_id = Column(String(36), ForeignKey("workers.id"), index=True, nullable=False)
    farmer_id = Column(String(36), ForeignKey("farmers.id"), index=True, nullable=False)

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    work_types = Column(JSON, default=list)
    work_date = Column(Date, nullable=False)
    helpful_count = Column(Integer, default=0)

    response_comment = Column(Text, nullable=True)
    response_created_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)

    booking = relationship("Booking", back_populates="review")


class BookingEventRecord(Base):
    """Hash-chained audit entry for one booking lifecycle event."""
    __tablename__ = "booking_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), index=True, nullable=False)
    action = Column(String, nullable=False)
    actor = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    # Stored as the exact ISO string that was hashed
    timestamp = Column(String, nullable=False)
    hash = Column(String(64), unique=True, nullable=False)
    prev_hash = Column(String(64), nullable=False)
