"""
Khet Mitra - Domain Values
Immutable value objects shared by the matching engine, pricing,
booking lifecycle and review gate. Updates go through dataclasses.replace.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class BillingMode(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


@dataclass(frozen=True)
class WorkerProfile:
    """A worker as seen by the matching engine (read-only)."""
    id: str
    name: str
    phone: str
    location: str
    skills: Tuple[str, ...] = ()
    experience_years: int = 0
    daily_rate: float = 0.0
    hourly_rate: float = 0.0
    rating: float = 0.0
    total_reviews: int = 0
    bio: str = ""
    availability: Tuple[date, ...] = ()
    is_available: bool = True
    languages: Tuple[str, ...] = ()
    distance_km: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class BookingRequest:
    """
    A single farmer -> worker booking.

    `unit_rate` and the hour range are snapshotted at creation so the
    stored `total_amount` can always be recomputed from the booking alone.
    """
    id: str
    worker_id: str
    farmer_id: str
    work_types: Tuple[str, ...]
    work_dates: Tuple[date, ...]
    billing_mode: BillingMode
    payment_method: str
    unit_rate: float
    total_amount: float
    farmer_location: str
    worker_name: str = ""
    worker_phone: str = ""
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None
    description: str = ""
    status: BookingStatus = BookingStatus.PENDING
    has_review: bool = False
    group_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def start_date(self) -> date:
        return self.work_dates[0]

    @property
    def end_date(self) -> date:
        return self.work_dates[-1]

    @property
    def day_count(self) -> int:
        return len(self.work_dates)


@dataclass(frozen=True)
class ReviewResponse:
    comment: str
    created_at: datetime


@dataclass(frozen=True)
class Review:
    id: str
    booking_id: str
    worker_id: str
    farmer_id: str
    rating: int
    comment: str
    work_types: Tuple[str, ...]
    work_date: date
    created_at: datetime
    helpful_count: int = 0
    response: Optional[ReviewResponse] = None


@dataclass(frozen=True)
class RatingSummary:
    count: int
    average: float
    distribution: dict = field(default_factory=dict)
