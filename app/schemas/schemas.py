from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Union
from datetime import date, datetime

from app.models.domain import BillingMode, BookingStatus
from app.services.booking_state_machine import ActorRole, BookingEvent
from app.services.search_engine import (
    DEFAULT_MAX_DISTANCE_KM,
    DEFAULT_PRICE_RANGE,
    SearchCriteria,
    SortKey,
    SortOrder,
)

# Display cap for review and response text
MAX_COMMENT_LENGTH = 500

# --- Farmer Schemas ---
class FarmerCreate(BaseModel):
    """Schema for registering a farmer."""
    name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=10, max_length=15)
    location: Optional[str] = None

class Farmer(FarmerCreate):
    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# --- Worker Schemas ---
class WorkerBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=10, max_length=20)
    location: str = ""
    skills: List[str] = Field(default_factory=list)
    experience_years: int = Field(default=0, ge=0)
    daily_rate: float = Field(..., gt=0)
    hourly_rate: float = Field(..., gt=0)
    bio: str = ""
    availability: List[date] = Field(default_factory=list)
    is_available: bool = True
    languages: List[str] = Field(default_factory=list)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

class WorkerCreate(WorkerBase):
    pass

class Worker(WorkerBase):
    id: str
    rating: float
    total_reviews: int
    distance_km: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)

class WorkerAvailability(BaseModel):
    worker_id: str
    available_dates: List[date]

# --- Search Schemas ---
class SearchRequest(BaseModel):
    """Farmer search criteria; defaults are the reset state of the filter panel."""
    query: str = ""
    skills: List[str] = Field(default_factory=list)
    price_min: float = Field(default=DEFAULT_PRICE_RANGE[0], ge=0)
    price_max: float = Field(default=DEFAULT_PRICE_RANGE[1], ge=0)
    min_rating: float = Field(default=0, ge=0, le=5)
    max_distance: float = Field(default=DEFAULT_MAX_DISTANCE_KM, ge=0)
    available_only: bool = False
    sort_by: SortKey = SortKey.RATING
    sort_order: SortOrder = SortOrder.DESC

    # Searching farmer's position, used to compute worker distances
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    def to_criteria(self) -> SearchCriteria:
        return SearchCriteria(
            query=self.query,
            skills=tuple(self.skills),
            price_min=self.price_min,
            price_max=self.price_max,
            min_rating=self.min_rating,
            max_distance=self.max_distance,
            available_only=self.available_only,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
        )

class SearchResponse(BaseModel):
    workers: List[Worker]
    count: int
    pool_size: int

# --- Quote Schemas ---
class QuoteRequest(BaseModel):
    worker_id: str
    date_count: int = Field(..., ge=0)
    billing_mode: BillingMode = BillingMode.DAILY
    start_time: Optional[Union[int, str]] = None  # hour, or "HH:MM"
    end_time: Optional[Union[int, str]] = None

class QuoteResponse(BaseModel):
    worker_id: str
    billing_mode: BillingMode
    date_count: int
    hours: int
    amount: float

# --- Booking Schemas ---
class BookingCreate(BaseModel):
    """Schema for a farmer's booking request."""
    worker_id: str
    farmer_id: str
    work_dates: List[date]
    work_types: List[str]
    billing_mode: BillingMode = BillingMode.DAILY
    payment_method: str = "cash"
    start_time: Optional[Union[int, str]] = None  # hour or "HH:MM", hourly billing only
    end_time: Optional[Union[int, str]] = None
    farmer_location: str
    description: str = Field(default="", max_length=1000)

class Booking(BaseModel):
    id: str
    worker_id: str
    farmer_id: str
    group_id: Optional[str] = None
    worker_name: str
    worker_phone: str
    work_types: List[str]
    work_dates: List[date]
    start_date: date
    end_date: date
    start_hour: Optional[int] = None
    end_hour: Optional[int] = None
    billing_mode: BillingMode
    payment_method: str
    unit_rate: float
    total_amount: float
    description: str
    farmer_location: str
    status: BookingStatus
    has_review: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class BookingList(BaseModel):
    bookings: List[Booking]
    count: int

class TransitionRequest(BaseModel):
    event: BookingEvent
    actor: ActorRole
    # Status the caller last saw; a mismatch is reported as stale state
    expected_status: Optional[BookingStatus] = None

class LedgerEntry(BaseModel):
    hash: str
    prev_hash: str
    action: str
    actor: str
    payload: Dict
    timestamp: str

class BookingHistory(BaseModel):
    booking_id: str
    entries: List[LedgerEntry]
    verified: bool
    broken_at: Optional[int] = None

class PaymentIntent(BaseModel):
    payee_address: str
    payee_name: str
    amount: float
    currency: str
    note: str
    uri: str
    shows_qr: bool

# --- Group Booking Schemas ---
class GroupSummaryRequest(BaseModel):
    worker_ids: List[str]

class GroupSummary(BaseModel):
    workers: List[Worker]
    worker_count: int
    total_cost_per_day: float
    average_rating: float

class GroupBookingCreate(BaseModel):
    farmer_id: str
    worker_ids: List[str] = Field(..., min_length=1)
    work_type: str
    start_date: date
    end_date: date
    hours_per_day: int = Field(default=8, ge=1, le=12)
    farmer_location: str
    special_instructions: str = Field(default="", max_length=1000)
    payment_method: str = "cash"

class GroupBookingResponse(BaseModel):
    group_id: str
    bookings: List[Booking]
    total_amount: float

# --- Review Schemas ---
class ReviewCreate(BaseModel):
    rating: int
    comment: str = Field(..., max_length=MAX_COMMENT_LENGTH)

class ResponseCreate(BaseModel):
    comment: str = Field(..., max_length=MAX_COMMENT_LENGTH)

class ReviewResponse(BaseModel):
    comment: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class Review(BaseModel):
    id: str
    booking_id: str
    worker_id: str
    farmer_id: str
    rating: int
    comment: str
    work_types: List[str]
    work_date: date
    created_at: datetime
    helpful_count: int
    response: Optional[ReviewResponse] = None

    model_config = ConfigDict(from_attributes=True)

class RatingSummary(BaseModel):
    worker_id: str
    count: int
    average: float
    distribution: Dict[int, int]
