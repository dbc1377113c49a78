"""
Khet Mitra - Rejections
Explicit, recoverable outcomes returned by the core instead of exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.models.domain import BookingStatus


class RejectionReason(str, Enum):
    INVALID_INPUT = "invalid_input"
    ILLEGAL_TRANSITION = "illegal_transition"
    DUPLICATE_REVIEW = "duplicate_review"
    DUPLICATE_RESPONSE = "duplicate_response"
    STALE_STATE = "stale_state"


@dataclass(frozen=True)
class Rejection:
    """Why an operation was refused. Nothing was mutated."""
    reason: RejectionReason
    message: str
    current_status: Optional[BookingStatus] = None


def invalid_input(message: str) -> Rejection:
    return Rejection(RejectionReason.INVALID_INPUT, message)
