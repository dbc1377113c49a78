"""
Khet Mitra - Router Helpers
Maps core rejections onto HTTP errors.
"""

from fastapi import HTTPException
from typing import TypeVar, Union

from app.services.rejections import Rejection, RejectionReason

T = TypeVar("T")

STATUS_CODES = {
    RejectionReason.INVALID_INPUT: 422,
    RejectionReason.ILLEGAL_TRANSITION: 409,
    RejectionReason.DUPLICATE_REVIEW: 409,
    RejectionReason.DUPLICATE_RESPONSE: 409,
    RejectionReason.STALE_STATE: 409,
}


def unwrap(result: Union[T, Rejection]) -> T:
    """Return the value, or raise the HTTP error matching the rejection."""
    if isinstance(result, Rejection):
        detail = {"reason": result.reason.value, "message": result.message}
        if result.current_status is not None:
            detail["current_status"] = result.current_status.value
        raise HTTPException(status_code=STATUS_CODES[result.reason], detail=detail)
    return result
