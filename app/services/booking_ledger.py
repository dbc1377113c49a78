"""
Khet Mitra - Booking Ledger Service
Appends hash-chained entries for booking lifecycle events and verifies them.
"""

from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from app.config import get_settings
from app.models.domain import BookingRequest
from app.repositories import BookingLedgerRepository
from app.utils.hash_chain import create_ledger_entry, find_broken_link

settings = get_settings()


class BookingLedger:
    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingLedgerRepository(db)

    def record(
        self,
        booking: BookingRequest,
        action: str,
        actor: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Chain one event onto the booking's history.
        Does not commit; the caller commits together with the state change.
        """
        prev_hash = self.repo.last_hash(booking.id) or settings.ledger_genesis_hash

        # Snapshotted state at the time of the event
        payload = {
            "booking_id": booking.id,
            "worker_id": booking.worker_id,
            "farmer_id": booking.farmer_id,
            "status": booking.status.value,
            "total_amount": booking.total_amount,
        }
        if extra:
            payload.update(extra)

        entry = create_ledger_entry(
            payload=payload,
            prev_hash=prev_hash,
            action=action,
            actor=actor
        )
        return self.repo.save(booking.id, entry)

    def history(self, booking_id: str) -> List[Dict[str, Any]]:
        return self.repo.list(booking_id)

    def verify(self, booking_id: str) -> Dict[str, Any]:
        entries = self.history(booking_id)
        broken_at = find_broken_link(entries, settings.ledger_genesis_hash)
        return {
            "booking_id": booking_id,
            "entries": len(entries),
            "verified": broken_at is None,
            "broken_at": broken_at,
        }
