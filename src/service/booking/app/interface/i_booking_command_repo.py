"""
Booking Command Repository Interface

All writes happen on the caller's unit of work session; the caller commits.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.service.booking.domain.entity.booking_entity import Booking


class IBookingCommandRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, booking_id: UUID) -> Optional[Booking]:
        """
        Get booking and hold its row lock until the transaction ends

        Args:
            booking_id: Booking ID

        Returns:
            Booking entity or None if not found
        """
        pass

    @abstractmethod
    async def exists_by_idempotency_key(self, *, idempotency_key: str) -> bool:
        pass

    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        """
        Insert a new booking row

        Raises:
            ConflictError: idempotency key already taken (unique violation)
        """
        pass

    @abstractmethod
    async def update(self, *, booking: Booking) -> Booking:
        """Persist status, money, expiry, cancel reason and attribution fields."""
        pass

    @abstractmethod
    async def expire_due_pending(self, *, at: datetime, limit: int) -> List[Booking]:
        """
        Claim up to `limit` pending bookings with expires_at < at (oldest first),
        skipping rows locked by other transactions, and mark them expired.

        Returns:
            The bookings this call expired
        """
        pass
