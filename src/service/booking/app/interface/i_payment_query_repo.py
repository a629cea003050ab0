from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.service.booking.app.dto.payment_record import PaymentRecord


class IPaymentQueryRepo(ABC):
    @abstractmethod
    async def get_latest_for_booking(self, *, booking_id: UUID) -> Optional[PaymentRecord]:
        """Most recent payment recorded for the booking, or None."""
        pass
