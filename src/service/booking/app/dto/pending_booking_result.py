from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs

from src.service.booking.domain.entity.booking_entity import Booking


@attrs.define(frozen=True)
class PendingBookingResult:
    booking: Booking
    lock_id: UUID
    expires_at: datetime
    remaining_capacity: int

    @property
    def booking_id(self) -> UUID:
        return self.booking.id

    @property
    def referral_code_id(self) -> Optional[UUID]:
        return self.booking.referral_code_id
