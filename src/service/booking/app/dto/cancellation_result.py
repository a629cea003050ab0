from typing import Optional
from uuid import UUID

import attrs

from src.service.booking.domain.entity.booking_entity import Booking


@attrs.define(frozen=True)
class CancellationResult:
    booking: Booking
    refund_issued: bool = False
    refund_id: Optional[str] = None
    refund_amount_cents: Optional[int] = None
    payment_voided: bool = False

    @property
    def booking_id(self) -> UUID:
        return self.booking.id
