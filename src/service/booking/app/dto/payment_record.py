from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs

from src.service.booking.domain.enum.payment_status import PaymentStatus


@attrs.define(frozen=True)
class PaymentRecord:
    """Payment state as last recorded by the payments collaborator."""

    id: UUID
    booking_id: UUID
    status: PaymentStatus
    amount_cents: int
    currency: str
    paid_at: Optional[datetime] = None


@attrs.define(frozen=True)
class Refund:
    id: str
    amount_cents: int
