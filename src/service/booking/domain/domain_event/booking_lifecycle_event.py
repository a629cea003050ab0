"""
Booking Lifecycle Events

One event per committed status transition, handed to the Notifier after commit.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional
from uuid import UUID

import attrs

from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus


class BookingLifecycleEventType(StrEnum):
    PENDING_CREATED = 'booking.pending_created'
    CONFIRMED = 'booking.confirmed'
    CANCELLED = 'booking.cancelled'
    EXPIRED = 'booking.expired'


@attrs.define
class BookingLifecycleEvent:
    event_type: BookingLifecycleEventType
    booking_id: UUID
    user_id: UUID
    status: BookingStatus
    total_cents: int
    commission_cents: int
    resort_net_cents: int
    currency: str
    occurred_at: datetime
    reason: Optional[str] = None
    refund_amount_cents: Optional[int] = None

    @classmethod
    def from_booking(
        cls,
        *,
        event_type: BookingLifecycleEventType,
        booking: Booking,
        occurred_at: datetime,
        refund_amount_cents: Optional[int] = None,
    ) -> 'BookingLifecycleEvent':
        return cls(
            event_type=event_type,
            booking_id=booking.id,
            user_id=booking.user_id,
            status=booking.status,
            total_cents=booking.total_cents,
            commission_cents=booking.commission_cents,
            resort_net_cents=booking.resort_net_cents,
            currency=booking.currency,
            occurred_at=occurred_at,
            reason=booking.cancel_reason,
            refund_amount_cents=refund_amount_cents,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'event_type': self.event_type.value,
            'booking_id': str(self.booking_id),
            'user_id': str(self.user_id),
            'status': self.status.value,
            'total_cents': self.total_cents,
            'commission_cents': self.commission_cents,
            'resort_net_cents': self.resort_net_cents,
            'currency': self.currency,
            'occurred_at': self.occurred_at.isoformat(),
            'reason': self.reason,
            'refund_amount_cents': self.refund_amount_cents,
        }
