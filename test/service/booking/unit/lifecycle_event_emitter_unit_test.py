"""
Unit tests for emit_after_commit

Test Focus:
1. The event reaches the notifier
2. A notifier failure is reported as False and never raised
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from uuid_utils.compat import uuid7

from src.service.booking.app.service.lifecycle_event_emitter import emit_after_commit
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEvent,
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot
from src.service.booking.domain.entity.booking_entity import Booking


NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def event() -> BookingLifecycleEvent:
    slot = AvailabilitySlot(
        id=uuid7(),
        experience_id=uuid7(),
        start_time=NOW + timedelta(days=3),
        end_time=NOW + timedelta(days=3, hours=2),
        capacity=10,
        price_per_adult_cents=10_000,
        price_per_child_cents=5_000,
        commission_per_adult_cents=2_000,
        commission_per_child_cents=1_000,
    )
    booking = Booking.create(
        user_id=uuid7(),
        slot=slot,
        adults=1,
        children=0,
        currency='usd',
        expires_at=NOW + timedelta(minutes=15),
        created_at=NOW,
    )
    return BookingLifecycleEvent.from_booking(
        event_type=BookingLifecycleEventType.PENDING_CREATED, booking=booking, occurred_at=NOW
    )


@pytest.mark.unit
class TestEmitAfterCommit:
    @pytest.mark.asyncio
    async def test_publishes_event(self, event: BookingLifecycleEvent) -> None:
        notifier = AsyncMock()

        delivered = await emit_after_commit(notifier=notifier, event=event)

        assert delivered is True
        notifier.publish.assert_awaited_once_with(event=event)

    @pytest.mark.asyncio
    async def test_notifier_failure_is_swallowed(self, event: BookingLifecycleEvent) -> None:
        # Given: the broker is down
        notifier = AsyncMock()
        notifier.publish.side_effect = ConnectionError('broker down')

        # When
        delivered = await emit_after_commit(notifier=notifier, event=event)

        # Then: reported, not raised
        assert delivered is False

    def test_event_payload_is_serializable(self, event: BookingLifecycleEvent) -> None:
        payload = event.to_dict()

        assert payload['event_type'] == 'booking.pending_created'
        assert payload['status'] == 'pending'
        assert payload['currency'] == 'USD'
        assert payload['total_cents'] == payload['commission_cents'] + payload['resort_net_cents']
        assert payload['occurred_at'] == NOW.isoformat()
