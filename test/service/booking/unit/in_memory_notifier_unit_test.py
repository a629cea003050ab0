from datetime import datetime, timezone

import anyio
import pytest
from uuid_utils.compat import uuid7

from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEvent,
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import BookingStatus
from src.service.booking.driven_adapter.broadcaster.in_memory_notifier_impl import (
    InMemoryNotifierImpl,
)


NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _event(booking_id, event_type=BookingLifecycleEventType.CONFIRMED) -> BookingLifecycleEvent:
    return BookingLifecycleEvent(
        event_type=event_type,
        booking_id=booking_id,
        user_id=uuid7(),
        status=BookingStatus.CONFIRMED,
        total_cents=10_000,
        commission_cents=2_000,
        resort_net_cents=8_000,
        currency='USD',
        occurred_at=NOW,
    )


@pytest.mark.unit
class TestInMemoryNotifier:
    @pytest.mark.asyncio
    async def test_publish_records_events_in_order(self) -> None:
        notifier = InMemoryNotifierImpl()
        booking_id = uuid7()
        other_id = uuid7()

        await notifier.publish(event=_event(booking_id, BookingLifecycleEventType.PENDING_CREATED))
        await notifier.publish(event=_event(other_id))
        await notifier.publish(event=_event(booking_id))

        assert [e.event_type for e in notifier.events_for(booking_id=booking_id)] == [
            BookingLifecycleEventType.PENDING_CREATED,
            BookingLifecycleEventType.CONFIRMED,
        ]
        assert len(notifier.published) == 3

    @pytest.mark.asyncio
    async def test_subscriber_receives_only_its_booking(self) -> None:
        notifier = InMemoryNotifierImpl()
        booking_id = uuid7()
        stream = await notifier.subscribe(booking_id=booking_id)

        await notifier.publish(event=_event(uuid7()))
        await notifier.publish(event=_event(booking_id))

        with anyio.fail_after(1):
            received = await stream.receive()
        assert received.booking_id == booking_id

        await notifier.unsubscribe(booking_id=booking_id, stream=stream)
        assert booking_id not in notifier._subscribers

    @pytest.mark.asyncio
    async def test_full_stream_drops_instead_of_blocking(self) -> None:
        notifier = InMemoryNotifierImpl()
        booking_id = uuid7()
        stream = await notifier.subscribe(booking_id=booking_id)

        for _ in range(15):
            await notifier.publish(event=_event(booking_id))

        assert stream.statistics().current_buffer_used == 10
        assert len(notifier.published) == 15
        await notifier.close()
