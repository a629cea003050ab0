"""
In-memory Notifier Implementation

Default backend for local runs and tests (NOTIFIER_BACKEND=memory).

Architecture:
- Use case commits → emit_after_commit() → publish() → subscriber streams
- Every published event is also kept in `published`, oldest first
- Each booking_id has a list of subscriber stream pairs

Memory Management:
- Stream max buffer: 10 events
- Drop policy: drop if a stream is full (send_nowait raises WouldBlock)
- Cleanup: empty subscriber lists are removed on unsubscribe
"""

from typing import Dict, List
from uuid import UUID

from anyio import WouldBlock, create_memory_object_stream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.domain.domain_event.booking_lifecycle_event import BookingLifecycleEvent


class InMemoryNotifierImpl(INotifier):
    def __init__(self) -> None:
        self.published: List[BookingLifecycleEvent] = []
        self._subscribers: Dict[
            UUID,
            List[
                tuple[
                    MemoryObjectSendStream[BookingLifecycleEvent],
                    MemoryObjectReceiveStream[BookingLifecycleEvent],
                ]
            ],
        ] = {}

    async def publish(self, *, event: BookingLifecycleEvent) -> None:
        self.published.append(event)

        delivered = 0
        for send_stream, _ in self._subscribers.get(event.booking_id, []):
            try:
                send_stream.send_nowait(event)
                delivered += 1
            except WouldBlock:
                Logger.base.warning(
                    f'⚠️ [NOTIFY] Stream full for booking {event.booking_id}, '
                    f'dropping {event.event_type}'
                )

        Logger.base.info(
            f'📡 [NOTIFY] {event.event_type} booking={event.booking_id} subscribers={delivered}'
        )

    async def subscribe(
        self, *, booking_id: UUID
    ) -> MemoryObjectReceiveStream[BookingLifecycleEvent]:
        send_stream, receive_stream = create_memory_object_stream[BookingLifecycleEvent](
            max_buffer_size=10
        )
        self._subscribers.setdefault(booking_id, []).append((send_stream, receive_stream))
        return receive_stream

    async def unsubscribe(
        self, *, booking_id: UUID, stream: MemoryObjectReceiveStream[BookingLifecycleEvent]
    ) -> None:
        subscribers = self._subscribers.get(booking_id)
        if not subscribers:
            return

        for i, (send_stream, receive_stream) in enumerate(subscribers):
            if receive_stream is stream:
                await send_stream.aclose()
                await receive_stream.aclose()
                subscribers.pop(i)
                break

        if not subscribers:
            del self._subscribers[booking_id]

    def events_for(self, *, booking_id: UUID) -> List[BookingLifecycleEvent]:
        return [e for e in self.published if e.booking_id == booking_id]

    async def close(self) -> None:
        for subscribers in self._subscribers.values():
            for send_stream, receive_stream in subscribers:
                await send_stream.aclose()
                await receive_stream.aclose()
        self._subscribers.clear()
