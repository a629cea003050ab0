"""
Kafka Notifier Implementation

Publishes booking lifecycle events with confluent-kafka's AsyncIO Producer.

Features:
- One producer per process, created on first publish and closed at shutdown
- Idempotent producer with acks=all (see Settings.KAFKA_PRODUCER_CONFIG)
- Messages keyed by booking id, so one booking's events stay ordered on one partition
- JSON payload (orjson) with the current trace context in the headers
"""

from typing import Any, Dict

import orjson
from confluent_kafka.experimental.aio import AIOProducer
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import inject_trace_context
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.domain.domain_event.booking_lifecycle_event import BookingLifecycleEvent


class KafkaNotifierImpl(INotifier):
    def __init__(self, *, producer_config: Dict[str, Any], topic: str) -> None:
        self.producer_config = producer_config
        self.topic = topic
        self.tracer = trace.get_tracer(__name__)
        self._producer: AIOProducer | None = None

    def _get_producer(self) -> AIOProducer:
        if self._producer is None:
            self._producer = AIOProducer(self.producer_config)
        return self._producer

    @Logger.io
    async def publish(self, *, event: BookingLifecycleEvent) -> None:
        with self.tracer.start_as_current_span(
            'kafka.publish',
            attributes={
                'messaging.system': 'kafka',
                'messaging.destination': self.topic,
                'messaging.destination_kind': 'topic',
                'event.type': event.event_type.value,
            },
        ):
            headers = [(k, v.encode()) for k, v in inject_trace_context().items()]
            await self._get_producer().produce(
                topic=self.topic,
                key=str(event.booking_id).encode(),
                value=orjson.dumps(event.to_dict()),
                headers=headers,
            )
            Logger.base.info(f'📤 [KAFKA] {event.event_type} booking={event.booking_id}')

    async def close(self) -> None:
        if self._producer is not None:
            await self._producer.flush()
            await self._producer.close()
            self._producer = None
            Logger.base.info('📤 [KAFKA] Producer closed')
