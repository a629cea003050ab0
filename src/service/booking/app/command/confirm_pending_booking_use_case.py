from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.app.service.lifecycle_event_emitter import emit_after_commit
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEvent,
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import Booking


class ConfirmPendingBookingUseCase:
    """
    pending → confirmed, consuming the booking's inventory lock.

    The booking row is locked first, so a concurrent reaper or cancel either ran
    before us (status no longer pending → Conflict) or waits for our commit.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory, notifier: INotifier) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
    ) -> Self:
        return cls(uow_factory=uow_factory, notifier=notifier)

    @Logger.io
    async def execute(
        self,
        *,
        booking_id: UUID,
        user_id: Optional[UUID] = None,
        at: Optional[datetime] = None,
    ) -> Booking:
        at = at or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.confirm_pending_booking', attributes={'booking.id': str(booking_id)}
        ):
            async with self.uow_factory() as uow:
                booking = await uow.booking_command_repo.get_by_id_for_update(
                    booking_id=booking_id
                )
                if not booking:
                    raise NotFoundError(f'Booking {booking_id} not found')
                if user_id is not None and booking.user_id != user_id:
                    raise ForbiddenError('Only the booking owner can confirm this booking')

                confirmed = booking.confirm(at=at)
                await uow.booking_command_repo.update(booking=confirmed)
                await uow.slot_capacity_store.consume_lock(booking_id=booking_id, at=at)
                await uow.commit()

            Logger.base.info(f'✅ [CONFIRM] booking={booking_id}')
            await emit_after_commit(
                notifier=self.notifier,
                event=BookingLifecycleEvent.from_booking(
                    event_type=BookingLifecycleEventType.CONFIRMED,
                    booking=confirmed,
                    occurred_at=at,
                ),
            )
            return confirmed
