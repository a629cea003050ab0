from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.domain.entity.booking_entity import Booking


class CompleteBookingUseCase:
    """confirmed → completed, once the experience has taken place."""

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, booking_id: UUID, at: Optional[datetime] = None) -> Booking:
        at = at or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id_for_update(booking_id=booking_id)
            if not booking:
                raise NotFoundError(f'Booking {booking_id} not found')

            completed = booking.complete(at=at)
            await uow.booking_command_repo.update(booking=completed)
            await uow.commit()

        metrics.record_transition(transition='completed')
        return completed
