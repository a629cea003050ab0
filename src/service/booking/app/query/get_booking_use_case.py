from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.booking_entity import Booking


class GetBookingUseCase:
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
    async def execute(self, *, booking_id: UUID, user_id: UUID) -> Booking:
        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id(booking_id=booking_id)

        if not booking:
            raise NotFoundError('Booking not found')
        if booking.user_id != user_id:
            raise ForbiddenError('Only the booking owner can view this booking')

        return booking
