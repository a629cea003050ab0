from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.booking_entity import CAPACITY_HOLDING_STATUSES


class MarkBookingDiscountsUsedUseCase:
    """
    Consume the user coupons recorded against a booking.

    Called by the payments side once payment is confirmed; coupons already
    consumed are skipped, so a repeated call is harmless.
    """

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
    async def execute(self, *, booking_id: UUID, at: Optional[datetime] = None) -> int:
        at = at or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id(booking_id=booking_id)
            if not booking:
                raise NotFoundError(f'Booking {booking_id} not found')
            if booking.status not in CAPACITY_HOLDING_STATUSES:
                raise ConflictError(
                    f'Discounts are consumed only for confirmed bookings, not {booking.status}'
                )

            used = await uow.discount_command_repo.mark_booking_coupons_used(
                booking_id=booking_id, at=at
            )
            await uow.commit()

        Logger.base.info(f'🏷️ [DISCOUNTS-USED] booking={booking_id} coupons={used}')
        return used
