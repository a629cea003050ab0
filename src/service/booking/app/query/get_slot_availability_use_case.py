from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.capacity_check_result import SlotCapacitySnapshot


class GetSlotAvailabilityUseCase:
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
    async def execute(
        self, *, slot_id: UUID, at: Optional[datetime] = None
    ) -> SlotCapacitySnapshot:
        at = at or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            return await uow.slot_capacity_store.get_capacity_snapshot(slot_id=slot_id, at=at)
