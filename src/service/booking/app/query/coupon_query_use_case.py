from datetime import datetime, timezone
from typing import List, Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.vip_status import VipStatus
from src.service.booking.domain.entity.user_coupon_entity import UserCoupon


class CouponQueryUseCase:
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
    async def list_available(
        self,
        *,
        user_id: UUID,
        min_purchase_cents: Optional[int] = None,
        at: Optional[datetime] = None,
    ) -> List[UserCoupon]:
        """Usable coupons; given a purchase amount, only those it meets the minimum for."""
        at = at or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            coupons = await uow.discount_query_repo.list_user_coupons(user_id=user_id)
        return [c for c in coupons if c.is_available(at=at, total_cents=min_purchase_cents)]

    @Logger.io
    async def get_vip_status(self, *, user_id: UUID, at: Optional[datetime] = None) -> VipStatus:
        at = at or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            subscription = await uow.discount_query_repo.get_active_vip(user_id=user_id, at=at)
        return VipStatus.of(subscription=subscription, at=at)
