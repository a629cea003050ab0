from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription


class ActivateVipCouponUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        default_duration_days: int = settings.VIP_DEFAULT_DURATION_DAYS,
    ) -> None:
        self.uow_factory = uow_factory
        self.default_duration_days = default_duration_days

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(
        self, *, user_id: UUID, coupon_code: str, at: Optional[datetime] = None
    ) -> VipSubscription:
        at = at or datetime.now(timezone.utc)

        async with self.uow_factory() as uow:
            coupon = await uow.discount_query_repo.get_user_coupon(
                user_id=user_id, code=coupon_code
            )
            if not coupon:
                raise NotFoundError(f'Coupon {coupon_code} not found')

            # A lapsed row still counts against the one-active-per-user index until expired
            await uow.discount_command_repo.expire_lapsed_vip_subscriptions(
                user_id=user_id, at=at
            )
            existing = await uow.discount_query_repo.get_active_vip(user_id=user_id, at=at)
            subscription = VipSubscription.activate_from_coupon(
                coupon=coupon,
                at=at,
                default_duration_days=self.default_duration_days,
                existing=existing,
            )
            await uow.discount_command_repo.create_vip_subscription(subscription=subscription)
            await uow.discount_command_repo.mark_coupon_used(coupon_id=coupon.id, at=at)
            await uow.commit()

        Logger.base.info(
            f'👑 [VIP] user={user_id} activated until {subscription.expires_at.isoformat()}'
        )
        return subscription
