from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_discount_command_repo import IDiscountCommandRepo
from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription
from src.service.booking.domain.enum.discount_type import VipSubscriptionStatus
from src.service.booking.driven_adapter.model.booking_discount_model import (
    BookingCouponModel,
    BookingReferralCodeModel,
)
from src.service.booking.driven_adapter.model.referral_code_model import ReferralCodeModel
from src.service.booking.driven_adapter.model.user_coupon_model import UserCouponModel
from src.service.booking.driven_adapter.model.vip_subscription_model import VipSubscriptionModel


class DiscountCommandRepoImpl(IDiscountCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def increment_referral_usage(self, *, referral_code_id: UUID) -> bool:
        # Single conditional UPDATE: the limit check and the increment cannot interleave
        result = await self.session.execute(
            update(ReferralCodeModel)
            .where(
                ReferralCodeModel.id == referral_code_id,
                or_(
                    ReferralCodeModel.usage_limit.is_(None),
                    ReferralCodeModel.usage_count < ReferralCodeModel.usage_limit,
                ),
            )
            .values(usage_count=ReferralCodeModel.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @Logger.io
    async def clear_booking_discounts(self, *, booking_id: UUID) -> None:
        await self.session.execute(
            delete(BookingCouponModel).where(BookingCouponModel.booking_id == booking_id)
        )
        await self.session.execute(
            delete(BookingReferralCodeModel).where(
                BookingReferralCodeModel.booking_id == booking_id
            )
        )

    @Logger.io
    async def record_booking_coupon(
        self, *, booking_id: UUID, user_coupon_id: UUID, discount_applied_cents: int
    ) -> None:
        self.session.add(
            BookingCouponModel(
                id=uuid7(),
                booking_id=booking_id,
                user_coupon_id=user_coupon_id,
                discount_applied_cents=discount_applied_cents,
            )
        )
        await self.session.flush()

    @Logger.io
    async def record_booking_referral_code(
        self, *, booking_id: UUID, referral_code_id: UUID, discount_applied_cents: int
    ) -> None:
        self.session.add(
            BookingReferralCodeModel(
                id=uuid7(),
                booking_id=booking_id,
                referral_code_id=referral_code_id,
                discount_applied_cents=discount_applied_cents,
            )
        )
        await self.session.flush()

    @Logger.io
    async def mark_booking_coupons_used(self, *, booking_id: UUID, at: datetime) -> int:
        applied_coupon_ids = select(BookingCouponModel.user_coupon_id).where(
            BookingCouponModel.booking_id == booking_id
        )
        result = await self.session.execute(
            update(UserCouponModel)
            .where(
                UserCouponModel.id.in_(applied_coupon_ids),
                UserCouponModel.is_used.is_(False),
            )
            .values(is_used=True, used_at=at, used_booking_id=booking_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    @Logger.io
    async def create_vip_subscription(self, *, subscription: VipSubscription) -> VipSubscription:
        self.session.add(
            VipSubscriptionModel(
                id=subscription.id,
                user_id=subscription.user_id,
                coupon_id=subscription.coupon_id,
                discount_type=subscription.discount_type.value,
                discount_value=subscription.discount_value,
                status=subscription.status.value,
                activated_at=subscription.activated_at,
                expires_at=subscription.expires_at,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f'User {subscription.user_id} already has an active VIP subscription'
            ) from e
        return subscription

    @Logger.io
    async def expire_lapsed_vip_subscriptions(self, *, user_id: UUID, at: datetime) -> int:
        result = await self.session.execute(
            update(VipSubscriptionModel)
            .where(
                VipSubscriptionModel.user_id == user_id,
                VipSubscriptionModel.status == VipSubscriptionStatus.ACTIVE.value,
                VipSubscriptionModel.expires_at <= at,
            )
            .values(status=VipSubscriptionStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    @Logger.io
    async def mark_coupon_used(self, *, coupon_id: UUID, at: datetime) -> None:
        result = await self.session.execute(
            update(UserCouponModel)
            .where(UserCouponModel.id == coupon_id, UserCouponModel.is_used.is_(False))
            .values(is_used=True, used_at=at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(f'Coupon {coupon_id} has already been used')
