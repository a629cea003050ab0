from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_discount_query_repo import IDiscountQueryRepo
from src.service.booking.domain.entity.booking_entity import CAPACITY_HOLDING_STATUSES
from src.service.booking.domain.entity.referral_code_entity import CodeRestriction, ReferralCode
from src.service.booking.domain.entity.user_coupon_entity import UserCoupon
from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription
from src.service.booking.domain.enum.discount_type import (
    CouponType,
    DiscountType,
    RestrictionType,
    VipSubscriptionStatus,
)
from src.service.booking.domain.value_object.experience_ref import ExperienceRef
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.experience_model import ExperienceModel
from src.service.booking.driven_adapter.model.referral_code_model import ReferralCodeModel
from src.service.booking.driven_adapter.model.user_coupon_model import UserCouponModel
from src.service.booking.driven_adapter.model.vip_subscription_model import VipSubscriptionModel


class DiscountQueryRepoImpl(IDiscountQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_referral_entity(model: ReferralCodeModel) -> ReferralCode:
        return ReferralCode(
            id=model.id,
            code=model.code,
            referral_type=model.referral_type,
            discount_type=DiscountType(model.discount_type),
            discount_value=model.discount_value,
            max_discount_cents=model.max_discount_cents,
            min_purchase_cents=model.min_purchase_cents,
            allow_stacking=model.allow_stacking,
            is_active=model.is_active,
            usage_limit=model.usage_limit,
            usage_count=model.usage_count,
            expires_at=model.expires_at,
            owner_agent_id=model.owner_agent_id,
            restrictions=[
                CodeRestriction(
                    restriction_type=RestrictionType(r.restriction_type),
                    experience_id=r.experience_id,
                    category_slug=r.category_slug,
                    resort_id=r.resort_id,
                )
                for r in model.restrictions
            ],
        )

    @staticmethod
    def _to_coupon_entity(model: UserCouponModel) -> UserCoupon:
        return UserCoupon(
            id=model.id,
            user_id=model.user_id,
            code=model.code,
            coupon_type=CouponType(model.coupon_type),
            discount_type=DiscountType(model.discount_type),
            discount_value=model.discount_value,
            max_discount_cents=model.max_discount_cents,
            min_purchase_cents=model.min_purchase_cents,
            currency=model.currency,
            description=model.description,
            is_used=model.is_used,
            is_active=model.is_active,
            expires_at=model.expires_at,
            vip_duration_days=model.vip_duration_days,
            used_at=model.used_at,
            used_booking_id=model.used_booking_id,
            created_at=model.created_at,
        )

    @staticmethod
    def _to_vip_entity(model: VipSubscriptionModel) -> VipSubscription:
        return VipSubscription(
            id=model.id,
            user_id=model.user_id,
            discount_type=DiscountType(model.discount_type),
            discount_value=model.discount_value,
            activated_at=model.activated_at,
            expires_at=model.expires_at,
            status=VipSubscriptionStatus(model.status),
            coupon_id=model.coupon_id,
        )

    @Logger.io
    async def get_active_vip(self, *, user_id: UUID, at: datetime) -> Optional[VipSubscription]:
        result = await self.session.execute(
            select(VipSubscriptionModel)
            .where(
                VipSubscriptionModel.user_id == user_id,
                VipSubscriptionModel.status == VipSubscriptionStatus.ACTIVE.value,
                VipSubscriptionModel.expires_at > at,
            )
            .order_by(VipSubscriptionModel.expires_at.desc())
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return self._to_vip_entity(model) if model else None

    @Logger.io
    async def get_referral_code(self, *, code: str) -> Optional[ReferralCode]:
        result = await self.session.execute(
            select(ReferralCodeModel).where(
                func.upper(ReferralCodeModel.code) == code.strip().upper()
            )
        )
        model = result.scalar_one_or_none()
        return self._to_referral_entity(model) if model else None

    @Logger.io
    async def get_referral_code_by_id(self, *, referral_code_id: UUID) -> Optional[ReferralCode]:
        model = await self.session.get(ReferralCodeModel, referral_code_id)
        return self._to_referral_entity(model) if model else None

    @Logger.io
    async def has_user_used_referral_code(
        self, *, user_id: UUID, referral_code_id: UUID, exclude_booking_id: Optional[UUID] = None
    ) -> bool:
        stmt = select(BookingModel.id).where(
            BookingModel.user_id == user_id,
            BookingModel.referral_code_id == referral_code_id,
            BookingModel.status.in_([s.value for s in CAPACITY_HOLDING_STATUSES]),
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(BookingModel.id != exclude_booking_id)
        return await self.session.scalar(stmt.limit(1)) is not None

    @Logger.io
    async def get_user_coupon(self, *, user_id: UUID, code: str) -> Optional[UserCoupon]:
        result = await self.session.execute(
            select(UserCouponModel).where(
                UserCouponModel.user_id == user_id,
                func.upper(UserCouponModel.code) == code.strip().upper(),
            )
        )
        model = result.scalar_one_or_none()
        return self._to_coupon_entity(model) if model else None

    @Logger.io
    async def get_user_coupons_by_codes(
        self, *, user_id: UUID, codes: Sequence[str]
    ) -> Dict[str, UserCoupon]:
        upper_codes = [c.strip().upper() for c in codes if c and c.strip()]
        if not upper_codes:
            return {}
        result = await self.session.execute(
            select(UserCouponModel).where(
                UserCouponModel.user_id == user_id,
                func.upper(UserCouponModel.code).in_(upper_codes),
            )
        )
        return {m.code.upper(): self._to_coupon_entity(m) for m in result.scalars().all()}

    @Logger.io
    async def list_user_coupons(self, *, user_id: UUID) -> List[UserCoupon]:
        result = await self.session.execute(
            select(UserCouponModel)
            .where(UserCouponModel.user_id == user_id)
            .order_by(UserCouponModel.created_at.desc())
        )
        return [self._to_coupon_entity(m) for m in result.scalars().all()]

    @Logger.io
    async def get_experience(self, *, experience_id: UUID) -> Optional[ExperienceRef]:
        model = await self.session.get(ExperienceModel, experience_id)
        if not model:
            return None
        return ExperienceRef(
            id=model.id, resort_id=model.resort_id, category_slug=model.category_slug
        )
