from datetime import datetime, timedelta
import math
from typing import Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import ConflictError, InvalidInputError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.user_coupon_entity import UserCoupon
from src.service.booking.domain.enum.discount_type import (
    CouponType,
    DiscountType,
    VipSubscriptionStatus,
)
from src.service.booking.domain.value_object.discount_terms import DiscountTerms


@attrs.define
class VipSubscription:
    id: UUID
    user_id: UUID
    discount_type: DiscountType
    discount_value: int
    activated_at: datetime
    expires_at: datetime
    status: VipSubscriptionStatus = VipSubscriptionStatus.ACTIVE
    coupon_id: Optional[UUID] = None

    @classmethod
    @Logger.io
    def activate_from_coupon(
        cls,
        *,
        coupon: UserCoupon,
        at: datetime,
        default_duration_days: int,
        existing: Optional['VipSubscription'] = None,
    ) -> 'VipSubscription':
        if coupon.coupon_type != CouponType.VIP_SUBSCRIPTION:
            raise InvalidInputError(f'Coupon {coupon.code} is not a VIP subscription coupon')
        coupon.ensure_redeemable(at=at)
        if existing is not None and existing.is_active(at=at):
            raise ConflictError('User already has an active VIP subscription')

        duration_days = coupon.vip_duration_days or default_duration_days
        return cls(
            id=uuid7(),
            user_id=coupon.user_id,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            activated_at=at,
            expires_at=at + timedelta(days=duration_days),
            coupon_id=coupon.id,
        )

    @property
    def terms(self) -> DiscountTerms:
        return DiscountTerms(discount_type=self.discount_type, discount_value=self.discount_value)

    def is_active(self, *, at: datetime) -> bool:
        return self.status == VipSubscriptionStatus.ACTIVE and self.expires_at > at

    def remaining_days(self, *, at: datetime) -> int:
        return max(0, math.ceil((self.expires_at - at).total_seconds() / 86400))
