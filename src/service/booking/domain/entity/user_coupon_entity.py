from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import ConflictError, InvalidInputError
from src.service.booking.domain.enum.discount_type import CouponType, DiscountType
from src.service.booking.domain.value_object.discount_terms import DiscountTerms


@attrs.define
class UserCoupon:
    id: UUID
    user_id: UUID
    code: str
    coupon_type: CouponType
    discount_type: DiscountType
    discount_value: int
    max_discount_cents: Optional[int] = None
    min_purchase_cents: int = 0
    currency: str = 'USD'
    description: Optional[str] = None
    is_used: bool = False
    is_active: bool = True
    expires_at: Optional[datetime] = None
    vip_duration_days: Optional[int] = None
    used_at: Optional[datetime] = None
    used_booking_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @property
    def terms(self) -> DiscountTerms:
        return DiscountTerms(
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            max_discount_cents=self.max_discount_cents,
        )

    def is_expired(self, *, at: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < at

    def is_available(self, *, at: datetime, total_cents: Optional[int] = None) -> bool:
        if not self.is_active or self.is_used or self.is_expired(at=at):
            return False
        return not (total_cents is not None and self.min_purchase_cents > total_cents)

    def ensure_redeemable(self, *, at: datetime, total_cents: Optional[int] = None) -> None:
        if not self.is_active:
            raise InvalidInputError(f'Coupon {self.code} is inactive')
        if self.is_used:
            raise ConflictError(f'Coupon {self.code} has already been used')
        if self.is_expired(at=at):
            raise InvalidInputError(f'Coupon {self.code} has expired')
        if total_cents is not None and self.min_purchase_cents > total_cents:
            raise InvalidInputError(
                f'Coupon {self.code} requires a minimum purchase of {self.min_purchase_cents} cents'
            )

    def mark_used(self, *, at: datetime, booking_id: Optional[UUID] = None) -> 'UserCoupon':
        if self.is_used:
            raise ConflictError(f'Coupon {self.code} has already been used')
        return attrs.evolve(self, is_used=True, used_at=at, used_booking_id=booking_id)
