from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.booking.app.dto.vip_status import VipStatus
from src.service.booking.domain.entity.user_coupon_entity import UserCoupon
from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription
from src.service.booking.domain.value_object.discount_breakdown import (
    AppliedDiscount,
    DiscountBreakdown,
)


class CalculateDiscountsRequest(BaseModel):
    total_cents: int = Field(ge=0)
    coupon_codes: List[str] = []
    referral_code: Optional[str] = None
    experience_id: Optional[UUID] = None

    model_config = {
        'json_schema_extra': {
            'example': {
                'total_cents': 10000,
                'coupon_codes': ['WELCOME5'],
                'referral_code': None,
                'experience_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
            }
        }
    }


class AppliedCouponResponse(BaseModel):
    code: str
    type: str
    discount_applied: int

    @classmethod
    def from_applied(cls, applied: AppliedDiscount) -> 'AppliedCouponResponse':
        return cls(
            code=applied.code, type=applied.type, discount_applied=applied.discount_applied_cents
        )


class DiscountBreakdownResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'user_coupons_discount': 500,
                'referral_code_discount': 0,
                'vip_discount': 2000,
                'total_discount': 2500,
                'final_total': 7500,
                'applied_coupons': [
                    {'code': 'VIP', 'type': 'vip_subscription', 'discount_applied': 2000},
                    {'code': 'WELCOME5', 'type': 'user_earned', 'discount_applied': 500},
                ],
            }
        },
    }

    user_coupons_discount: int
    referral_code_discount: int
    vip_discount: int
    total_discount: int
    final_total: int
    applied_coupons: List[AppliedCouponResponse]

    @classmethod
    def from_breakdown(cls, breakdown: DiscountBreakdown) -> 'DiscountBreakdownResponse':
        return cls(
            user_coupons_discount=breakdown.user_coupons_discount,
            referral_code_discount=breakdown.referral_code_discount,
            vip_discount=breakdown.vip_discount,
            total_discount=breakdown.total_discount,
            final_total=breakdown.final_total,
            applied_coupons=[AppliedCouponResponse.from_applied(a) for a in breakdown.applied],
        )


class ValidateCodeRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    total_cents: int = Field(ge=0)
    experience_id: Optional[UUID] = None


class UserCouponResponse(BaseModel):
    id: UUID
    code: str
    coupon_type: str
    discount_type: str
    discount_value: int
    max_discount_cents: Optional[int] = None
    min_purchase_cents: int
    description: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, coupon: UserCoupon) -> 'UserCouponResponse':
        return cls(
            id=coupon.id,
            code=coupon.code,
            coupon_type=coupon.coupon_type.value,
            discount_type=coupon.discount_type.value,
            discount_value=coupon.discount_value,
            max_discount_cents=coupon.max_discount_cents,
            min_purchase_cents=coupon.min_purchase_cents,
            description=coupon.description,
            expires_at=coupon.expires_at,
        )


class VipSubscriptionResponse(BaseModel):
    id: UUID
    discount_type: str
    discount_value: int
    activated_at: datetime
    expires_at: datetime
    status: str

    @classmethod
    def from_entity(cls, subscription: VipSubscription) -> 'VipSubscriptionResponse':
        return cls(
            id=subscription.id,
            discount_type=subscription.discount_type.value,
            discount_value=subscription.discount_value,
            activated_at=subscription.activated_at,
            expires_at=subscription.expires_at,
            status=subscription.status.value,
        )


class VipStatusResponse(BaseModel):
    is_vip: bool
    subscription: Optional[VipSubscriptionResponse] = None
    remaining_days: Optional[int] = None

    @classmethod
    def from_status(cls, status: VipStatus) -> 'VipStatusResponse':
        return cls(
            is_vip=status.is_vip,
            subscription=(
                VipSubscriptionResponse.from_entity(status.subscription)
                if status.subscription
                else None
            ),
            remaining_days=status.remaining_days,
        )


class ActivateVipRequest(BaseModel):
    coupon_code: str = Field(min_length=1, max_length=50)


class DisplayPriceResponse(BaseModel):
    amount_cents: int
    source_currency: str
    target_currency: str
    display_amount: int
