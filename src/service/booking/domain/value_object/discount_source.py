"""
Discount sources as a closed sum type.

Every variant computes its own amount from the purchase total; the stacking and
exclusivity rules in discount_engine.py match over the variants exhaustively.
"""

from typing import Optional, assert_never
from uuid import UUID

import attrs

from src.service.booking.domain.enum.discount_type import CouponType
from src.service.booking.domain.value_object.discount_terms import DiscountTerms


VIP_CODE = 'VIP'


@attrs.frozen
class UserCouponDiscount:
    coupon_id: UUID
    code: str
    coupon_type: CouponType
    terms: DiscountTerms

    def compute_amount(self, total_cents: int) -> int:
        return self.terms.compute_amount(total_cents)


@attrs.frozen
class ReferralCodeDiscount:
    referral_code_id: UUID
    code: str
    referral_type: str
    terms: DiscountTerms
    owner_agent_id: Optional[UUID] = None

    def compute_amount(self, total_cents: int) -> int:
        return self.terms.compute_amount(total_cents)


@attrs.frozen
class VipDiscount:
    subscription_id: UUID
    terms: DiscountTerms

    def compute_amount(self, total_cents: int) -> int:
        return self.terms.compute_amount(total_cents)


DiscountSource = UserCouponDiscount | ReferralCodeDiscount | VipDiscount


def describe(source: DiscountSource) -> tuple[str, str]:
    """(code, type) pair reported back to callers for an applied source."""
    match source:
        case VipDiscount():
            return VIP_CODE, CouponType.VIP_SUBSCRIPTION.value
        case ReferralCodeDiscount(code=code, referral_type=referral_type):
            return code, f'referral_{referral_type}'
        case UserCouponDiscount(code=code, coupon_type=coupon_type):
            return code, coupon_type.value
        case _:
            assert_never(source)
