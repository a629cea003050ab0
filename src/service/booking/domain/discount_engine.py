"""
Discount Engine
Pure stacking logic over already-loaded discount data; no I/O, no clock reads.

Rules, always in this order (the exclusivity check in step 2 depends on step 1):
1. VIP: an active subscription contributes its discount.
2. Referral code: validated, then rejected if it is exclusive (influencer) while VIP
   is active or user coupons were supplied.
3. User coupons: validated one by one; amounts are additive.
4. final_total = max(0, total - sum of all discounts).
"""

from datetime import datetime
from typing import Mapping, Optional, Sequence

from src.platform.exception.exceptions import ConflictError, InvalidInputError, NotFoundError
from src.service.booking.domain.entity.referral_code_entity import ReferralCode
from src.service.booking.domain.entity.user_coupon_entity import UserCoupon
from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription
from src.service.booking.domain.value_object.discount_breakdown import (
    AppliedDiscount,
    DiscountBreakdown,
)
from src.service.booking.domain.value_object.discount_source import (
    DiscountSource,
    ReferralCodeDiscount,
    UserCouponDiscount,
    VipDiscount,
)
from src.service.booking.domain.value_object.experience_ref import ExperienceRef


def normalize_code(code: str) -> str:
    return code.strip().upper()


def dedupe_codes(codes: Sequence[str]) -> list[str]:
    seen: dict[str, None] = {}
    for code in codes:
        if code and code.strip():
            seen.setdefault(normalize_code(code), None)
    return list(seen)


def apply_source(source: DiscountSource, total_cents: int) -> AppliedDiscount:
    return AppliedDiscount(source=source, discount_applied_cents=source.compute_amount(total_cents))


def resolve_referral(
    *,
    code: str,
    referral: Optional[ReferralCode],
    total_cents: int,
    experience: Optional[ExperienceRef],
    at: datetime,
    used_by_user: bool = False,
    prevalidated: bool = False,
) -> ReferralCodeDiscount:
    """
    Validate a referral code on its own (no stacking rules) and return its discount source.

    prevalidated: the code is already stamped on the booking; its checks ran and its
    usage was counted when the booking was created, so only the amount is recomputed.
    """
    if referral is None:
        raise NotFoundError(f'Referral code {code} not found')
    if not prevalidated:
        referral.ensure_usable(total_cents=total_cents, experience=experience, at=at)
        if used_by_user:
            raise ConflictError(f'Referral code {referral.code} was already used by this user')
    return ReferralCodeDiscount(
        referral_code_id=referral.id,
        code=referral.code,
        referral_type=referral.referral_type,
        terms=referral.terms,
        owner_agent_id=referral.owner_agent_id,
    )


def resolve_user_coupon(
    *, code: str, coupon: Optional[UserCoupon], total_cents: int, at: datetime
) -> UserCouponDiscount:
    if coupon is None:
        raise NotFoundError(f'Coupon {code} not found')
    coupon.ensure_redeemable(at=at, total_cents=total_cents)
    return UserCouponDiscount(
        coupon_id=coupon.id,
        code=coupon.code,
        coupon_type=coupon.coupon_type,
        terms=coupon.terms,
    )


def calculate_discounts(
    *,
    total_cents: int,
    at: datetime,
    vip: Optional[VipSubscription] = None,
    referral_code: Optional[str] = None,
    referral: Optional[ReferralCode] = None,
    referral_used_by_user: bool = False,
    referral_prevalidated: bool = False,
    coupon_codes: Sequence[str] = (),
    coupons_by_code: Mapping[str, UserCoupon] | None = None,
    experience: Optional[ExperienceRef] = None,
) -> DiscountBreakdown:
    if total_cents < 0:
        raise InvalidInputError('total_cents must be >= 0')

    codes = dedupe_codes(coupon_codes)
    coupons_by_code = {normalize_code(k): v for k, v in (coupons_by_code or {}).items()}
    applied: list[AppliedDiscount] = []

    # 1. VIP
    vip_active = vip is not None and vip.is_active(at=at)
    if vip is not None and vip_active:
        vip_source = VipDiscount(subscription_id=vip.id, terms=vip.terms)
        applied.append(apply_source(vip_source, total_cents))

    # 2. Referral / influencer code
    if referral_code:
        source = resolve_referral(
            code=referral_code,
            referral=referral,
            total_cents=total_cents,
            experience=experience,
            at=at,
            used_by_user=referral_used_by_user,
            prevalidated=referral_prevalidated,
        )
        if referral is not None and referral.is_exclusive:
            if vip_active:
                raise ConflictError('Influencer codes cannot be combined with an active VIP')
            if codes:
                raise ConflictError('Influencer codes cannot be combined with other coupons')
        applied.append(apply_source(source, total_cents))

    # 3. User coupons, additive
    for code in codes:
        source = resolve_user_coupon(
            code=code, coupon=coupons_by_code.get(code), total_cents=total_cents, at=at
        )
        applied.append(apply_source(source, total_cents))

    return DiscountBreakdown(total_cents=total_cents, applied=tuple(applied))
