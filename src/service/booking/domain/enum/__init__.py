"""Booking Domain Enums"""

from src.service.booking.domain.enum.discount_type import (
    CouponType,
    DiscountType,
    ReferralType,
    RestrictionType,
    VipSubscriptionStatus,
)
from src.service.booking.domain.enum.payment_status import PaymentStatus

__all__ = [
    'CouponType',
    'DiscountType',
    'PaymentStatus',
    'ReferralType',
    'RestrictionType',
    'VipSubscriptionStatus',
]
