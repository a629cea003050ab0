"""
Discount Enums - Domain Value Objects

Percentage values are stored as basis points (2000 = 20%), fixed values as cents.
"""

from enum import StrEnum


class DiscountType(StrEnum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'
    NONE = 'none'  # referral codes that only attribute, never discount


class CouponType(StrEnum):
    USER_EARNED = 'user_earned'
    VIP_SUBSCRIPTION = 'vip_subscription'
    PROMOTIONAL = 'promotional'


class ReferralType(StrEnum):
    """Anything other than STANDARD is an influencer-style code and cannot be stacked."""

    STANDARD = 'standard'
    INFLUENCER = 'influencer'


class RestrictionType(StrEnum):
    EXPERIENCE = 'experience'
    CATEGORY = 'category'
    RESORT = 'resort'


class VipSubscriptionStatus(StrEnum):
    ACTIVE = 'active'
    EXPIRED = 'expired'
    CANCELLED = 'cancelled'
