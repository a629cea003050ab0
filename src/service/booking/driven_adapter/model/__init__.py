"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.booking.driven_adapter.model.availability_slot_model import (
    AvailabilitySlotModel,
)
from src.service.booking.driven_adapter.model.booking_discount_model import (
    BookingCouponModel,
    BookingReferralCodeModel,
)
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.experience_model import ExperienceModel
from src.service.booking.driven_adapter.model.inventory_lock_model import InventoryLockModel
from src.service.booking.driven_adapter.model.payment_model import PaymentModel
from src.service.booking.driven_adapter.model.referral_code_model import (
    ReferralCodeModel,
    ReferralCodeRestrictionModel,
)
from src.service.booking.driven_adapter.model.user_coupon_model import UserCouponModel
from src.service.booking.driven_adapter.model.vip_subscription_model import VipSubscriptionModel

__all__ = [
    'AvailabilitySlotModel',
    'BookingCouponModel',
    'BookingModel',
    'BookingReferralCodeModel',
    'ExperienceModel',
    'InventoryLockModel',
    'PaymentModel',
    'ReferralCodeModel',
    'ReferralCodeRestrictionModel',
    'UserCouponModel',
    'VipSubscriptionModel',
]
