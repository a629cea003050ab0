from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from src.service.booking.domain.entity.referral_code_entity import ReferralCode
from src.service.booking.domain.entity.user_coupon_entity import UserCoupon
from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription
from src.service.booking.domain.value_object.experience_ref import ExperienceRef


class IDiscountQueryRepo(ABC):
    """Read side of coupons, referral codes, VIP subscriptions and experiences."""

    @abstractmethod
    async def get_active_vip(self, *, user_id: UUID, at: datetime) -> Optional[VipSubscription]:
        pass

    @abstractmethod
    async def get_referral_code(self, *, code: str) -> Optional[ReferralCode]:
        """Case-insensitive lookup, restrictions included."""
        pass

    @abstractmethod
    async def get_referral_code_by_id(self, *, referral_code_id: UUID) -> Optional[ReferralCode]:
        pass

    @abstractmethod
    async def has_user_used_referral_code(
        self, *, user_id: UUID, referral_code_id: UUID, exclude_booking_id: Optional[UUID] = None
    ) -> bool:
        """True when the user already has a confirmed (or completed) booking with this code."""
        pass

    @abstractmethod
    async def get_user_coupon(self, *, user_id: UUID, code: str) -> Optional[UserCoupon]:
        pass

    @abstractmethod
    async def get_user_coupons_by_codes(
        self, *, user_id: UUID, codes: Sequence[str]
    ) -> Dict[str, UserCoupon]:
        """Keyed by upper-cased code; unknown codes are simply absent."""
        pass

    @abstractmethod
    async def list_user_coupons(self, *, user_id: UUID) -> List[UserCoupon]:
        pass

    @abstractmethod
    async def get_experience(self, *, experience_id: UUID) -> Optional[ExperienceRef]:
        pass
