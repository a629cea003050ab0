from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription


class IDiscountCommandRepo(ABC):
    """Write side of discounts. Runs on the caller's unit of work session."""

    @abstractmethod
    async def increment_referral_usage(self, *, referral_code_id: UUID) -> bool:
        """
        Atomically bump usage_count unless usage_limit is already reached.

        Returns:
            False when the limit was hit by a concurrent redemption
        """
        pass

    @abstractmethod
    async def clear_booking_discounts(self, *, booking_id: UUID) -> None:
        pass

    @abstractmethod
    async def record_booking_coupon(
        self, *, booking_id: UUID, user_coupon_id: UUID, discount_applied_cents: int
    ) -> None:
        pass

    @abstractmethod
    async def record_booking_referral_code(
        self, *, booking_id: UUID, referral_code_id: UUID, discount_applied_cents: int
    ) -> None:
        pass

    @abstractmethod
    async def mark_booking_coupons_used(self, *, booking_id: UUID, at: datetime) -> int:
        """Consume every user coupon recorded against the booking; returns how many."""
        pass

    @abstractmethod
    async def create_vip_subscription(self, *, subscription: VipSubscription) -> VipSubscription:
        pass

    @abstractmethod
    async def expire_lapsed_vip_subscriptions(self, *, user_id: UUID, at: datetime) -> int:
        """Flip the user's active-but-past-expiry subscriptions to expired."""
        pass

    @abstractmethod
    async def mark_coupon_used(self, *, coupon_id: UUID, at: datetime) -> None:
        pass
