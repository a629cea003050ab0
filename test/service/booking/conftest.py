"""
Booking test fixtures.

Seeder writes catalogue and discount rows directly through the ORM models, the way
the catalogue and payments collaborators would; the engine itself only reads them.
Time-bound rows (slot times, VIP window, payment and lock stamps) are anchored on
`now`, the fixed T0 unless a test module seeds relative to the wall clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import pytest
from sqlalchemy import func, select
from uuid_utils.compat import uuid7

from src.platform.database.orm_db_setting import Database
from src.service.booking.driven_adapter.model import (
    AvailabilitySlotModel,
    BookingModel,
    ExperienceModel,
    InventoryLockModel,
    PaymentModel,
    ReferralCodeModel,
    ReferralCodeRestrictionModel,
    UserCouponModel,
    VipSubscriptionModel,
)


T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class Seeder:
    def __init__(self, database: Database, *, now: datetime = T0) -> None:
        self.database = database
        self.now = now

    async def _add(self, *models: object) -> None:
        async with self.database.session() as session:
            session.add_all(list(models))
            await session.commit()

    async def slot(
        self,
        *,
        capacity: int = 10,
        price_per_adult_cents: int = 10_000,
        price_per_child_cents: int = 5_000,
        commission_per_adult_cents: int = 2_000,
        commission_per_child_cents: int = 1_000,
        category_slug: Optional[str] = 'snorkeling',
    ) -> AvailabilitySlotModel:
        experience = ExperienceModel(
            id=uuid7(), resort_id=uuid7(), category_slug=category_slug, title='Reef Snorkel'
        )
        slot = AvailabilitySlotModel(
            id=uuid7(),
            experience_id=experience.id,
            start_time=self.now + timedelta(days=7),
            end_time=self.now + timedelta(days=7, hours=3),
            capacity=capacity,
            price_per_adult_cents=price_per_adult_cents,
            price_per_child_cents=price_per_child_cents,
            commission_per_adult_cents=commission_per_adult_cents,
            commission_per_child_cents=commission_per_child_cents,
        )
        await self._add(experience)
        await self._add(slot)
        return slot

    async def referral_code(
        self,
        *,
        code: str = 'SUNSET10',
        referral_type: str = 'standard',
        discount_type: str = 'percentage',
        discount_value: int = 1_000,
        usage_limit: Optional[int] = None,
        owner_agent_id: Optional[UUID] = None,
        restrict_to_experience_id: Optional[UUID] = None,
    ) -> ReferralCodeModel:
        referral = ReferralCodeModel(
            id=uuid7(),
            code=code,
            referral_type=referral_type,
            discount_type=discount_type,
            discount_value=discount_value,
            min_purchase_cents=0,
            allow_stacking=referral_type == 'standard',
            is_active=True,
            usage_limit=usage_limit,
            usage_count=0,
            owner_agent_id=owner_agent_id,
        )
        models: list[object] = [referral]
        if restrict_to_experience_id is not None:
            models.append(
                ReferralCodeRestrictionModel(
                    id=uuid7(),
                    referral_code_id=referral.id,
                    restriction_type='experience',
                    experience_id=restrict_to_experience_id,
                )
            )
        await self._add(*models)
        return referral

    async def user_coupon(
        self,
        *,
        user_id: UUID,
        code: str = 'WELCOME5',
        coupon_type: str = 'user_earned',
        discount_type: str = 'fixed',
        discount_value: int = 500,
        min_purchase_cents: int = 0,
        vip_duration_days: Optional[int] = None,
    ) -> UserCouponModel:
        coupon = UserCouponModel(
            id=uuid7(),
            user_id=user_id,
            code=code,
            coupon_type=coupon_type,
            discount_type=discount_type,
            discount_value=discount_value,
            min_purchase_cents=min_purchase_cents,
            currency='USD',
            is_used=False,
            is_active=True,
            vip_duration_days=vip_duration_days,
        )
        await self._add(coupon)
        return coupon

    async def vip(
        self, *, user_id: UUID, discount_value: int = 2_000, days: int = 30
    ) -> VipSubscriptionModel:
        subscription = VipSubscriptionModel(
            id=uuid7(),
            user_id=user_id,
            discount_type='percentage',
            discount_value=discount_value,
            status='active',
            activated_at=self.now - timedelta(days=1),
            expires_at=self.now + timedelta(days=days),
        )
        await self._add(subscription)
        return subscription

    async def payment(
        self, *, booking_id: UUID, status: str, amount_cents: int = 10_000
    ) -> PaymentModel:
        payment = PaymentModel(
            id=uuid7(),
            booking_id=booking_id,
            status=status,
            amount_cents=amount_cents,
            currency='USD',
            paid_at=self.now if status == 'paid' else None,
        )
        await self._add(payment)
        return payment

    async def orphan_lock(
        self, *, slot_id: UUID, quantity: int, expires_at: datetime
    ) -> InventoryLockModel:
        lock = InventoryLockModel(
            id=uuid7(),
            slot_id=slot_id,
            quantity=quantity,
            expires_at=expires_at,
            created_at=self.now,
        )
        await self._add(lock)
        return lock

    async def get_booking_row(self, booking_id: UUID) -> Optional[BookingModel]:
        async with self.database.session() as session:
            return await session.get(BookingModel, booking_id)

    async def get_lock_row(self, lock_id: UUID) -> Optional[InventoryLockModel]:
        async with self.database.session() as session:
            return await session.get(InventoryLockModel, lock_id)

    async def get_referral_row(self, referral_code_id: UUID) -> Optional[ReferralCodeModel]:
        async with self.database.session() as session:
            return await session.get(ReferralCodeModel, referral_code_id)

    async def get_coupon_row(self, coupon_id: UUID) -> Optional[UserCouponModel]:
        async with self.database.session() as session:
            return await session.get(UserCouponModel, coupon_id)

    async def get_vip_row(self, subscription_id: UUID) -> Optional[VipSubscriptionModel]:
        async with self.database.session() as session:
            return await session.get(VipSubscriptionModel, subscription_id)

    async def count_slot_rows(self, slot_id: UUID) -> tuple[int, int]:
        """(bookings, inventory locks) recorded against one slot."""
        async with self.database.session() as session:
            bookings = await session.scalar(
                select(func.count())
                .select_from(BookingModel)
                .where(BookingModel.slot_id == slot_id)
            )
            locks = await session.scalar(
                select(func.count())
                .select_from(InventoryLockModel)
                .where(InventoryLockModel.slot_id == slot_id)
            )
        return bookings or 0, locks or 0


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def seed(database: Database) -> Seeder:
    return Seeder(database)


@pytest.fixture
def user_id() -> UUID:
    return uuid7()
