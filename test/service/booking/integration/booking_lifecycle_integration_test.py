"""
Integration tests for the pending → confirmed / cancelled / expired lifecycle

Test Focus:
1. Capacity is never oversold under concurrent reservations
2. Expired holds give their seats back, exactly once
3. Confirm consumes the lock, cancel releases it
4. Idempotency keys and referral usage limits are enforced in the same transaction
"""

import asyncio
from datetime import timedelta

import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import (
    ConflictError,
    InsufficientCapacityError,
    InvalidInputError,
    NotFoundError,
)
from src.service.booking.app.command.cancel_pending_booking_use_case import (
    CancelPendingBookingUseCase,
)
from src.service.booking.app.command.complete_booking_use_case import CompleteBookingUseCase
from src.service.booking.app.command.confirm_pending_booking_use_case import (
    ConfirmPendingBookingUseCase,
)
from src.service.booking.app.command.create_pending_booking_use_case import (
    CreatePendingBookingUseCase,
)
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.booking.app.query.get_slot_availability_use_case import (
    GetSlotAvailabilityUseCase,
)
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import BookingStatus


@pytest.fixture
def create_pending(uow_factory, notifier) -> CreatePendingBookingUseCase:
    return CreatePendingBookingUseCase(
        uow_factory=uow_factory, notifier=notifier, pending_ttl_minutes=15, default_currency='USD'
    )


@pytest.fixture
def confirm(uow_factory, notifier) -> ConfirmPendingBookingUseCase:
    return ConfirmPendingBookingUseCase(uow_factory=uow_factory, notifier=notifier)


@pytest.fixture
def cancel_pending(uow_factory, notifier) -> CancelPendingBookingUseCase:
    return CancelPendingBookingUseCase(uow_factory=uow_factory, notifier=notifier)


@pytest.fixture
def expire(uow_factory, notifier) -> ExpirePendingBookingsUseCase:
    return ExpirePendingBookingsUseCase(
        uow_factory=uow_factory, notifier=notifier, batch_size=100, orphan_batch_size=100
    )


@pytest.fixture
def availability(uow_factory) -> GetSlotAvailabilityUseCase:
    return GetSlotAvailabilityUseCase(uow_factory=uow_factory)


@pytest.mark.integration
class TestCreatePendingBooking:
    @pytest.mark.asyncio
    async def test_reserves_capacity_and_splits_money(
        self, create_pending, availability, seed, notifier, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=10)

        result = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=2, children=1, at=t0
        )

        booking = result.booking
        assert booking.status == BookingStatus.PENDING
        assert booking.subtotal_cents == 25_000
        assert booking.commission_cents == 5_000
        assert booking.resort_net_cents == 20_000
        assert booking.total_cents == booking.commission_cents + booking.resort_net_cents
        assert result.expires_at == t0 + timedelta(minutes=15)
        assert result.remaining_capacity == 7

        snapshot = await availability.execute(slot_id=slot.id, at=t0)
        assert snapshot.held == 3
        assert snapshot.remaining == 7

        lock_row = await seed.get_lock_row(result.lock_id)
        assert lock_row.booking_id == booking.id
        assert lock_row.quantity == 3
        assert [e.event_type for e in notifier.published] == [
            BookingLifecycleEventType.PENDING_CREATED
        ]

    @pytest.mark.asyncio
    async def test_concurrent_reservations_never_oversell(
        self, create_pending, availability, seed, t0
    ) -> None:
        # Given: two seats and two parties of two racing for them
        slot = await seed.slot(capacity=2)

        # When
        results = await asyncio.gather(
            create_pending.execute(user_id=uuid7(), slot_id=slot.id, adults=2, at=t0),
            create_pending.execute(user_id=uuid7(), slot_id=slot.id, adults=2, at=t0),
            return_exceptions=True,
        )

        # Then: exactly one wins
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientCapacityError)
        assert failures[0].remaining == 0

        snapshot = await availability.execute(slot_id=slot.id, at=t0)
        assert snapshot.remaining == 0

    @pytest.mark.asyncio
    async def test_insufficient_capacity_writes_nothing(
        self, create_pending, availability, seed, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=3)

        with pytest.raises(InsufficientCapacityError) as exc_info:
            await create_pending.execute(user_id=user_id, slot_id=slot.id, adults=4, at=t0)

        assert exc_info.value.remaining == 3
        snapshot = await availability.execute(slot_id=slot.id, at=t0)
        assert snapshot.held == 0

    @pytest.mark.asyncio
    async def test_unknown_slot_is_not_found(self, create_pending, user_id, t0) -> None:
        with pytest.raises(NotFoundError):
            await create_pending.execute(user_id=user_id, slot_id=uuid7(), adults=1, at=t0)

    @pytest.mark.asyncio
    async def test_reused_idempotency_key_is_conflict(
        self, create_pending, seed, user_id, t0
    ) -> None:
        slot = await seed.slot()
        await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=1, idempotency_key='cart-123', at=t0
        )

        with pytest.raises(ConflictError):
            await create_pending.execute(
                user_id=user_id, slot_id=slot.id, adults=1, idempotency_key='cart-123', at=t0
            )

    @pytest.mark.asyncio
    async def test_in_flight_reservation_of_same_size_is_conflict(
        self, create_pending, availability, seed, user_id, t0
    ) -> None:
        # Given: an unbound, active lock of 2 already in flight on the slot
        slot = await seed.slot(capacity=10)
        await seed.orphan_lock(slot_id=slot.id, quantity=2, expires_at=t0 + timedelta(minutes=5))

        # When / Then
        with pytest.raises(ConflictError):
            await create_pending.execute(
                user_id=user_id, slot_id=slot.id, adults=2, idempotency_key='cart-9', at=t0
            )
        assert await seed.count_slot_rows(slot.id) == (0, 1)
        assert (await availability.execute(slot_id=slot.id, at=t0)).held == 2

    @pytest.mark.asyncio
    async def test_in_flight_reservation_of_other_size_is_allowed(
        self, create_pending, availability, seed, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=10)
        await seed.orphan_lock(slot_id=slot.id, quantity=2, expires_at=t0 + timedelta(minutes=5))

        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=3, idempotency_key='cart-9', at=t0
        )

        assert created.remaining_capacity == 5
        assert await seed.count_slot_rows(slot.id) == (1, 2)
        assert (await availability.execute(slot_id=slot.id, at=t0)).held == 5

    @pytest.mark.asyncio
    async def test_referral_usage_is_counted_and_attributed(
        self, create_pending, seed, user_id, t0
    ) -> None:
        agent_id = uuid7()
        slot = await seed.slot()
        referral = await seed.referral_code(usage_limit=1, owner_agent_id=agent_id)

        result = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=1, referral_code='sunset10', at=t0
        )

        assert result.booking.referral_code_id == referral.id
        assert result.booking.agent_id == agent_id
        referral_row = await seed.get_referral_row(referral.id)
        assert referral_row.usage_count == 1

    @pytest.mark.asyncio
    async def test_exhausted_referral_rolls_back_the_reservation(
        self, create_pending, availability, seed, t0
    ) -> None:
        slot = await seed.slot()
        referral = await seed.referral_code(usage_limit=1)
        await create_pending.execute(
            user_id=uuid7(), slot_id=slot.id, adults=1, referral_code='SUNSET10', at=t0
        )

        with pytest.raises(InvalidInputError):
            await create_pending.execute(
                user_id=uuid7(), slot_id=slot.id, adults=2, referral_code='SUNSET10', at=t0
            )

        snapshot = await availability.execute(slot_id=slot.id, at=t0)
        assert snapshot.held == 1
        referral_row = await seed.get_referral_row(referral.id)
        assert referral_row.usage_count == 1


@pytest.mark.integration
class TestPendingTransitions:
    @pytest.mark.asyncio
    async def test_confirm_consumes_the_lock(
        self, create_pending, confirm, availability, seed, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=5)
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=2, at=t0
        )

        confirmed = await confirm.execute(
            booking_id=created.booking_id, user_id=user_id, at=t0 + timedelta(minutes=5)
        )

        assert confirmed.status == BookingStatus.CONFIRMED
        assert confirmed.expires_at is None
        lock_row = await seed.get_lock_row(created.lock_id)
        assert lock_row.consumed_at is not None
        assert lock_row.released_at is None

        # Consumed seats stay held long after the original hold would have expired
        snapshot = await availability.execute(slot_id=slot.id, at=t0 + timedelta(days=1))
        assert snapshot.held == 2

    @pytest.mark.asyncio
    async def test_confirm_after_hold_expired_is_conflict(
        self, create_pending, confirm, seed, user_id, t0
    ) -> None:
        slot = await seed.slot()
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=1, at=t0
        )

        with pytest.raises(ConflictError):
            await confirm.execute(booking_id=created.booking_id, at=t0 + timedelta(minutes=15))

    @pytest.mark.asyncio
    async def test_cancel_pending_releases_capacity(
        self, create_pending, cancel_pending, availability, seed, notifier, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=4)
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=4, at=t0
        )

        cancelled = await cancel_pending.execute(
            booking_id=created.booking_id, reason='changed plans', user_id=user_id, at=t0
        )

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancel_reason == 'changed plans'
        lock_row = await seed.get_lock_row(created.lock_id)
        assert lock_row.released_at is not None
        snapshot = await availability.execute(slot_id=slot.id, at=t0)
        assert snapshot.remaining == 4
        assert notifier.published[-1].event_type == BookingLifecycleEventType.CANCELLED

        with pytest.raises(ConflictError):
            await cancel_pending.execute(booking_id=created.booking_id, at=t0)

    @pytest.mark.asyncio
    async def test_complete_requires_confirmed(
        self, create_pending, confirm, uow_factory, seed, user_id, t0
    ) -> None:
        complete = CompleteBookingUseCase(uow_factory=uow_factory)
        slot = await seed.slot()
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=1, at=t0
        )

        with pytest.raises(ConflictError):
            await complete.execute(booking_id=created.booking_id, at=t0)

        await confirm.execute(booking_id=created.booking_id, at=t0)
        completed = await complete.execute(booking_id=created.booking_id, at=t0 + timedelta(days=8))
        assert completed.status == BookingStatus.COMPLETED


@pytest.mark.integration
class TestExpiry:
    @pytest.mark.asyncio
    async def test_expired_hold_returns_its_seats(
        self, create_pending, expire, availability, seed, notifier, user_id, t0
    ) -> None:
        # Given: a hold that lapses at t0 + 15 minutes
        slot = await seed.slot(capacity=3)
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=3, at=t0
        )
        later = t0 + timedelta(minutes=16)

        # When
        expired = await expire.expire_batch(at=later)

        # Then
        assert [b.id for b in expired] == [created.booking_id]
        booking_row = await seed.get_booking_row(created.booking_id)
        assert booking_row.status == BookingStatus.EXPIRED.value
        assert booking_row.cancel_reason == 'pending_expired'
        lock_row = await seed.get_lock_row(created.lock_id)
        assert lock_row.released_at is not None
        snapshot = await availability.execute(slot_id=slot.id, at=later)
        assert snapshot.remaining == 3
        assert notifier.published[-1].event_type == BookingLifecycleEventType.EXPIRED

        # A second pass finds nothing left to do
        assert await expire.expire_batch(at=later) == []

    @pytest.mark.asyncio
    async def test_holds_not_yet_due_are_untouched(
        self, create_pending, expire, seed, user_id, t0
    ) -> None:
        slot = await seed.slot()
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=1, at=t0
        )

        assert await expire.expire_batch(at=t0 + timedelta(minutes=10)) == []
        booking_row = await seed.get_booking_row(created.booking_id)
        assert booking_row.status == BookingStatus.PENDING.value

    @pytest.mark.asyncio
    async def test_batch_limit_is_respected(self, create_pending, expire, seed, t0) -> None:
        slot = await seed.slot(capacity=10)
        for _ in range(3):
            await create_pending.execute(user_id=uuid7(), slot_id=slot.id, adults=1, at=t0)

        later = t0 + timedelta(minutes=20)
        first = await expire.expire_batch(limit=2, at=later)
        second = await expire.expire_batch(limit=2, at=later)

        assert len(first) == 2
        assert len(second) == 1

    @pytest.mark.asyncio
    async def test_orphan_locks_are_swept(self, expire, availability, seed, t0) -> None:
        slot = await seed.slot(capacity=5)
        orphan = await seed.orphan_lock(
            slot_id=slot.id, quantity=2, expires_at=t0 + timedelta(minutes=5)
        )

        # Still counted while active
        assert (await availability.execute(slot_id=slot.id, at=t0)).held == 2

        result = await expire.execute(at=t0 + timedelta(minutes=6))

        assert result.swept_locks == 1
        assert result.expired_count == 0
        lock_row = await seed.get_lock_row(orphan.id)
        assert lock_row.released_at is not None
