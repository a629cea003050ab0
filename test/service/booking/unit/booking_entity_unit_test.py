"""
Unit tests for the Booking state machine and its money split.

Allowed transitions:
    pending → confirmed | cancelled | expired
    confirmed → cancelled | completed | refunded
Everything else is a Conflict, and total_cents == commission_cents + resort_net_cents
holds after every operation.
"""

from datetime import datetime, timedelta, timezone

import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import ConflictError, DomainError, InvalidInputError
from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot
from src.service.booking.domain.entity.booking_entity import (
    PENDING_EXPIRED_REASON,
    Booking,
    BookingStatus,
)


NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def slot() -> AvailabilitySlot:
    return AvailabilitySlot(
        id=uuid7(),
        experience_id=uuid7(),
        start_time=NOW + timedelta(days=3),
        end_time=NOW + timedelta(days=3, hours=2),
        capacity=8,
        price_per_adult_cents=10_000,
        price_per_child_cents=5_000,
        commission_per_adult_cents=2_000,
        commission_per_child_cents=1_000,
    )


@pytest.fixture
def pending(slot: AvailabilitySlot) -> Booking:
    return Booking.create(
        user_id=uuid7(),
        slot=slot,
        adults=2,
        children=1,
        currency='usd',
        expires_at=NOW + timedelta(minutes=15),
        created_at=NOW,
    )


@pytest.mark.unit
class TestBookingCreate:
    def test_money_split_comes_from_the_slot(self, pending: Booking) -> None:
        assert pending.status == BookingStatus.PENDING
        assert pending.subtotal_cents == 25_000
        assert pending.commission_cents == 5_000
        assert pending.resort_net_cents == 20_000
        assert pending.total_cents == 25_000
        assert pending.currency == 'USD'
        assert pending.quantity == 3

    @pytest.mark.parametrize(
        'adults,children',
        [(0, 0), (-1, 2), (1, -1)],
    )
    def test_rejects_bad_party_size(self, slot: AvailabilitySlot, adults: int, children: int):
        with pytest.raises(InvalidInputError):
            Booking.create(
                user_id=uuid7(),
                slot=slot,
                adults=adults,
                children=children,
                currency='USD',
                expires_at=NOW + timedelta(minutes=15),
                created_at=NOW,
            )

    def test_rejects_expiry_not_after_creation(self, slot: AvailabilitySlot) -> None:
        with pytest.raises(InvalidInputError):
            Booking.create(
                user_id=uuid7(),
                slot=slot,
                adults=1,
                children=0,
                currency='USD',
                expires_at=NOW,
                created_at=NOW,
            )

    def test_children_only_booking_is_allowed(self, slot: AvailabilitySlot) -> None:
        booking = Booking.create(
            user_id=uuid7(),
            slot=slot,
            adults=0,
            children=2,
            currency='USD',
            expires_at=NOW + timedelta(minutes=15),
            created_at=NOW,
        )
        assert booking.total_cents == 10_000


@pytest.mark.unit
class TestBookingTransitions:
    def test_confirm_clears_expiry(self, pending: Booking) -> None:
        confirmed = pending.confirm(at=NOW + timedelta(minutes=5))

        assert confirmed.status == BookingStatus.CONFIRMED
        assert confirmed.expires_at is None
        # the original is untouched
        assert pending.status == BookingStatus.PENDING

    def test_confirm_after_hold_expired_is_conflict(self, pending: Booking) -> None:
        with pytest.raises(ConflictError):
            pending.confirm(at=NOW + timedelta(minutes=15))

    def test_expire_sets_reason(self, pending: Booking) -> None:
        expired = pending.expire(at=NOW + timedelta(minutes=16))

        assert expired.status == BookingStatus.EXPIRED
        assert expired.cancel_reason == PENDING_EXPIRED_REASON

    def test_cancel_keeps_reason(self, pending: Booking) -> None:
        cancelled = pending.cancel(reason='Change of plans', at=NOW)

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancel_reason == 'Change of plans'

    def test_confirmed_can_complete_or_refund(self, pending: Booking) -> None:
        confirmed = pending.confirm(at=NOW)

        assert confirmed.complete(at=NOW).status == BookingStatus.COMPLETED
        assert confirmed.mark_refunded(at=NOW).status == BookingStatus.REFUNDED

    @pytest.mark.parametrize('terminal', ['cancel', 'expire'])
    def test_terminal_states_reject_everything(self, pending: Booking, terminal: str) -> None:
        if terminal == 'cancel':
            booking = pending.cancel(reason=None, at=NOW)
        else:
            booking = pending.expire(at=NOW + timedelta(minutes=16))

        with pytest.raises(ConflictError):
            booking.confirm(at=NOW)
        with pytest.raises(ConflictError):
            booking.cancel(reason=None, at=NOW)
        with pytest.raises(ConflictError):
            booking.expire(at=NOW)
        with pytest.raises(ConflictError):
            booking.complete(at=NOW)

    def test_pending_cannot_complete(self, pending: Booking) -> None:
        with pytest.raises(ConflictError):
            pending.complete(at=NOW)

    def test_is_hold_expired_boundary(self, pending: Booking) -> None:
        assert not pending.is_hold_expired(at=NOW + timedelta(minutes=14, seconds=59))
        assert pending.is_hold_expired(at=NOW + timedelta(minutes=15))


@pytest.mark.unit
class TestBookingDiscounts:
    def test_discount_reduces_commission_only(self, pending: Booking) -> None:
        discounted = pending.apply_discounts(
            total_discount_cents=1_500, vip_discount_cents=1_000, at=NOW
        )

        assert discounted.commission_cents == 3_500
        assert discounted.resort_net_cents == 20_000
        assert discounted.total_cents == 23_500
        assert discounted.vip_discount_cents == 1_000

    def test_discount_larger_than_commission_floors_at_zero(self, pending: Booking) -> None:
        discounted = pending.apply_discounts(
            total_discount_cents=99_999, vip_discount_cents=0, at=NOW
        )

        assert discounted.commission_cents == 0
        assert discounted.total_cents == discounted.resort_net_cents == 20_000

    def test_reapplying_starts_from_the_undiscounted_commission(self, pending: Booking) -> None:
        first = pending.apply_discounts(total_discount_cents=2_000, vip_discount_cents=0, at=NOW)
        second = first.apply_discounts(total_discount_cents=500, vip_discount_cents=0, at=NOW)

        assert second.commission_cents == 4_500
        assert second.base_commission_cents == 5_000

    def test_only_pending_accepts_discounts(self, pending: Booking) -> None:
        confirmed = pending.confirm(at=NOW)
        with pytest.raises(ConflictError):
            confirmed.apply_discounts(total_discount_cents=100, vip_discount_cents=0, at=NOW)

    def test_money_invariant_violation_is_detected(self, pending: Booking) -> None:
        pending.total_cents += 1
        with pytest.raises(DomainError):
            pending.check_money_invariant()
