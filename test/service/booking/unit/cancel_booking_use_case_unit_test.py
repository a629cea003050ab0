"""
Unit tests for CancelBookingUseCase (the cancellation orchestrator)

Test Focus:
1. Paid bookings are refunded before the status changes
2. A refund failure propagates and nothing is written
3. A void failure is logged only; the booking is still cancelled
4. Terminal bookings and foreign requesters are rejected before any gateway call
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import attrs
import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PaymentsGatewayError,
    RefundWindowExceededError,
)
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.dto.payment_record import PaymentRecord, Refund
from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot
from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus
from src.service.booking.domain.enum.payment_status import PaymentStatus


NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeUnitOfWork:
    def __init__(self, booking, payment) -> None:
        self.booking_command_repo = MagicMock()
        self.booking_command_repo.get_by_id_for_update = AsyncMock(return_value=booking)
        self.booking_command_repo.update = AsyncMock(side_effect=lambda *, booking: booking)
        self.payment_query_repo = MagicMock()
        self.payment_query_repo.get_latest_for_booking = AsyncMock(return_value=payment)
        self.slot_capacity_store = MagicMock()
        self.slot_capacity_store.release_lock = AsyncMock()
        self.commit = AsyncMock()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None


def _booking(status: BookingStatus = BookingStatus.CONFIRMED) -> Booking:
    slot = AvailabilitySlot(
        id=uuid7(),
        experience_id=uuid7(),
        start_time=NOW + timedelta(days=3),
        end_time=NOW + timedelta(days=3, hours=2),
        capacity=10,
        price_per_adult_cents=10_000,
        price_per_child_cents=5_000,
        commission_per_adult_cents=2_000,
        commission_per_child_cents=1_000,
    )
    booking = Booking.create(
        user_id=uuid7(),
        slot=slot,
        adults=1,
        children=0,
        currency='USD',
        expires_at=NOW + timedelta(minutes=15),
        created_at=NOW,
    )
    return attrs.evolve(booking, status=status)


def _payment(booking: Booking, status: PaymentStatus) -> PaymentRecord:
    return PaymentRecord(
        id=uuid7(),
        booking_id=booking.id,
        status=status,
        amount_cents=booking.total_cents,
        currency='USD',
    )


def _use_case(uow: FakeUnitOfWork, gateway: AsyncMock) -> tuple[CancelBookingUseCase, AsyncMock]:
    notifier = AsyncMock()
    use_case = CancelBookingUseCase(
        uow_factory=lambda: uow,
        notifier=notifier,
        payments_gateway=gateway,
        check_48h_window=True,
    )
    return use_case, notifier


@pytest.mark.unit
class TestCancelBookingUseCase:
    @pytest.mark.asyncio
    async def test_paid_booking_is_refunded_then_cancelled(self) -> None:
        # Given: a confirmed booking with a paid payment
        booking = _booking()
        payment = _payment(booking, PaymentStatus.PAID)
        uow = FakeUnitOfWork(booking, payment)
        gateway = AsyncMock()
        gateway.create_refund.return_value = Refund(id='re_1', amount_cents=10_000)
        use_case, notifier = _use_case(uow, gateway)

        # When
        result = await use_case.execute(
            booking_id=booking.id, requester_id=booking.user_id, reason='weather', at=NOW
        )

        # Then: refunded, cancelled, and seats returned by leaving `confirmed`
        uow.booking_command_repo.get_by_id_for_update.assert_awaited_once_with(
            booking_id=booking.id
        )
        gateway.create_refund.assert_awaited_once()
        assert gateway.create_refund.await_args.kwargs['payment_id'] == payment.id
        assert gateway.create_refund.await_args.kwargs['check_48h_window'] is True
        gateway.cancel_payment.assert_not_awaited()
        assert result.refund_issued is True
        assert result.refund_id == 're_1'
        assert result.booking.status == BookingStatus.CANCELLED
        assert result.booking.cancel_reason == 'weather'
        uow.slot_capacity_store.release_lock.assert_not_awaited()
        uow.commit.assert_awaited_once()
        notifier.publish.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refund_failure_propagates_without_writes(self) -> None:
        booking = _booking()
        uow = FakeUnitOfWork(booking, _payment(booking, PaymentStatus.PAID))
        gateway = AsyncMock()
        gateway.create_refund.side_effect = RefundWindowExceededError()
        use_case, notifier = _use_case(uow, gateway)

        with pytest.raises(RefundWindowExceededError):
            await use_case.execute(booking_id=booking.id, requester_id=booking.user_id, at=NOW)

        uow.booking_command_repo.update.assert_not_awaited()
        uow.commit.assert_not_awaited()
        notifier.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_void_failure_still_cancels_and_releases(self) -> None:
        # Given: a pending booking whose authorization cannot be voided
        booking = _booking(BookingStatus.PENDING)
        uow = FakeUnitOfWork(booking, _payment(booking, PaymentStatus.AUTHORIZED))
        gateway = AsyncMock()
        gateway.cancel_payment.side_effect = PaymentsGatewayError('gateway down')
        use_case, _ = _use_case(uow, gateway)

        # When
        result = await use_case.execute(
            booking_id=booking.id, requester_id=booking.user_id, at=NOW
        )

        # Then
        assert result.payment_voided is False
        assert result.refund_issued is False
        assert result.booking.status == BookingStatus.CANCELLED
        uow.slot_capacity_store.release_lock.assert_awaited_once_with(
            booking_id=booking.id, at=NOW
        )
        uow.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_payment_skips_gateway(self) -> None:
        booking = _booking(BookingStatus.PENDING)
        uow = FakeUnitOfWork(booking, None)
        gateway = AsyncMock()
        use_case, _ = _use_case(uow, gateway)

        result = await use_case.execute(
            booking_id=booking.id, requester_id=booking.user_id, at=NOW
        )

        assert result.booking.status == BookingStatus.CANCELLED
        gateway.create_refund.assert_not_awaited()
        gateway.cancel_payment.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'status', [BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.EXPIRED]
    )
    async def test_terminal_booking_is_conflict(self, status: BookingStatus) -> None:
        booking = _booking(status)
        uow = FakeUnitOfWork(booking, _payment(booking, PaymentStatus.PAID))
        gateway = AsyncMock()
        use_case, _ = _use_case(uow, gateway)

        with pytest.raises(ConflictError):
            await use_case.execute(booking_id=booking.id, requester_id=booking.user_id, at=NOW)
        gateway.create_refund.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_cannot_cancel(self) -> None:
        booking = _booking()
        uow = FakeUnitOfWork(booking, None)
        use_case, _ = _use_case(uow, AsyncMock())

        with pytest.raises(ForbiddenError):
            await use_case.execute(booking_id=booking.id, requester_id=uuid7(), at=NOW)

    @pytest.mark.asyncio
    async def test_missing_booking_is_not_found(self) -> None:
        uow = FakeUnitOfWork(None, None)
        use_case, _ = _use_case(uow, AsyncMock())

        with pytest.raises(NotFoundError):
            await use_case.execute(booking_id=uuid7(), requester_id=uuid7(), at=NOW)
