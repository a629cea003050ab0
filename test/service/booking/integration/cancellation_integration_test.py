"""
Integration tests for the cancellation orchestrator

The payments gateway is a recording fake; bookings, locks and payments are real rows.
"""

import asyncio
from datetime import timedelta
from typing import Optional
from uuid import UUID

import pytest

from src.platform.exception.exceptions import (
    ConflictError,
    PaymentsGatewayError,
    RefundWindowExceededError,
)
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.confirm_pending_booking_use_case import (
    ConfirmPendingBookingUseCase,
)
from src.service.booking.app.command.create_pending_booking_use_case import (
    CreatePendingBookingUseCase,
)
from src.service.booking.app.dto.payment_record import Refund
from src.service.booking.app.interface.i_payments_gateway import IPaymentsGateway
from src.service.booking.app.query.get_slot_availability_use_case import (
    GetSlotAvailabilityUseCase,
)
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import BookingStatus


class FakePaymentsGateway(IPaymentsGateway):
    def __init__(
        self,
        *,
        refund_error: Optional[Exception] = None,
        void_error: Optional[Exception] = None,
        latency_seconds: float = 0,
    ) -> None:
        self.refund_error = refund_error
        self.latency_seconds = latency_seconds
        self.void_error = void_error
        self.refunds: list[UUID] = []
        self.voids: list[UUID] = []

    async def create_refund(
        self,
        *,
        payment_id: UUID,
        reason: str,
        requester_id: UUID,
        check_48h_window: bool = True,
    ) -> Refund:
        await asyncio.sleep(self.latency_seconds)
        if self.refund_error:
            raise self.refund_error
        self.refunds.append(payment_id)
        return Refund(id=f're_{len(self.refunds)}', amount_cents=10_000)

    async def cancel_payment(self, *, payment_id: UUID, requester_id: UUID) -> None:
        if self.void_error:
            raise self.void_error
        self.voids.append(payment_id)


@pytest.fixture
def create_pending(uow_factory, notifier) -> CreatePendingBookingUseCase:
    return CreatePendingBookingUseCase(
        uow_factory=uow_factory, notifier=notifier, pending_ttl_minutes=15, default_currency='USD'
    )


@pytest.fixture
def availability(uow_factory) -> GetSlotAvailabilityUseCase:
    return GetSlotAvailabilityUseCase(uow_factory=uow_factory)


def _cancel(uow_factory, notifier, gateway: IPaymentsGateway) -> CancelBookingUseCase:
    return CancelBookingUseCase(
        uow_factory=uow_factory,
        notifier=notifier,
        payments_gateway=gateway,
        check_48h_window=True,
    )


async def _confirmed_booking(create_pending, uow_factory, notifier, slot, user_id, t0):
    created = await create_pending.execute(user_id=user_id, slot_id=slot.id, adults=2, at=t0)
    await ConfirmPendingBookingUseCase(uow_factory=uow_factory, notifier=notifier).execute(
        booking_id=created.booking_id, at=t0
    )
    return created


@pytest.mark.integration
class TestCancelBooking:
    @pytest.mark.asyncio
    async def test_paid_booking_is_refunded_and_seats_return(
        self, create_pending, availability, uow_factory, notifier, seed, user_id, t0
    ) -> None:
        # Given: a confirmed, paid booking holding 2 of 4 seats
        slot = await seed.slot(capacity=4)
        created = await _confirmed_booking(
            create_pending, uow_factory, notifier, slot, user_id, t0
        )
        payment = await seed.payment(booking_id=created.booking_id, status='paid')
        gateway = FakePaymentsGateway()
        assert (await availability.execute(slot_id=slot.id, at=t0)).remaining == 2

        # When
        result = await _cancel(uow_factory, notifier, gateway).execute(
            booking_id=created.booking_id,
            requester_id=user_id,
            reason='family emergency',
            at=t0 + timedelta(hours=1),
        )

        # Then
        assert gateway.refunds == [payment.id]
        assert result.refund_issued is True
        assert result.refund_amount_cents == 10_000
        booking_row = await seed.get_booking_row(created.booking_id)
        assert booking_row.status == BookingStatus.CANCELLED.value
        assert booking_row.cancel_reason == 'family emergency'
        assert (await availability.execute(slot_id=slot.id, at=t0)).remaining == 4
        event = notifier.published[-1]
        assert event.event_type == BookingLifecycleEventType.CANCELLED
        assert event.refund_amount_cents == 10_000

    @pytest.mark.asyncio
    async def test_refund_failure_leaves_booking_confirmed(
        self, create_pending, availability, uow_factory, notifier, seed, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=4)
        created = await _confirmed_booking(
            create_pending, uow_factory, notifier, slot, user_id, t0
        )
        await seed.payment(booking_id=created.booking_id, status='paid')
        gateway = FakePaymentsGateway(refund_error=RefundWindowExceededError())

        with pytest.raises(RefundWindowExceededError):
            await _cancel(uow_factory, notifier, gateway).execute(
                booking_id=created.booking_id, requester_id=user_id, at=t0
            )

        booking_row = await seed.get_booking_row(created.booking_id)
        assert booking_row.status == BookingStatus.CONFIRMED.value
        assert (await availability.execute(slot_id=slot.id, at=t0)).remaining == 2

    @pytest.mark.asyncio
    async def test_void_failure_still_releases_pending_hold(
        self, create_pending, availability, uow_factory, notifier, seed, user_id, t0
    ) -> None:
        slot = await seed.slot(capacity=4)
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=3, at=t0
        )
        await seed.payment(booking_id=created.booking_id, status='authorized')
        gateway = FakePaymentsGateway(void_error=PaymentsGatewayError('gateway timeout'))

        result = await _cancel(uow_factory, notifier, gateway).execute(
            booking_id=created.booking_id, requester_id=user_id, at=t0
        )

        assert result.booking.status == BookingStatus.CANCELLED
        assert result.payment_voided is False
        lock_row = await seed.get_lock_row(created.lock_id)
        assert lock_row.released_at is not None
        assert (await availability.execute(slot_id=slot.id, at=t0)).remaining == 4

    @pytest.mark.asyncio
    async def test_pending_authorization_is_voided(
        self, create_pending, uow_factory, notifier, seed, user_id, t0
    ) -> None:
        slot = await seed.slot()
        created = await create_pending.execute(
            user_id=user_id, slot_id=slot.id, adults=1, at=t0
        )
        payment = await seed.payment(booking_id=created.booking_id, status='pending')
        gateway = FakePaymentsGateway()

        result = await _cancel(uow_factory, notifier, gateway).execute(
            booking_id=created.booking_id, requester_id=user_id, at=t0
        )

        assert gateway.voids == [payment.id]
        assert gateway.refunds == []
        assert result.payment_voided is True

    @pytest.mark.asyncio
    async def test_concurrent_cancels_refund_once(
        self, create_pending, availability, uow_factory, notifier, seed, user_id, t0
    ) -> None:
        # Given: a paid booking and a gateway slow enough for both cancels to overlap
        slot = await seed.slot(capacity=4)
        created = await _confirmed_booking(
            create_pending, uow_factory, notifier, slot, user_id, t0
        )
        payment = await seed.payment(booking_id=created.booking_id, status='paid')
        gateway = FakePaymentsGateway(latency_seconds=0.05)
        cancel = _cancel(uow_factory, notifier, gateway)

        # When
        results = await asyncio.gather(
            cancel.execute(booking_id=created.booking_id, requester_id=user_id, at=t0),
            cancel.execute(booking_id=created.booking_id, requester_id=user_id, at=t0),
            return_exceptions=True,
        )

        # Then: one cancel refunds, the other sees the booking already cancelled
        assert gateway.refunds == [payment.id]
        refunded = [r for r in results if not isinstance(r, BaseException)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(refunded) == 1 and refunded[0].refund_issued is True
        assert len(conflicts) == 1
        booking_row = await seed.get_booking_row(created.booking_id)
        assert booking_row.status == BookingStatus.CANCELLED.value
        assert (await availability.execute(slot_id=slot.id, at=t0)).remaining == 4
