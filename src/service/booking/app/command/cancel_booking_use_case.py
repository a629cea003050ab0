"""
Cancel Booking Use Case (cancellation orchestrator)

Decides the cancellation path from recorded state only, never by asking the gateway:

1. cancelled / completed / expired / refunded → Conflict
2. latest payment `paid`               → gateway refund; a failure propagates unchanged
                                          and nothing about the booking is modified
3. latest payment `pending`/`authorized` → gateway void; a failure is logged only
4. one transaction: status=cancelled + cancel_reason; a pending booking also
   releases its lock, a confirmed one returns its seats by leaving `confirmed`

Everything runs in one transaction that holds the booking row lock, gateway call included,
so concurrent cancels of one booking are serialized and refund at most once.
"""

from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.cancellation_result import CancellationResult
from src.service.booking.app.dto.payment_record import PaymentRecord, Refund
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.app.interface.i_payments_gateway import IPaymentsGateway
from src.service.booking.app.service.lifecycle_event_emitter import emit_after_commit
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEvent,
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus
from src.service.booking.domain.enum.payment_status import PaymentStatus


CANCELLABLE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
DEFAULT_REFUND_REASON = 'booking_cancelled'


class CancelBookingUseCase:
    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        notifier: INotifier,
        payments_gateway: IPaymentsGateway,
        check_48h_window: bool = settings.REFUND_CHECK_48H_WINDOW,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.payments_gateway = payments_gateway
        self.check_48h_window = check_48h_window
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
        payments_gateway: IPaymentsGateway = Depends(Provide[Container.payments_gateway]),
    ) -> Self:
        return cls(uow_factory=uow_factory, notifier=notifier, payments_gateway=payments_gateway)

    @staticmethod
    def _ensure_cancellable(booking: Booking) -> None:
        if booking.status == BookingStatus.CANCELLED:
            raise ConflictError('Booking is already cancelled')
        if booking.status == BookingStatus.COMPLETED:
            raise ConflictError('Cannot cancel a completed booking')
        if booking.status not in CANCELLABLE_STATUSES:
            raise ConflictError(f'Cannot cancel a booking that is {booking.status}')

    @Logger.io
    async def execute(
        self,
        *,
        booking_id: UUID,
        requester_id: UUID,
        reason: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> CancellationResult:
        at = at or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.cancel_booking', attributes={'booking.id': str(booking_id)}
        ) as span:
            async with self.uow_factory() as uow:
                # Row lock held until commit, gateway call included
                booking = await uow.booking_command_repo.get_by_id_for_update(
                    booking_id=booking_id
                )
                if not booking:
                    raise NotFoundError(f'Booking {booking_id} not found')
                if booking.user_id != requester_id:
                    raise ForbiddenError('Only the booking owner can cancel this booking')
                self._ensure_cancellable(booking)
                payment = await uow.payment_query_repo.get_latest_for_booking(
                    booking_id=booking_id
                )

                refund: Optional[Refund] = None
                payment_voided = False
                if payment is not None and payment.status == PaymentStatus.PAID:
                    # A refund failure propagates and the transaction rolls back untouched
                    refund = await self.payments_gateway.create_refund(
                        payment_id=payment.id,
                        reason=reason or DEFAULT_REFUND_REASON,
                        requester_id=requester_id,
                        check_48h_window=self.check_48h_window,
                    )
                elif payment is not None and payment.status.is_voidable:
                    payment_voided = await self._void_payment(
                        payment=payment, requester_id=requester_id
                    )
                span.set_attribute('cancel.refund_issued', refund is not None)

                was_pending = booking.status == BookingStatus.PENDING
                cancelled = booking.cancel(reason=reason, at=at)
                await uow.booking_command_repo.update(booking=cancelled)
                if was_pending:
                    await uow.slot_capacity_store.release_lock(booking_id=booking_id, at=at)
                await uow.commit()

            Logger.base.info(
                f'🚫 [CANCEL] booking={booking_id} from={booking.status} '
                f'refund={refund.amount_cents if refund else None}'
            )
            await emit_after_commit(
                notifier=self.notifier,
                event=BookingLifecycleEvent.from_booking(
                    event_type=BookingLifecycleEventType.CANCELLED,
                    booking=cancelled,
                    occurred_at=at,
                    refund_amount_cents=refund.amount_cents if refund else None,
                ),
            )
            return CancellationResult(
                booking=cancelled,
                refund_issued=refund is not None,
                refund_id=refund.id if refund else None,
                refund_amount_cents=refund.amount_cents if refund else None,
                payment_voided=payment_voided,
            )

    async def _void_payment(self, *, payment: PaymentRecord, requester_id: UUID) -> bool:
        try:
            await self.payments_gateway.cancel_payment(
                payment_id=payment.id, requester_id=requester_id
            )
        except Exception as e:
            # Void failures never block the inventory release
            Logger.base.warning(
                f'⚠️ [CANCEL] Void of payment {payment.id} failed: {type(e).__name__}: {e}'
            )
            return False
        return True
