from datetime import datetime, timedelta, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError, InsufficientCapacityError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.pending_booking_result import PendingBookingResult
from src.service.booking.app.interface.i_notifier import INotifier
from src.service.booking.app.service.lifecycle_event_emitter import emit_after_commit
from src.service.booking.domain.discount_engine import resolve_referral
from src.service.booking.domain.domain_event.booking_lifecycle_event import (
    BookingLifecycleEvent,
    BookingLifecycleEventType,
)
from src.service.booking.domain.entity.booking_entity import Booking, validate_party_size


class CreatePendingBookingUseCase:
    """
    Reserve capacity on a slot and open a pending booking, all in one transaction.

    Flow:
    1. Reject a reused idempotency key
    2. Row-lock the slot and compute remaining capacity
    3. Build the booking (money split from the slot, expires_at = now + TTL)
    4. Resolve the optional referral code and count its usage atomically
    5. Insert the booking, then the inventory lock bound to it
    6. Commit, then publish booking.pending_created

    Any failure before commit rolls back everything: no booking without its lock,
    no lock without its booking.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        notifier: INotifier,
        pending_ttl_minutes: int = settings.BOOKING_PENDING_TTL_MINUTES,
        default_currency: str = settings.BOOKING_DEFAULT_CURRENCY,
    ) -> None:
        self.uow_factory = uow_factory
        self.notifier = notifier
        self.pending_ttl = timedelta(minutes=pending_ttl_minutes)
        self.default_currency = default_currency
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
        notifier: INotifier = Depends(Provide[Container.notifier]),
    ) -> Self:
        return cls(uow_factory=uow_factory, notifier=notifier)

    @Logger.io
    async def execute(
        self,
        *,
        user_id: UUID,
        slot_id: UUID,
        adults: int,
        children: int = 0,
        idempotency_key: Optional[str] = None,
        referral_code: Optional[str] = None,
        tax_cents: int = 0,
        currency: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> PendingBookingResult:
        at = at or datetime.now(timezone.utc)
        validate_party_size(adults=adults, children=children)
        quantity = adults + children

        with self.tracer.start_as_current_span(
            'use_case.create_pending_booking',
            attributes={'slot.id': str(slot_id), 'booking.quantity': quantity},
        ):
            async with self.uow_factory() as uow:
                if idempotency_key and await uow.booking_command_repo.exists_by_idempotency_key(
                    idempotency_key=idempotency_key
                ):
                    raise ConflictError(f'Idempotency key {idempotency_key} was already used')

                check = await uow.slot_capacity_store.lock_capacity(
                    slot_id=slot_id,
                    quantity=quantity,
                    at=at,
                    idempotency_key=idempotency_key,
                )
                if not check.has_enough_capacity:
                    metrics.record_capacity_rejection()
                    available = max(0, check.slot.capacity - check.held)
                    raise InsufficientCapacityError(
                        f'Slot {slot_id} has {available} seats left, {quantity} requested',
                        remaining=available,
                    )

                expires_at = at + self.pending_ttl
                booking = Booking.create(
                    user_id=user_id,
                    slot=check.slot,
                    adults=adults,
                    children=children,
                    currency=currency or self.default_currency,
                    expires_at=expires_at,
                    created_at=at,
                    tax_cents=tax_cents,
                    idempotency_key=idempotency_key,
                )
                if referral_code:
                    booking = await self._attribute_referral(
                        uow=uow, booking=booking, referral_code=referral_code, at=at
                    )

                booking = await uow.booking_command_repo.create(booking=booking)
                lock = await uow.slot_capacity_store.create_lock(
                    slot_id=slot_id,
                    booking_id=booking.id,
                    quantity=quantity,
                    expires_at=expires_at,
                    at=at,
                )
                await uow.commit()

            Logger.base.info(
                f'🎫 [CREATE-PENDING] booking={booking.id} slot={slot_id} qty={quantity} '
                f'remaining={check.remaining}'
            )
            await emit_after_commit(
                notifier=self.notifier,
                event=BookingLifecycleEvent.from_booking(
                    event_type=BookingLifecycleEventType.PENDING_CREATED,
                    booking=booking,
                    occurred_at=at,
                ),
            )
            return PendingBookingResult(
                booking=booking,
                lock_id=lock.id,
                expires_at=expires_at,
                remaining_capacity=check.remaining,
            )

    async def _attribute_referral(
        self, *, uow: AbstractUnitOfWork, booking: Booking, referral_code: str, at: datetime
    ) -> Booking:
        referral = await uow.discount_query_repo.get_referral_code(code=referral_code)
        experience = await uow.discount_query_repo.get_experience(
            experience_id=booking.experience_id
        )
        used_by_user = False
        if referral is not None:
            used_by_user = await uow.discount_query_repo.has_user_used_referral_code(
                user_id=booking.user_id, referral_code_id=referral.id
            )
        source = resolve_referral(
            code=referral_code,
            referral=referral,
            total_cents=booking.total_cents,
            experience=experience,
            at=at,
            used_by_user=used_by_user,
        )
        if not await uow.discount_command_repo.increment_referral_usage(
            referral_code_id=source.referral_code_id
        ):
            raise ConflictError(f'Referral code {source.code} has reached its usage limit')

        return booking.attribute_referral(
            referral_code_id=source.referral_code_id, agent_id=source.owner_agent_id
        )
