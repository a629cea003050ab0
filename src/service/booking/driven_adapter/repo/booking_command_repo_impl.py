"""
Booking Command Repository Implementation (SQLAlchemy)

Runs on the unit of work session. Status changes are decided by the Booking
entity; this repository only loads, locks and writes rows back.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus
from src.service.booking.driven_adapter.model.booking_model import BookingModel


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(model: BookingModel) -> Booking:
        return Booking(
            id=model.id,
            user_id=model.user_id,
            experience_id=model.experience_id,
            slot_id=model.slot_id,
            adults=model.adults,
            children=model.children,
            subtotal_cents=model.subtotal_cents,
            tax_cents=model.tax_cents,
            commission_cents=model.commission_cents,
            resort_net_cents=model.resort_net_cents,
            total_cents=model.total_cents,
            currency=model.currency,
            status=BookingStatus(model.status),
            vip_discount_cents=model.vip_discount_cents,
            expires_at=model.expires_at,
            cancel_reason=model.cancel_reason,
            idempotency_key=model.idempotency_key,
            agent_id=model.agent_id,
            referral_code_id=model.referral_code_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _write_back(model: BookingModel, booking: Booking) -> None:
        model.status = booking.status.value
        model.commission_cents = booking.commission_cents
        model.total_cents = booking.total_cents
        model.vip_discount_cents = booking.vip_discount_cents
        model.expires_at = booking.expires_at
        model.cancel_reason = booking.cancel_reason
        model.agent_id = booking.agent_id
        model.referral_code_id = booking.referral_code_id
        if booking.updated_at is not None:
            model.updated_at = booking.updated_at

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        model = await self.session.get(BookingModel, booking_id)
        return self._to_entity(model) if model else None

    @Logger.io
    async def get_by_id_for_update(self, *, booking_id: UUID) -> Optional[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    @Logger.io
    async def exists_by_idempotency_key(self, *, idempotency_key: str) -> bool:
        booking_id = await self.session.scalar(
            select(BookingModel.id).where(BookingModel.idempotency_key == idempotency_key)
        )
        return booking_id is not None

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        self.session.add(
            BookingModel(
                id=booking.id,
                user_id=booking.user_id,
                experience_id=booking.experience_id,
                slot_id=booking.slot_id,
                adults=booking.adults,
                children=booking.children,
                subtotal_cents=booking.subtotal_cents,
                tax_cents=booking.tax_cents,
                commission_cents=booking.commission_cents,
                resort_net_cents=booking.resort_net_cents,
                vip_discount_cents=booking.vip_discount_cents,
                total_cents=booking.total_cents,
                currency=booking.currency,
                status=booking.status.value,
                expires_at=booking.expires_at,
                cancel_reason=booking.cancel_reason,
                idempotency_key=booking.idempotency_key,
                agent_id=booking.agent_id,
                referral_code_id=booking.referral_code_id,
                created_at=booking.created_at,
                updated_at=booking.updated_at,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f'Booking with idempotency key {booking.idempotency_key} already exists'
            ) from e
        return booking

    @Logger.io
    async def update(self, *, booking: Booking) -> Booking:
        model = await self.session.get(BookingModel, booking.id)
        if not model:
            raise ConflictError(f'Booking {booking.id} disappeared during update')
        self._write_back(model, booking)
        await self.session.flush()
        return booking

    @Logger.io
    async def expire_due_pending(self, *, at: datetime, limit: int) -> List[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.status == BookingStatus.PENDING.value,
                BookingModel.expires_at < at,
            )
            .order_by(BookingModel.expires_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        expired: List[Booking] = []
        for model in result.scalars().all():
            booking = self._to_entity(model).expire(at=at)
            self._write_back(model, booking)
            expired.append(booking)

        if expired:
            await self.session.flush()
        return expired
