"""
Slot Capacity Store Implementation (SQLAlchemy)

Held capacity of a slot is the sum of
- active locks: not released, not consumed, not yet expired
- consumed locks whose booking is still confirmed or completed
and remaining = capacity - held.

Row locks:
- lock_capacity takes `SELECT ... FOR UPDATE` on the slot row before reading held capacity
- sweep_expired_locks claims rows with SKIP LOCKED so several sweepers never collide
"""

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.capacity_check_result import (
    CapacityCheckResult,
    SlotCapacitySnapshot,
)
from src.service.booking.app.interface.i_slot_capacity_store import ISlotCapacityStore
from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot
from src.service.booking.domain.entity.booking_entity import CAPACITY_HOLDING_STATUSES
from src.service.booking.domain.entity.inventory_lock_entity import InventoryLock
from src.service.booking.driven_adapter.model.availability_slot_model import (
    AvailabilitySlotModel,
)
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.inventory_lock_model import InventoryLockModel


def _open_lock_filter():
    return (
        InventoryLockModel.released_at.is_(None),
        InventoryLockModel.consumed_at.is_(None),
    )


class SlotCapacityStoreImpl(ISlotCapacityStore):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_slot_entity(model: AvailabilitySlotModel) -> AvailabilitySlot:
        return AvailabilitySlot(
            id=model.id,
            experience_id=model.experience_id,
            start_time=model.start_time,
            end_time=model.end_time,
            capacity=model.capacity,
            price_per_adult_cents=model.price_per_adult_cents,
            price_per_child_cents=model.price_per_child_cents,
            commission_per_adult_cents=model.commission_per_adult_cents,
            commission_per_child_cents=model.commission_per_child_cents,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_lock_entity(model: InventoryLockModel) -> InventoryLock:
        return InventoryLock(
            id=model.id,
            slot_id=model.slot_id,
            quantity=model.quantity,
            expires_at=model.expires_at,
            booking_id=model.booking_id,
            consumed_at=model.consumed_at,
            released_at=model.released_at,
            created_at=model.created_at,
        )

    async def _held_capacity(self, *, slot_id: UUID, at: datetime) -> int:
        active = await self.session.scalar(
            select(func.coalesce(func.sum(InventoryLockModel.quantity), 0)).where(
                InventoryLockModel.slot_id == slot_id,
                *_open_lock_filter(),
                InventoryLockModel.expires_at > at,
            )
        )
        realized = await self.session.scalar(
            select(func.coalesce(func.sum(InventoryLockModel.quantity), 0))
            .join(BookingModel, BookingModel.id == InventoryLockModel.booking_id)
            .where(
                InventoryLockModel.slot_id == slot_id,
                InventoryLockModel.consumed_at.is_not(None),
                BookingModel.status.in_([s.value for s in CAPACITY_HOLDING_STATUSES]),
            )
        )
        return int(active or 0) + int(realized or 0)

    async def _get_open_lock_for_update(self, *, booking_id: UUID) -> Optional[InventoryLockModel]:
        result = await self.session.execute(
            select(InventoryLockModel)
            .where(InventoryLockModel.booking_id == booking_id, *_open_lock_filter())
            .order_by(InventoryLockModel.created_at.desc())
            .limit(1)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @Logger.io
    async def get_slot(self, *, slot_id: UUID) -> Optional[AvailabilitySlot]:
        model = await self.session.get(AvailabilitySlotModel, slot_id)
        return self._to_slot_entity(model) if model else None

    @Logger.io
    async def lock_capacity(
        self,
        *,
        slot_id: UUID,
        quantity: int,
        at: datetime,
        idempotency_key: Optional[str] = None,
    ) -> CapacityCheckResult:
        result = await self.session.execute(
            select(AvailabilitySlotModel)
            .where(AvailabilitySlotModel.id == slot_id)
            .with_for_update()
        )
        slot_model = result.scalar_one_or_none()
        if not slot_model:
            raise NotFoundError(f'Availability slot {slot_id} not found')

        if idempotency_key:
            duplicate = await self.session.scalar(
                select(InventoryLockModel.id)
                .where(
                    InventoryLockModel.slot_id == slot_id,
                    InventoryLockModel.booking_id.is_(None),
                    InventoryLockModel.quantity == quantity,
                    *_open_lock_filter(),
                    InventoryLockModel.expires_at > at,
                )
                .limit(1)
            )
            if duplicate is not None:
                raise ConflictError(f'A pending reservation of {quantity} is already in flight')

        slot = self._to_slot_entity(slot_model)
        held = await self._held_capacity(slot_id=slot_id, at=at)
        return CapacityCheckResult(slot=slot, held=held, remaining=slot.capacity - held - quantity)

    @Logger.io
    async def create_lock(
        self,
        *,
        slot_id: UUID,
        booking_id: Optional[UUID],
        quantity: int,
        expires_at: datetime,
        at: datetime,
    ) -> InventoryLock:
        lock = InventoryLock.create(
            slot_id=slot_id,
            quantity=quantity,
            expires_at=expires_at,
            booking_id=booking_id,
            created_at=at,
        )
        self.session.add(
            InventoryLockModel(
                id=lock.id,
                slot_id=lock.slot_id,
                booking_id=lock.booking_id,
                quantity=lock.quantity,
                expires_at=lock.expires_at,
                created_at=lock.created_at,
            )
        )
        await self.session.flush()
        return lock

    @Logger.io
    async def release_lock(self, *, booking_id: UUID, at: datetime) -> Optional[InventoryLock]:
        model = await self._get_open_lock_for_update(booking_id=booking_id)
        if not model:
            # Already released (or never existed): nothing to give back
            return None

        lock = self._to_lock_entity(model).release(at=at)
        model.released_at = lock.released_at
        await self.session.flush()
        return lock

    @Logger.io
    async def consume_lock(self, *, booking_id: UUID, at: datetime) -> InventoryLock:
        model = await self._get_open_lock_for_update(booking_id=booking_id)
        if not model:
            raise ConflictError(f'No open inventory lock for booking {booking_id}')

        lock = self._to_lock_entity(model).consume(at=at)
        model.consumed_at = lock.consumed_at
        await self.session.flush()
        return lock

    @Logger.io
    async def release_locks_for_bookings(self, *, booking_ids: Sequence[UUID], at: datetime) -> int:
        if not booking_ids:
            return 0
        result = await self.session.execute(
            update(InventoryLockModel)
            .where(InventoryLockModel.booking_id.in_(list(booking_ids)), *_open_lock_filter())
            .values(released_at=at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    @Logger.io
    async def sweep_expired_locks(self, *, cutoff: datetime, batch_size: int) -> int:
        result = await self.session.execute(
            select(InventoryLockModel.id)
            .where(
                InventoryLockModel.booking_id.is_(None),
                *_open_lock_filter(),
                InventoryLockModel.expires_at < cutoff,
            )
            .order_by(InventoryLockModel.expires_at)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        lock_ids = list(result.scalars().all())
        if not lock_ids:
            return 0

        released = await self.session.execute(
            update(InventoryLockModel)
            .where(InventoryLockModel.id.in_(lock_ids), *_open_lock_filter())
            .values(released_at=cutoff)
            .execution_options(synchronize_session=False)
        )
        return released.rowcount or 0

    @Logger.io
    async def get_capacity_snapshot(self, *, slot_id: UUID, at: datetime) -> SlotCapacitySnapshot:
        slot_model = await self.session.get(AvailabilitySlotModel, slot_id)
        if not slot_model:
            raise NotFoundError(f'Availability slot {slot_id} not found')
        held = await self._held_capacity(slot_id=slot_id, at=at)
        return SlotCapacitySnapshot(slot_id=slot_id, capacity=slot_model.capacity, held=held)
