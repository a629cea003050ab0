"""
Slot Capacity Store Interface

Owns availability slots and the inventory locks held against them. Every method
runs on the caller's unit of work, so it joins the caller's transaction.

Locking contract: lock_capacity takes the slot row lock; booking operations take
the booking row lock afterwards, never the other way round.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from src.service.booking.app.dto.capacity_check_result import (
    CapacityCheckResult,
    SlotCapacitySnapshot,
)
from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot
from src.service.booking.domain.entity.inventory_lock_entity import InventoryLock


class ISlotCapacityStore(ABC):
    @abstractmethod
    async def get_slot(self, *, slot_id: UUID) -> Optional[AvailabilitySlot]:
        pass

    @abstractmethod
    async def lock_capacity(
        self,
        *,
        slot_id: UUID,
        quantity: int,
        at: datetime,
        idempotency_key: Optional[str] = None,
    ) -> CapacityCheckResult:
        """
        Row-lock the slot, then compute remaining = capacity - held - quantity.

        Raises:
            NotFoundError: slot does not exist
            ConflictError: idempotency_key given and an identical unbound active lock
                is already pending on the slot
        """
        pass

    @abstractmethod
    async def create_lock(
        self,
        *,
        slot_id: UUID,
        booking_id: Optional[UUID],
        quantity: int,
        expires_at: datetime,
        at: datetime,
    ) -> InventoryLock:
        """Only valid after lock_capacity succeeded in the same transaction."""
        pass

    @abstractmethod
    async def release_lock(self, *, booking_id: UUID, at: datetime) -> Optional[InventoryLock]:
        """Set released_at on the booking's open lock. No-op if already released."""
        pass

    @abstractmethod
    async def consume_lock(self, *, booking_id: UUID, at: datetime) -> InventoryLock:
        """
        Set consumed_at on the booking's open lock.

        Raises:
            ConflictError: no open lock is bound to the booking
        """
        pass

    @abstractmethod
    async def release_locks_for_bookings(self, *, booking_ids: Sequence[UUID], at: datetime) -> int:
        pass

    @abstractmethod
    async def sweep_expired_locks(self, *, cutoff: datetime, batch_size: int) -> int:
        """Release up to batch_size orphan locks (unbound, unconsumed) expired before cutoff."""
        pass

    @abstractmethod
    async def get_capacity_snapshot(self, *, slot_id: UUID, at: datetime) -> SlotCapacitySnapshot:
        pass
