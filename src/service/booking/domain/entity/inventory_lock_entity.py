from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import ConflictError, InvalidInputError


@attrs.define
class InventoryLock:
    """
    A time-bounded hold of `quantity` seats on one slot.

    Terminal markers: consumed_at (seats permanently realized by a confirmed booking)
    and released_at (seats given back). At most one of them is ever set, and once
    set it never changes.
    """

    id: UUID
    slot_id: UUID
    quantity: int
    expires_at: datetime
    booking_id: Optional[UUID] = None
    consumed_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        slot_id: UUID,
        quantity: int,
        expires_at: datetime,
        booking_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> 'InventoryLock':
        if quantity <= 0:
            raise InvalidInputError('Lock quantity must be greater than 0')
        return cls(
            id=uuid7(),
            slot_id=slot_id,
            quantity=quantity,
            expires_at=expires_at,
            booking_id=booking_id,
            created_at=created_at,
        )

    @property
    def is_terminal(self) -> bool:
        return self.consumed_at is not None or self.released_at is not None

    @property
    def is_orphan(self) -> bool:
        return self.booking_id is None and self.consumed_at is None

    def is_active(self, *, at: datetime) -> bool:
        return not self.is_terminal and at < self.expires_at

    def consume(self, *, at: datetime) -> 'InventoryLock':
        if self.released_at is not None:
            raise ConflictError('Inventory lock was already released')
        if self.consumed_at is not None:
            raise ConflictError('Inventory lock was already consumed')
        return attrs.evolve(self, consumed_at=at)

    def release(self, *, at: datetime) -> 'InventoryLock':
        if self.released_at is not None:
            return self
        if self.consumed_at is not None:
            raise ConflictError('Inventory lock was already consumed')
        return attrs.evolve(self, released_at=at)
