"""Capacity check result DTO."""

from uuid import UUID

import attrs

from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot


@attrs.define(frozen=True)
class CapacityCheckResult:
    """
    Outcome of reserving remaining capacity on a row-locked slot.

    `remaining` is what would be left after the requested quantity, so it is
    negative when the slot cannot hold the request. Nothing is written by the
    check itself; the caller decides whether to abort.
    """

    slot: AvailabilitySlot
    held: int
    remaining: int

    @property
    def has_enough_capacity(self) -> bool:
        return self.remaining >= 0


@attrs.define(frozen=True)
class SlotCapacitySnapshot:
    slot_id: UUID
    capacity: int
    held: int

    @property
    def remaining(self) -> int:
        return max(0, self.capacity - self.held)
