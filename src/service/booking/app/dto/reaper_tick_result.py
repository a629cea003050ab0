from typing import List

import attrs

from src.service.booking.domain.entity.booking_entity import Booking


@attrs.define(frozen=True)
class ReaperTickResult:
    expired: List[Booking] = attrs.field(factory=list)
    swept_locks: int = 0
    duration_seconds: float = 0.0

    @property
    def expired_count(self) -> int:
        return len(self.expired)
