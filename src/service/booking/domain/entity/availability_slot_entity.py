from datetime import datetime
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import InvalidInputError
from src.service.booking.domain.value_object.price_quote import PriceQuote


def _non_negative(_instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value < 0:
        raise InvalidInputError(f'{attribute.name} must be >= 0')


@attrs.define
class AvailabilitySlot:
    id: UUID
    experience_id: UUID
    start_time: datetime
    end_time: datetime
    capacity: int = attrs.field(validator=_non_negative)
    price_per_adult_cents: int = attrs.field(validator=_non_negative)
    price_per_child_cents: int = attrs.field(validator=_non_negative)
    commission_per_adult_cents: int = attrs.field(default=0, validator=_non_negative)
    commission_per_child_cents: int = attrs.field(default=0, validator=_non_negative)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def quote(self, *, adults: int, children: int) -> PriceQuote:
        subtotal = self.price_per_adult_cents * adults + self.price_per_child_cents * children
        commission = (
            self.commission_per_adult_cents * adults + self.commission_per_child_cents * children
        )
        if commission > subtotal:
            raise InvalidInputError('Slot commission exceeds its price')
        return PriceQuote(
            subtotal_cents=subtotal,
            commission_cents=commission,
            resort_net_cents=subtotal - commission,
        )
