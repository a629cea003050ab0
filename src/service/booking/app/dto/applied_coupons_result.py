import attrs

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.value_object.discount_breakdown import DiscountBreakdown


@attrs.define(frozen=True)
class AppliedCouponsResult:
    booking: Booking
    breakdown: DiscountBreakdown
