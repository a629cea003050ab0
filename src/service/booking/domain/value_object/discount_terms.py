from typing import Optional

import attrs

from src.service.booking.domain.enum.discount_type import DiscountType


BASIS_POINTS = 10_000


@attrs.frozen
class DiscountTerms:
    """How much a discount source takes off a purchase."""

    discount_type: DiscountType
    discount_value: int
    # None means uncapped; 0 caps the discount at nothing
    max_discount_cents: Optional[int] = attrs.field(
        default=None,
        validator=attrs.validators.optional(attrs.validators.ge(0)),
    )

    def compute_amount(self, total_cents: int) -> int:
        if total_cents <= 0:
            return 0
        match self.discount_type:
            case DiscountType.PERCENTAGE:
                amount = total_cents * self.discount_value // BASIS_POINTS
            case DiscountType.FIXED:
                amount = self.discount_value
            case _:
                amount = 0
        if self.max_discount_cents is not None and amount > self.max_discount_cents:
            amount = self.max_discount_cents
        return max(0, amount)
