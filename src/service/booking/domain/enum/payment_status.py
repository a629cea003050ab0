from enum import StrEnum


class PaymentStatus(StrEnum):
    """Payment state as recorded by the payments collaborator (read-only here)."""

    PENDING = 'pending'
    AUTHORIZED = 'authorized'
    PAID = 'paid'
    FAILED = 'failed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'

    @property
    def is_voidable(self) -> bool:
        return self in (PaymentStatus.PENDING, PaymentStatus.AUTHORIZED)
