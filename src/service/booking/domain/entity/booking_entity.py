from datetime import datetime
from enum import StrEnum
from typing import Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import ConflictError, DomainError, InvalidInputError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.availability_slot_entity import AvailabilitySlot


class BookingStatus(StrEnum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    EXPIRED = 'expired'
    REFUNDED = 'refunded'


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.EXPIRED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.REFUNDED}
    ),
}

# Statuses whose consumed lock still holds seats on the slot
CAPACITY_HOLDING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)

PENDING_EXPIRED_REASON = 'pending_expired'


@attrs.define
class Booking:
    id: UUID
    user_id: UUID
    experience_id: UUID
    slot_id: UUID
    adults: int
    children: int
    subtotal_cents: int
    tax_cents: int
    commission_cents: int
    resort_net_cents: int
    total_cents: int
    currency: str
    status: BookingStatus = BookingStatus.PENDING
    vip_discount_cents: int = 0
    expires_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    idempotency_key: Optional[str] = None
    agent_id: Optional[UUID] = None
    referral_code_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        user_id: UUID,
        slot: AvailabilitySlot,
        adults: int,
        children: int,
        currency: str,
        expires_at: datetime,
        created_at: datetime,
        tax_cents: int = 0,
        idempotency_key: Optional[str] = None,
    ) -> 'Booking':
        validate_party_size(adults=adults, children=children)
        if tax_cents < 0:
            raise InvalidInputError('tax_cents must be >= 0')
        if expires_at <= created_at:
            raise InvalidInputError('expires_at must be after created_at')

        quote = slot.quote(adults=adults, children=children)
        if tax_cents > quote.subtotal_cents:
            raise InvalidInputError('tax_cents cannot exceed the subtotal')

        booking = cls(
            id=uuid7(),
            user_id=user_id,
            experience_id=slot.experience_id,
            slot_id=slot.id,
            adults=adults,
            children=children,
            subtotal_cents=quote.subtotal_cents,
            tax_cents=tax_cents,
            commission_cents=quote.commission_cents,
            resort_net_cents=quote.resort_net_cents,
            total_cents=quote.total_cents,
            currency=currency.upper(),
            status=BookingStatus.PENDING,
            expires_at=expires_at,
            idempotency_key=idempotency_key,
            created_at=created_at,
            updated_at=created_at,
        )
        booking.check_money_invariant()
        return booking

    @property
    def quantity(self) -> int:
        return self.adults + self.children

    @property
    def base_commission_cents(self) -> int:
        """Commission before any discount; resort_net never changes after creation."""
        return self.subtotal_cents - self.resort_net_cents

    def check_money_invariant(self) -> None:
        if self.total_cents != self.commission_cents + self.resort_net_cents:
            raise DomainError(
                f'Booking {self.id}: total_cents {self.total_cents} != commission '
                f'{self.commission_cents} + resort_net {self.resort_net_cents}',
                500,
            )
        if min(self.commission_cents, self.resort_net_cents, self.vip_discount_cents) < 0:
            raise DomainError(f'Booking {self.id}: money fields must be non-negative', 500)
        if self.commission_cents > self.base_commission_cents:
            raise DomainError(f'Booking {self.id}: commission exceeds its undiscounted base', 500)

    def is_hold_expired(self, *, at: datetime) -> bool:
        return (
            self.status == BookingStatus.PENDING
            and self.expires_at is not None
            and self.expires_at <= at
        )

    def _transition(self, target: BookingStatus, **changes) -> 'Booking':
        if target not in ALLOWED_TRANSITIONS.get(self.status, frozenset()):
            raise ConflictError(f'Cannot change booking status from {self.status} to {target}')
        return attrs.evolve(self, status=target, **changes)

    def confirm(self, *, at: datetime) -> 'Booking':
        if self.is_hold_expired(at=at):
            raise ConflictError('Booking hold has expired')
        return self._transition(BookingStatus.CONFIRMED, expires_at=None, updated_at=at)

    def cancel(self, *, reason: Optional[str], at: datetime) -> 'Booking':
        return self._transition(
            BookingStatus.CANCELLED,
            cancel_reason=reason or self.cancel_reason,
            expires_at=None,
            updated_at=at,
        )

    def expire(self, *, at: datetime) -> 'Booking':
        return self._transition(
            BookingStatus.EXPIRED,
            cancel_reason=self.cancel_reason or PENDING_EXPIRED_REASON,
            updated_at=at,
        )

    def complete(self, *, at: datetime) -> 'Booking':
        return self._transition(BookingStatus.COMPLETED, updated_at=at)

    def mark_refunded(self, *, at: datetime) -> 'Booking':
        return self._transition(BookingStatus.REFUNDED, updated_at=at)

    def apply_discounts(
        self, *, total_discount_cents: int, vip_discount_cents: int, at: datetime
    ) -> 'Booking':
        if self.status != BookingStatus.PENDING:
            raise ConflictError('Discounts can only be applied to a pending booking')
        if self.is_hold_expired(at=at):
            raise ConflictError('Booking hold has expired')

        commission = max(0, self.base_commission_cents - total_discount_cents)
        booking = attrs.evolve(
            self,
            commission_cents=commission,
            total_cents=commission + self.resort_net_cents,
            vip_discount_cents=vip_discount_cents,
            updated_at=at,
        )
        booking.check_money_invariant()
        return booking

    def attribute_referral(self, *, referral_code_id: UUID, agent_id: Optional[UUID]) -> 'Booking':
        return attrs.evolve(self, referral_code_id=referral_code_id, agent_id=agent_id)


def validate_party_size(*, adults: int, children: int) -> None:
    if adults < 0 or children < 0:
        raise InvalidInputError('adults and children must be >= 0')
    if adults + children <= 0:
        raise InvalidInputError('At least one participant is required')
