from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.booking.app.dto.cancellation_result import CancellationResult
from src.service.booking.app.dto.capacity_check_result import SlotCapacitySnapshot
from src.service.booking.app.dto.pending_booking_result import PendingBookingResult
from src.service.booking.domain.entity.booking_entity import Booking


class PendingBookingCreateRequest(BaseModel):
    slot_id: UUID
    adults: int = Field(ge=0)
    children: int = Field(default=0, ge=0)
    idempotency_key: Optional[str] = Field(default=None, max_length=255)
    referral_code: Optional[str] = Field(default=None, max_length=50)
    tax_cents: int = Field(default=0, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    model_config = {
        'json_schema_extra': {
            'example': {
                'slot_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'adults': 2,
                'children': 1,
                'idempotency_key': 'checkout-7f3a',
                'referral_code': 'SUNSET10',
            }
        }
    }


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'status': 'pending',
                'adults': 2,
                'children': 1,
                'subtotal_cents': 25000,
                'commission_cents': 5000,
                'resort_net_cents': 20000,
                'total_cents': 25000,
                'currency': 'USD',
                'expires_at': '2025-01-10T10:45:00Z',
            }
        },
    }

    id: UUID
    user_id: UUID
    experience_id: UUID
    slot_id: UUID
    status: str
    adults: int
    children: int
    subtotal_cents: int
    tax_cents: int
    commission_cents: int
    resort_net_cents: int
    vip_discount_cents: int
    total_cents: int
    currency: str
    expires_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    referral_code_id: Optional[UUID] = None
    agent_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, booking: Booking) -> 'BookingResponse':
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            experience_id=booking.experience_id,
            slot_id=booking.slot_id,
            status=booking.status.value,
            adults=booking.adults,
            children=booking.children,
            subtotal_cents=booking.subtotal_cents,
            tax_cents=booking.tax_cents,
            commission_cents=booking.commission_cents,
            resort_net_cents=booking.resort_net_cents,
            vip_discount_cents=booking.vip_discount_cents,
            total_cents=booking.total_cents,
            currency=booking.currency,
            expires_at=booking.expires_at,
            cancel_reason=booking.cancel_reason,
            referral_code_id=booking.referral_code_id,
            agent_id=booking.agent_id,
            created_at=booking.created_at,
        )


class PendingBookingResponse(BaseModel):
    booking: BookingResponse
    lock_id: UUID
    expires_at: datetime
    remaining_capacity: int

    @classmethod
    def from_result(cls, result: PendingBookingResult) -> 'PendingBookingResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking),
            lock_id=result.lock_id,
            expires_at=result.expires_at,
            remaining_capacity=result.remaining_capacity,
        )


class CancelBookingRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)

    model_config = {'json_schema_extra': {'example': {'reason': 'Change of plans'}}}


class CancelBookingResponse(BaseModel):
    booking: BookingResponse
    refund_issued: bool
    refund_id: Optional[str] = None
    refund_amount_cents: Optional[int] = None
    payment_voided: bool

    @classmethod
    def from_result(cls, result: CancellationResult) -> 'CancelBookingResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking),
            refund_issued=result.refund_issued,
            refund_id=result.refund_id,
            refund_amount_cents=result.refund_amount_cents,
            payment_voided=result.payment_voided,
        )


class ApplyCouponsRequest(BaseModel):
    coupon_codes: List[str] = []

    model_config = {'json_schema_extra': {'example': {'coupon_codes': ['WELCOME5']}}}


class DiscountsUsedResponse(BaseModel):
    booking_id: UUID
    coupons_used: int


class SlotAvailabilityResponse(BaseModel):
    slot_id: UUID
    capacity: int
    held: int
    remaining: int

    @classmethod
    def from_snapshot(cls, snapshot: SlotCapacitySnapshot) -> 'SlotAvailabilityResponse':
        return cls(
            slot_id=snapshot.slot_id,
            capacity=snapshot.capacity,
            held=snapshot.held,
            remaining=snapshot.remaining,
        )


class ExpiryRunResponse(BaseModel):
    expired_booking_ids: List[UUID]
