from uuid import UUID

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.apply_coupons_to_booking_use_case import (
    ApplyCouponsToBookingUseCase,
)
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.cancel_pending_booking_use_case import (
    CancelPendingBookingUseCase,
)
from src.service.booking.app.command.complete_booking_use_case import CompleteBookingUseCase
from src.service.booking.app.command.confirm_pending_booking_use_case import (
    ConfirmPendingBookingUseCase,
)
from src.service.booking.app.command.create_pending_booking_use_case import (
    CreatePendingBookingUseCase,
)
from src.service.booking.app.command.mark_booking_discounts_used_use_case import (
    MarkBookingDiscountsUsedUseCase,
)
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.get_slot_availability_use_case import (
    GetSlotAvailabilityUseCase,
)
from src.service.booking.driving_adapter.http_controller.current_user import get_current_user_id
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    ApplyCouponsRequest,
    BookingResponse,
    CancelBookingRequest,
    CancelBookingResponse,
    DiscountsUsedResponse,
    PendingBookingCreateRequest,
    PendingBookingResponse,
    SlotAvailabilityResponse,
)
from src.service.booking.driving_adapter.http_controller.schema.coupon_schema import (
    DiscountBreakdownResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_pending_booking(
    request: PendingBookingCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: CreatePendingBookingUseCase = Depends(CreatePendingBookingUseCase.depends),
) -> PendingBookingResponse:
    with tracer.start_as_current_span('controller.create_pending_booking') as span:
        span.set_attribute('slot_id', str(request.slot_id))
        span.set_attribute('user_id', str(user_id))
        span.set_attribute('quantity', request.adults + request.children)

        result = await use_case.execute(
            user_id=user_id,
            slot_id=request.slot_id,
            adults=request.adults,
            children=request.children,
            idempotency_key=request.idempotency_key,
            referral_code=request.referral_code,
            tax_cents=request.tax_cents,
            currency=request.currency,
        )

        span.set_attribute('booking.id', str(result.booking_id))
        return PendingBookingResponse.from_result(result)


@router.get('/slot/{slot_id}/availability')
@Logger.io
async def get_slot_availability(
    slot_id: UUID,
    use_case: GetSlotAvailabilityUseCase = Depends(GetSlotAvailabilityUseCase.depends),
) -> SlotAvailabilityResponse:
    snapshot = await use_case.execute(slot_id=slot_id)
    return SlotAvailabilityResponse.from_snapshot(snapshot)


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.execute(booking_id=booking_id, user_id=user_id)
    return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/confirm')
@Logger.io
async def confirm_pending_booking(
    booking_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    use_case: ConfirmPendingBookingUseCase = Depends(ConfirmPendingBookingUseCase.depends),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.confirm_pending_booking') as span:
        span.set_attribute('booking.id', str(booking_id))
        booking = await use_case.execute(booking_id=booking_id, user_id=user_id)
        return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/cancel_pending')
@Logger.io
async def cancel_pending_booking(
    booking_id: UUID,
    request: CancelBookingRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: CancelPendingBookingUseCase = Depends(CancelPendingBookingUseCase.depends),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.cancel_pending_booking') as span:
        span.set_attribute('booking.id', str(booking_id))
        booking = await use_case.execute(
            booking_id=booking_id, reason=request.reason, user_id=user_id
        )
        return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/cancel')
@Logger.io
async def cancel_booking(
    booking_id: UUID,
    request: CancelBookingRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: CancelBookingUseCase = Depends(CancelBookingUseCase.depends),
) -> CancelBookingResponse:
    """Cancel with payment side effects: refund when paid, void when still open."""
    with tracer.start_as_current_span('controller.cancel_booking') as span:
        span.set_attribute('booking.id', str(booking_id))
        span.set_attribute('requester_id', str(user_id))

        result = await use_case.execute(
            booking_id=booking_id, requester_id=user_id, reason=request.reason
        )

        span.set_attribute('refund_issued', result.refund_issued)
        return CancelBookingResponse.from_result(result)


@router.post('/{booking_id}/coupons')
@Logger.io
async def apply_coupons(
    booking_id: UUID,
    request: ApplyCouponsRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: ApplyCouponsToBookingUseCase = Depends(ApplyCouponsToBookingUseCase.depends),
) -> DiscountBreakdownResponse:
    result = await use_case.execute(
        booking_id=booking_id, user_id=user_id, coupon_codes=request.coupon_codes
    )
    return DiscountBreakdownResponse.from_breakdown(result.breakdown)


@router.post('/{booking_id}/complete')
@Logger.io
async def complete_booking(
    booking_id: UUID,
    use_case: CompleteBookingUseCase = Depends(CompleteBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.execute(booking_id=booking_id)
    return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/discounts/mark_used')
@Logger.io
async def mark_discounts_used(
    booking_id: UUID,
    use_case: MarkBookingDiscountsUsedUseCase = Depends(MarkBookingDiscountsUsedUseCase.depends),
) -> DiscountsUsedResponse:
    coupons_used = await use_case.execute(booking_id=booking_id)
    return DiscountsUsedResponse(booking_id=booking_id, coupons_used=coupons_used)
