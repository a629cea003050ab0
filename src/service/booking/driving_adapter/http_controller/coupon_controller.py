from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.activate_vip_coupon_use_case import ActivateVipCouponUseCase
from src.service.booking.app.query.calculate_discounts_use_case import CalculateDiscountsUseCase
from src.service.booking.app.query.coupon_query_use_case import CouponQueryUseCase
from src.service.booking.app.query.get_display_price_use_case import GetDisplayPriceUseCase
from src.service.booking.app.query.validate_discount_code_use_case import (
    ValidateDiscountCodeUseCase,
)
from src.service.booking.driving_adapter.http_controller.current_user import get_current_user_id
from src.service.booking.driving_adapter.http_controller.schema.coupon_schema import (
    ActivateVipRequest,
    AppliedCouponResponse,
    CalculateDiscountsRequest,
    DiscountBreakdownResponse,
    DisplayPriceResponse,
    UserCouponResponse,
    ValidateCodeRequest,
    VipStatusResponse,
    VipSubscriptionResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/calculate')
@Logger.io
async def calculate_discounts(
    request: CalculateDiscountsRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: CalculateDiscountsUseCase = Depends(CalculateDiscountsUseCase.depends),
) -> DiscountBreakdownResponse:
    with tracer.start_as_current_span('controller.calculate_discounts') as span:
        span.set_attribute('user_id', str(user_id))
        span.set_attribute('total_cents', request.total_cents)

        breakdown = await use_case.execute(
            user_id=user_id,
            total_cents=request.total_cents,
            coupon_codes=request.coupon_codes,
            referral_code=request.referral_code,
            experience_id=request.experience_id,
        )
        return DiscountBreakdownResponse.from_breakdown(breakdown)


@router.post('/validate')
@Logger.io
async def validate_coupon(
    request: ValidateCodeRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: ValidateDiscountCodeUseCase = Depends(ValidateDiscountCodeUseCase.depends),
) -> AppliedCouponResponse:
    applied = await use_case.validate_coupon(
        user_id=user_id, code=request.code, total_cents=request.total_cents
    )
    return AppliedCouponResponse.from_applied(applied)


@router.post('/referral/validate')
@Logger.io
async def validate_referral_code(
    request: ValidateCodeRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: ValidateDiscountCodeUseCase = Depends(ValidateDiscountCodeUseCase.depends),
) -> AppliedCouponResponse:
    applied = await use_case.validate_referral_code(
        user_id=user_id,
        code=request.code,
        total_cents=request.total_cents,
        experience_id=request.experience_id,
    )
    return AppliedCouponResponse.from_applied(applied)


@router.get('/available', response_model=List[UserCouponResponse])
@Logger.io
async def list_available_coupons(
    min_purchase_cents: Optional[int] = Query(default=None, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    use_case: CouponQueryUseCase = Depends(CouponQueryUseCase.depends),
) -> List[UserCouponResponse]:
    coupons = await use_case.list_available(user_id=user_id, min_purchase_cents=min_purchase_cents)
    return [UserCouponResponse.from_entity(c) for c in coupons]


@router.get('/vip')
@Logger.io
async def get_vip_status(
    user_id: UUID = Depends(get_current_user_id),
    use_case: CouponQueryUseCase = Depends(CouponQueryUseCase.depends),
) -> VipStatusResponse:
    vip_status = await use_case.get_vip_status(user_id=user_id)
    return VipStatusResponse.from_status(vip_status)


@router.post('/vip/activate', status_code=status.HTTP_201_CREATED)
@Logger.io
async def activate_vip(
    request: ActivateVipRequest,
    user_id: UUID = Depends(get_current_user_id),
    use_case: ActivateVipCouponUseCase = Depends(ActivateVipCouponUseCase.depends),
) -> VipSubscriptionResponse:
    with tracer.start_as_current_span('controller.activate_vip') as span:
        span.set_attribute('user_id', str(user_id))
        subscription = await use_case.execute(user_id=user_id, coupon_code=request.coupon_code)
        return VipSubscriptionResponse.from_entity(subscription)


@router.get('/price')
@Logger.io
async def get_display_price(
    amount_cents: int = Query(ge=0),
    currency: str = Query(min_length=3, max_length=3),
    source_currency: str = Query(default='USD', min_length=3, max_length=3),
    use_case: GetDisplayPriceUseCase = Depends(GetDisplayPriceUseCase.depends),
) -> DisplayPriceResponse:
    display_amount = await use_case.execute(
        amount_cents=amount_cents, target_currency=currency, source_currency=source_currency
    )
    return DisplayPriceResponse(
        amount_cents=amount_cents,
        source_currency=source_currency.upper(),
        target_currency=currency.upper(),
        display_amount=display_amount,
    )
