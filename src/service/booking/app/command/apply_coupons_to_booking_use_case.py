from datetime import datetime, timezone
from typing import Optional, Self, Sequence
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import ConflictError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.applied_coupons_result import AppliedCouponsResult
from src.service.booking.domain.discount_engine import calculate_discounts
from src.service.booking.domain.entity.booking_entity import BookingStatus


class ApplyCouponsToBookingUseCase:
    """
    Recompute discounts for a pending booking and write the new money fields.

    The base is the undiscounted commission (subtotal - resort_net), so applying
    the same codes twice gives the same result. Previously recorded coupon and
    referral applications are cleared first, then the new ones are recorded for
    permanent consumption once payment is confirmed.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(
        self,
        *,
        booking_id: UUID,
        user_id: UUID,
        coupon_codes: Sequence[str] = (),
        at: Optional[datetime] = None,
    ) -> AppliedCouponsResult:
        at = at or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.apply_coupons_to_booking', attributes={'booking.id': str(booking_id)}
        ):
            async with self.uow_factory() as uow:
                booking = await uow.booking_command_repo.get_by_id_for_update(
                    booking_id=booking_id
                )
                if not booking:
                    raise NotFoundError(f'Booking {booking_id} not found')
                if booking.user_id != user_id:
                    raise ForbiddenError('Only the booking owner can apply coupons')
                if booking.status != BookingStatus.PENDING:
                    raise ConflictError('Coupons can only be applied to a pending booking')

                query_repo = uow.discount_query_repo
                vip = await query_repo.get_active_vip(user_id=user_id, at=at)
                referral = (
                    await query_repo.get_referral_code_by_id(
                        referral_code_id=booking.referral_code_id
                    )
                    if booking.referral_code_id
                    else None
                )
                coupons = await query_repo.get_user_coupons_by_codes(
                    user_id=user_id, codes=coupon_codes
                )
                experience = await query_repo.get_experience(experience_id=booking.experience_id)

                breakdown = calculate_discounts(
                    total_cents=booking.base_commission_cents,
                    at=at,
                    vip=vip,
                    referral_code=referral.code if referral else None,
                    referral=referral,
                    referral_prevalidated=True,
                    coupon_codes=coupon_codes,
                    coupons_by_code=coupons,
                    experience=experience,
                )
                discounted = booking.apply_discounts(
                    total_discount_cents=breakdown.total_discount,
                    vip_discount_cents=breakdown.vip_discount,
                    at=at,
                )

                command_repo = uow.discount_command_repo
                await command_repo.clear_booking_discounts(booking_id=booking_id)
                for applied in breakdown.applied_user_coupons:
                    await command_repo.record_booking_coupon(
                        booking_id=booking_id,
                        user_coupon_id=applied.source.coupon_id,
                        discount_applied_cents=applied.discount_applied_cents,
                    )
                if breakdown.applied_referral is not None:
                    await command_repo.record_booking_referral_code(
                        booking_id=booking_id,
                        referral_code_id=breakdown.applied_referral.source.referral_code_id,
                        discount_applied_cents=breakdown.applied_referral.discount_applied_cents,
                    )
                await uow.booking_command_repo.update(booking=discounted)
                await uow.commit()

            Logger.base.info(
                f'🏷️ [APPLY-COUPONS] booking={booking_id} discount={breakdown.total_discount} '
                f'commission={discounted.commission_cents} total={discounted.total_cents}'
            )
            return AppliedCouponsResult(booking=discounted, breakdown=breakdown)
