from datetime import datetime, timezone
from typing import Optional, Self, Sequence
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.discount_engine import calculate_discounts
from src.service.booking.domain.value_object.discount_breakdown import DiscountBreakdown


class CalculateDiscountsUseCase:
    """Load the discount data for a purchase and run the stacking rules; writes nothing."""

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
        user_id: UUID,
        total_cents: int,
        coupon_codes: Sequence[str] = (),
        referral_code: Optional[str] = None,
        experience_id: Optional[UUID] = None,
        at: Optional[datetime] = None,
    ) -> DiscountBreakdown:
        at = at or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span('use_case.calculate_discounts'):
            async with self.uow_factory() as uow:
                repo = uow.discount_query_repo
                vip = await repo.get_active_vip(user_id=user_id, at=at)
                referral = None
                used_by_user = False
                if referral_code:
                    referral = await repo.get_referral_code(code=referral_code)
                if referral is not None:
                    used_by_user = await repo.has_user_used_referral_code(
                        user_id=user_id, referral_code_id=referral.id
                    )
                coupons = await repo.get_user_coupons_by_codes(user_id=user_id, codes=coupon_codes)
                experience = None
                if experience_id:
                    experience = await repo.get_experience(experience_id=experience_id)

            return calculate_discounts(
                total_cents=total_cents,
                at=at,
                vip=vip,
                referral_code=referral_code,
                referral=referral,
                referral_used_by_user=used_by_user,
                coupon_codes=coupon_codes,
                coupons_by_code=coupons,
                experience=experience,
            )
