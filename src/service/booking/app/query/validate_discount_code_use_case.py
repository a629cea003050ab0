"""
Validate a single coupon or referral code against a purchase, without applying it.

Returns the discount the code would give on its own; stacking rules are not
evaluated here (see CalculateDiscountsUseCase).
"""

from datetime import datetime, timezone
from typing import Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.discount_engine import (
    apply_source,
    resolve_referral,
    resolve_user_coupon,
)
from src.service.booking.domain.value_object.discount_breakdown import AppliedDiscount


class ValidateDiscountCodeUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provide[Container.unit_of_work.provider]),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def validate_coupon(
        self,
        *,
        user_id: UUID,
        code: str,
        total_cents: int,
        at: Optional[datetime] = None,
    ) -> AppliedDiscount:
        at = at or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            coupon = await uow.discount_query_repo.get_user_coupon(user_id=user_id, code=code)

        source = resolve_user_coupon(code=code, coupon=coupon, total_cents=total_cents, at=at)
        return apply_source(source, total_cents)

    @Logger.io
    async def validate_referral_code(
        self,
        *,
        user_id: UUID,
        code: str,
        total_cents: int,
        experience_id: Optional[UUID] = None,
        at: Optional[datetime] = None,
    ) -> AppliedDiscount:
        at = at or datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            repo = uow.discount_query_repo
            referral = await repo.get_referral_code(code=code)
            used_by_user = False
            if referral is not None:
                used_by_user = await repo.has_user_used_referral_code(
                    user_id=user_id, referral_code_id=referral.id
                )
            experience = (
                await repo.get_experience(experience_id=experience_id) if experience_id else None
            )

        source = resolve_referral(
            code=code,
            referral=referral,
            total_cents=total_cents,
            experience=experience,
            at=at,
            used_by_user=used_by_user,
        )
        return apply_source(source, total_cents)
