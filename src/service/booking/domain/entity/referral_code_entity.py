from datetime import datetime
from typing import List, Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import InvalidInputError
from src.service.booking.domain.enum.discount_type import (
    DiscountType,
    ReferralType,
    RestrictionType,
)
from src.service.booking.domain.value_object.discount_terms import DiscountTerms
from src.service.booking.domain.value_object.experience_ref import ExperienceRef


@attrs.define
class CodeRestriction:
    restriction_type: RestrictionType
    experience_id: Optional[UUID] = None
    category_slug: Optional[str] = None
    resort_id: Optional[UUID] = None

    def matches(self, experience: ExperienceRef) -> bool:
        match self.restriction_type:
            case RestrictionType.EXPERIENCE:
                return self.experience_id == experience.id
            case RestrictionType.CATEGORY:
                return (
                    self.category_slug is not None
                    and self.category_slug == experience.category_slug
                )
            case RestrictionType.RESORT:
                return self.resort_id == experience.resort_id
        return False


@attrs.define
class ReferralCode:
    id: UUID
    code: str
    referral_type: str = ReferralType.STANDARD
    discount_type: DiscountType = DiscountType.NONE
    discount_value: int = 0
    max_discount_cents: Optional[int] = None
    min_purchase_cents: int = 0
    allow_stacking: bool = True
    is_active: bool = True
    usage_limit: Optional[int] = None
    usage_count: int = 0
    expires_at: Optional[datetime] = None
    owner_agent_id: Optional[UUID] = None
    restrictions: List[CodeRestriction] = attrs.field(factory=list)

    @property
    def is_exclusive(self) -> bool:
        """Influencer-style codes cannot be combined with VIP or user coupons."""
        return self.referral_type != ReferralType.STANDARD

    @property
    def terms(self) -> DiscountTerms:
        return DiscountTerms(
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            max_discount_cents=self.max_discount_cents,
        )

    @property
    def is_usage_exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def matches_restrictions(self, experience: Optional[ExperienceRef]) -> bool:
        """OR semantics: one matching restriction is enough; no restrictions means any purchase."""
        if not self.restrictions:
            return True
        if experience is None:
            return False
        return any(restriction.matches(experience) for restriction in self.restrictions)

    def ensure_usable(
        self,
        *,
        total_cents: int,
        experience: Optional[ExperienceRef],
        at: datetime,
    ) -> None:
        if not self.is_active:
            raise InvalidInputError(f'Referral code {self.code} is inactive')
        if self.is_usage_exhausted:
            raise InvalidInputError(f'Referral code {self.code} has reached its usage limit')
        if self.expires_at is not None and self.expires_at < at:
            raise InvalidInputError(f'Referral code {self.code} has expired')
        if self.min_purchase_cents > total_cents:
            raise InvalidInputError(
                f'Referral code {self.code} requires a minimum purchase of '
                f'{self.min_purchase_cents} cents'
            )
        if not self.matches_restrictions(experience):
            raise InvalidInputError(f'Referral code {self.code} is not valid for this experience')
