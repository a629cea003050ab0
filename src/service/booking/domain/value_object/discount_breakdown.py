from typing import List

import attrs

from src.service.booking.domain.value_object.discount_source import (
    DiscountSource,
    ReferralCodeDiscount,
    UserCouponDiscount,
    VipDiscount,
    describe,
)


@attrs.frozen
class AppliedDiscount:
    source: DiscountSource
    discount_applied_cents: int

    @property
    def code(self) -> str:
        return describe(self.source)[0]

    @property
    def type(self) -> str:
        return describe(self.source)[1]


@attrs.frozen
class DiscountBreakdown:
    total_cents: int
    applied: tuple[AppliedDiscount, ...] = ()

    def _sum(self, kind: type) -> int:
        return sum(a.discount_applied_cents for a in self.applied if isinstance(a.source, kind))

    @property
    def vip_discount(self) -> int:
        return self._sum(VipDiscount)

    @property
    def referral_code_discount(self) -> int:
        return self._sum(ReferralCodeDiscount)

    @property
    def user_coupons_discount(self) -> int:
        return self._sum(UserCouponDiscount)

    @property
    def total_discount(self) -> int:
        return self.user_coupons_discount + self.referral_code_discount + self.vip_discount

    @property
    def final_total(self) -> int:
        return max(0, self.total_cents - self.total_discount)

    @property
    def applied_user_coupons(self) -> List[AppliedDiscount]:
        return [a for a in self.applied if isinstance(a.source, UserCouponDiscount)]

    @property
    def applied_referral(self) -> AppliedDiscount | None:
        return next((a for a in self.applied if isinstance(a.source, ReferralCodeDiscount)), None)

    def to_dict(self) -> dict:
        return {
            'user_coupons_discount': self.user_coupons_discount,
            'referral_code_discount': self.referral_code_discount,
            'vip_discount': self.vip_discount,
            'total_discount': self.total_discount,
            'final_total': self.final_total,
            'applied_coupons': [
                {'code': a.code, 'type': a.type, 'discount_applied': a.discount_applied_cents}
                for a in self.applied
            ],
        }
