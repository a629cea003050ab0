from datetime import datetime
from typing import Optional

import attrs

from src.service.booking.domain.entity.vip_subscription_entity import VipSubscription


@attrs.define(frozen=True)
class VipStatus:
    is_vip: bool
    subscription: Optional[VipSubscription] = None
    remaining_days: Optional[int] = None

    @classmethod
    def of(cls, *, subscription: Optional[VipSubscription], at: datetime) -> 'VipStatus':
        if subscription is None or not subscription.is_active(at=at):
            return cls(is_vip=False)
        return cls(
            is_vip=True,
            subscription=subscription,
            remaining_days=subscription.remaining_days(at=at),
        )
