from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base, UtcDateTime


ACTIVE_VIP_PREDICATE = "status = 'active'"


class VipSubscriptionModel(Base):
    __tablename__ = 'vip_subscriptions'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    coupon_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey('user_coupons.id'), nullable=True
    )
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='active')
    activated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    # At most one active subscription per user
    __table_args__ = (
        Index(
            'uq_vip_subscriptions_user_active',
            'user_id',
            unique=True,
            postgresql_where=text(ACTIVE_VIP_PREDICATE),
            sqlite_where=text(ACTIVE_VIP_PREDICATE),
        ),
    )
