from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base, UtcDateTime


class UserCouponModel(Base):
    __tablename__ = 'user_coupons'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    coupon_type: Mapped[str] = mapped_column(String(30), nullable=False)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_discount_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    min_purchase_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default='USD')
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    vip_duration_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    used_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    used_booking_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (UniqueConstraint('user_id', 'code', name='uq_user_coupons_user_code'),)
