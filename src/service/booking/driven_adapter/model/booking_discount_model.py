"""Junction tables recording which discount was applied to a booking, and how much."""

from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class BookingCouponModel(Base):
    __tablename__ = 'booking_coupons'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    booking_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey('bookings.id'), nullable=False)
    user_coupon_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey('user_coupons.id'), nullable=False
    )
    discount_applied_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint('booking_id', 'user_coupon_id', name='uq_booking_coupons_pair'),
    )


class BookingReferralCodeModel(Base):
    __tablename__ = 'booking_referral_codes'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    booking_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey('bookings.id'), nullable=False)
    referral_code_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey('referral_codes.id'), nullable=False
    )
    discount_applied_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint('booking_id', 'referral_code_id', name='uq_booking_referral_codes_pair'),
    )
