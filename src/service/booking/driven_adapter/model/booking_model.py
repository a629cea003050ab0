from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base, UtcDateTime


class BookingModel(Base):
    __tablename__ = 'bookings'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)  # UUID7
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    experience_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey('experiences.id'), nullable=False)
    slot_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey('availability_slots.id'), nullable=False, index=True
    )
    adults: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tax_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    commission_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    resort_net_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    vip_discount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default='USD')
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='pending')
    expires_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    cancel_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    agent_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    referral_code_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey('referral_codes.id'), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            'total_cents = commission_cents + resort_net_cents', name='ck_bookings_money_split'
        ),
        CheckConstraint('adults + children > 0', name='ck_bookings_party_size'),
        Index('ix_bookings_status_expires_at', 'status', 'expires_at'),
    )
