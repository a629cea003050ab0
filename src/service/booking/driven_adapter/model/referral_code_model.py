from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base, UtcDateTime


class ReferralCodeModel(Base):
    __tablename__ = 'referral_codes'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    referral_type: Mapped[str] = mapped_column(String(20), nullable=False, default='standard')
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False, default='none')
    discount_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    max_discount_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    min_purchase_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    allow_stacking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    usage_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    owner_agent_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )

    restrictions: Mapped[List['ReferralCodeRestrictionModel']] = relationship(
        back_populates='referral_code', lazy='selectin', cascade='all, delete-orphan'
    )


class ReferralCodeRestrictionModel(Base):
    __tablename__ = 'referral_code_restrictions'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    referral_code_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey('referral_codes.id', ondelete='CASCADE'), nullable=False, index=True
    )
    restriction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    experience_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)
    category_slug: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    resort_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    referral_code: Mapped[ReferralCodeModel] = relationship(back_populates='restrictions')
