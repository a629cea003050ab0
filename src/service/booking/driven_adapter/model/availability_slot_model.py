from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base, UtcDateTime


class AvailabilitySlotModel(Base):
    __tablename__ = 'availability_slots'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    experience_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey('experiences.id'), nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_adult_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    price_per_child_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    commission_per_adult_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    commission_per_child_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint('capacity >= 0', name='ck_availability_slots_capacity'),
        CheckConstraint('end_time > start_time', name='ck_availability_slots_window'),
    )
