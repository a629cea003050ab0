from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base, UtcDateTime


class InventoryLockModel(Base):
    __tablename__ = 'inventory_locks'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)  # UUID7
    slot_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey('availability_slots.id'), nullable=False
    )
    booking_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    consumed_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    released_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_inventory_locks_quantity'),
        CheckConstraint(
            'consumed_at IS NULL OR released_at IS NULL',
            name='ck_inventory_locks_single_terminal_marker',
        ),
        Index('ix_inventory_locks_slot_open', 'slot_id', 'released_at', 'consumed_at'),
        Index('ix_inventory_locks_expires_at', 'expires_at'),
    )
