from uuid import UUID

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class ExperienceModel(Base):
    """Read-only here; experiences are curated by the catalogue side."""

    __tablename__ = 'experiences'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    resort_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    category_slug: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default='')
