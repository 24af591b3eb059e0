"""Implementing agency model."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ppdo.domain.search.types import EntityType, IndexUpdate
from ppdo.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    optional_str,
)


class ImplementingAgency(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Office or external agency that implements projects."""

    __tablename__ = "implementing_agencies"

    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    agency_type: Mapped[str] = mapped_column(String(50), default="internal", nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<ImplementingAgency {self.code}>"

    def to_index_update(self) -> IndexUpdate:
        return IndexUpdate(
            entity_type=EntityType.AGENCY,
            entity_id=str(self.id),
            primary_text=self.full_name,
            secondary_text=self.code,
            department_id=optional_str(self.department_id),
            status="active" if self.is_active else "inactive",
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
