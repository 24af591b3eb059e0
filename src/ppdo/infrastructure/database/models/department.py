"""Department model."""

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


class Department(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Organizational unit. Departments may nest one level under a parent."""

    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    head_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Department {self.code}>"

    def to_index_update(self) -> IndexUpdate:
        return IndexUpdate(
            entity_type=EntityType.DEPARTMENT,
            entity_id=str(self.id),
            primary_text=self.name,
            secondary_text=self.code,
            department_id=str(self.id),
            status="active" if self.is_active else "inactive",
            parent_id=optional_str(self.parent_department_id),
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
