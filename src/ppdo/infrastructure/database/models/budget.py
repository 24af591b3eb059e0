"""Budget item, project and project breakdown models.

The three levels mirror the navigation of the project dashboard:
budget item (list page) -> project (detail page) -> breakdown (breakdown page).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ppdo.domain.search.types import EntityType, IndexUpdate
from ppdo.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    optional_str,
)


class BudgetItem(Base, UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """Annual budget line item."""

    __tablename__ = "budget_items"

    particulars: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(50), default="ongoing", nullable=False)
    total_budget_allocated: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_index_update(self) -> IndexUpdate:
        return IndexUpdate(
            entity_type=EntityType.BUDGET_ITEM,
            entity_id=str(self.id),
            primary_text=self.particulars,
            secondary_text=self.description,
            department_id=optional_str(self.department_id),
            status=self.status,
            year=self.year,
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
            is_deleted=self.is_deleted,
        )


class Project(Base, UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """Project under a budget item."""

    __tablename__ = "projects"

    budget_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("budget_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    particulars: Mapped[str] = mapped_column(String(500), nullable=False)
    implementing_office: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(50), default="ongoing", nullable=False)
    total_budget_allocated: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_index_update(self) -> IndexUpdate:
        parent = optional_str(self.budget_item_id)
        return IndexUpdate(
            entity_type=EntityType.PROJECT_ITEM,
            entity_id=str(self.id),
            primary_text=self.particulars,
            secondary_text=self.implementing_office,
            department_id=optional_str(self.department_id),
            status=self.status,
            year=self.year,
            parent_id=parent,
            parent_slug=parent,
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
            is_deleted=self.is_deleted,
        )


class ProjectBreakdown(Base, UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """Location-level breakdown of a project."""

    __tablename__ = "project_breakdowns"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Denormalized from the parent project for nested URLs.
    budget_item_id: Mapped[UUID | None] = mapped_column(nullable=True)
    project_name: Mapped[str] = mapped_column(String(500), nullable=False)
    implementing_office: Mapped[str | None] = mapped_column(String(255), nullable=True)
    municipality: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="ongoing", nullable=False)
    department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_index_update(self) -> IndexUpdate:
        if self.budget_item_id is not None:
            parent_slug = f"{self.budget_item_id}/{self.project_id}"
        else:
            parent_slug = str(self.project_id)
        return IndexUpdate(
            entity_type=EntityType.PROJECT_BREAKDOWN,
            entity_id=str(self.id),
            primary_text=self.project_name,
            secondary_text=self.implementing_office,
            department_id=optional_str(self.department_id),
            status=self.status,
            year=self.year,
            parent_id=str(self.project_id),
            parent_slug=parent_slug,
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
            is_deleted=self.is_deleted,
        )
