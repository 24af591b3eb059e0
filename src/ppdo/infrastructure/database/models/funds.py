"""Special fund models.

Trust funds, special education funds, special health funds and the 20%
development fund share one shape and differ only in table and entity type.
"""

from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from ppdo.domain.search.types import EntityType, IndexUpdate
from ppdo.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    optional_str,
)


class FundMixin(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """Columns and index mapping shared by every fund table."""

    entity_type: ClassVar[EntityType]

    project_title: Mapped[str] = mapped_column(String(500), nullable=False)
    office_in_charge: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="ongoing", nullable=False)
    received: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    utilized: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    @declared_attr
    def department_id(cls) -> Mapped[UUID | None]:
        return mapped_column(
            ForeignKey("departments.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        )

    def to_index_update(self) -> IndexUpdate:
        return IndexUpdate(
            entity_type=self.entity_type,
            entity_id=str(self.id),
            primary_text=self.project_title,
            secondary_text=self.office_in_charge,
            department_id=optional_str(self.department_id),
            status=self.status,
            year=self.year,
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
            is_deleted=self.is_deleted,
        )


class TrustFund(Base, FundMixin):
    __tablename__ = "trust_funds"
    entity_type = EntityType.TRUST_FUND


class SpecialEducationFund(Base, FundMixin):
    __tablename__ = "special_education_funds"
    entity_type = EntityType.SPECIAL_EDUCATION_FUND


class SpecialHealthFund(Base, FundMixin):
    __tablename__ = "special_health_funds"
    entity_type = EntityType.SPECIAL_HEALTH_FUND


class TwentyPercentDF(Base, FundMixin):
    """20% development fund allocation."""

    __tablename__ = "twenty_percent_df"
    entity_type = EntityType.TWENTY_PERCENT_DF
