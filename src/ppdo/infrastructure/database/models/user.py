"""User model."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ppdo.domain.search.types import EntityType, IndexUpdate
from ppdo.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    optional_str,
)


class UserRole(str, Enum):
    """Application roles."""

    SUPER_ADMIN = "super_admin"  # Full access across all departments
    ADMIN = "admin"  # Manages users and data
    USER = "user"  # Regular staff
    INSPECTOR = "inspector"  # Field inspections only


class UserStatus(str, Enum):
    """Account lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Application user.

    Accounts created through an external identity provider may not carry an
    email yet; such users are not searchable until they do.
    """

    __tablename__ = "users"

    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    name_extension: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        String(50),
        default=UserRole.USER,
        nullable=False,
    )
    status: Mapped[UserStatus] = mapped_column(
        String(50),
        default=UserStatus.ACTIVE,
        nullable=False,
    )
    department_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.email}>"

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name, self.name_extension]
        return " ".join(p.strip() for p in parts if p and p.strip())

    @property
    def is_searchable(self) -> bool:
        return bool(self.email)

    def to_index_update(self) -> IndexUpdate:
        return IndexUpdate(
            entity_type=EntityType.USER,
            entity_id=str(self.id),
            primary_text=self.full_name or self.email or "",
            secondary_text=self.email,
            department_id=optional_str(self.department_id),
            status=self.status.value if isinstance(self.status, UserStatus) else self.status,
            created_by=optional_str(self.created_by),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
