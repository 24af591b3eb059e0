"""SQLAlchemy ORM models."""

from ppdo.infrastructure.database.models.agency import ImplementingAgency
from ppdo.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from ppdo.infrastructure.database.models.budget import BudgetItem, Project, ProjectBreakdown
from ppdo.infrastructure.database.models.department import Department
from ppdo.infrastructure.database.models.funds import (
    FundMixin,
    SpecialEducationFund,
    SpecialHealthFund,
    TrustFund,
    TwentyPercentDF,
)
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry, SearchIndexToken
from ppdo.infrastructure.database.models.user import User, UserRole, UserStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "UUIDPrimaryKeyMixin",
    "Department",
    "User",
    "UserRole",
    "UserStatus",
    "ImplementingAgency",
    "BudgetItem",
    "Project",
    "ProjectBreakdown",
    "FundMixin",
    "TrustFund",
    "SpecialEducationFund",
    "SpecialHealthFund",
    "TwentyPercentDF",
    "SearchIndexEntry",
    "SearchIndexToken",
]
