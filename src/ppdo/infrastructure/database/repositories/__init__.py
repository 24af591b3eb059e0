"""Repository pattern implementations for database access."""

from ppdo.infrastructure.database.repositories.base import BaseRepository
from ppdo.infrastructure.database.repositories.budget import (
    BudgetItemRepository,
    FundRepository,
    ProjectBreakdownRepository,
    ProjectRepository,
)
from ppdo.infrastructure.database.repositories.organization import (
    DepartmentRepository,
    ImplementingAgencyRepository,
    UserRepository,
)
from ppdo.infrastructure.database.repositories.search_index import SearchIndexRepository

__all__ = [
    "BaseRepository",
    "BudgetItemRepository",
    "DepartmentRepository",
    "FundRepository",
    "ImplementingAgencyRepository",
    "ProjectBreakdownRepository",
    "ProjectRepository",
    "SearchIndexRepository",
    "UserRepository",
]
