"""Budget item, project and project breakdown services.

All three are soft-deleted: a deleted row keeps a tombstone in the search
index until the next reindex prunes it.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any
from uuid import UUID

from ppdo.domain.search.indexing import SearchIndexer
from ppdo.infrastructure.database.models.budget import BudgetItem, Project, ProjectBreakdown
from ppdo.infrastructure.database.repositories.budget import (
    BudgetItemRepository,
    ProjectBreakdownRepository,
    ProjectRepository,
)
from ppdo.shared.exceptions import ConflictError, NotFoundError, ValidationError
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

BUDGET_ITEM_FIELDS = frozenset(
    {"particulars", "description", "year", "status", "total_budget_allocated", "department_id"}
)
PROJECT_FIELDS = frozenset(
    {
        "particulars",
        "implementing_office",
        "year",
        "status",
        "total_budget_allocated",
        "department_id",
    }
)
BREAKDOWN_FIELDS = frozenset(
    {"project_name", "implementing_office", "municipality", "year", "status", "department_id"}
)


def apply_changes(entity: Any, changes: Mapping[str, Any], allowed: frozenset[str]) -> None:
    """Copy ``changes`` onto ``entity``, refusing fields outside ``allowed``."""
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(
            f"Cannot update field(s): {', '.join(unknown)}",
            {"fields": unknown},
        )
    for name, value in changes.items():
        setattr(entity, name, value)


class BudgetService:
    """Write path for the project dashboard hierarchy."""

    def __init__(
        self,
        budget_repo: BudgetItemRepository,
        project_repo: ProjectRepository,
        breakdown_repo: ProjectBreakdownRepository,
        indexer: SearchIndexer,
    ) -> None:
        self.budget_repo = budget_repo
        self.project_repo = project_repo
        self.breakdown_repo = breakdown_repo
        self.indexer = indexer

    # ----- Budget items -----

    async def create_budget_item(
        self,
        particulars: str,
        *,
        year: int | None = None,
        description: str | None = None,
        status: str = "ongoing",
        total_budget_allocated: Decimal = Decimal("0"),
        department_id: UUID | None = None,
        created_by: UUID | None = None,
    ) -> BudgetItem:
        item = BudgetItem(
            particulars=particulars,
            description=description,
            year=year,
            status=status,
            total_budget_allocated=total_budget_allocated,
            department_id=department_id,
            created_by=created_by,
        )
        item = await self.budget_repo.create(item)
        await self.indexer.sync(item)

        logger.info("budget_item_created", budget_item_id=str(item.id), year=year)
        return item

    async def get_budget_item(self, budget_item_id: UUID) -> BudgetItem:
        item = await self.budget_repo.get_by_id(budget_item_id)
        if not item:
            raise NotFoundError("Budget item", str(budget_item_id))
        return item

    async def list_budget_items(self, year: int, limit: int = 100) -> Sequence[BudgetItem]:
        return await self.budget_repo.get_by_year(year, limit=limit)

    async def update_budget_item(self, budget_item_id: UUID, **changes: Any) -> BudgetItem:
        item = await self.get_budget_item(budget_item_id)
        apply_changes(item, changes, BUDGET_ITEM_FIELDS)
        item = await self.budget_repo.update(item)
        await self.indexer.sync(item)

        logger.info("budget_item_updated", budget_item_id=str(budget_item_id))
        return item

    async def delete_budget_item(self, budget_item_id: UUID) -> None:
        """Soft delete a budget item. Items with live projects are kept."""
        item = await self.get_budget_item(budget_item_id)
        projects = await self.project_repo.get_by_budget_item(budget_item_id)
        if projects:
            raise ConflictError(
                f"Cannot delete budget item with {len(projects)} linked project(s)",
                {"budget_item_id": str(budget_item_id), "projects": len(projects)},
            )
        item = await self.budget_repo.soft_delete(item)
        await self.indexer.sync(item)

        logger.info("budget_item_deleted", budget_item_id=str(budget_item_id))

    # ----- Projects -----

    async def create_project(
        self,
        particulars: str,
        *,
        budget_item_id: UUID | None = None,
        implementing_office: str | None = None,
        year: int | None = None,
        status: str = "ongoing",
        total_budget_allocated: Decimal = Decimal("0"),
        department_id: UUID | None = None,
        created_by: UUID | None = None,
    ) -> Project:
        if budget_item_id is not None:
            parent = await self.get_budget_item(budget_item_id)
            year = year if year is not None else parent.year
        project = Project(
            budget_item_id=budget_item_id,
            particulars=particulars,
            implementing_office=implementing_office,
            year=year,
            status=status,
            total_budget_allocated=total_budget_allocated,
            department_id=department_id,
            created_by=created_by,
        )
        project = await self.project_repo.create(project)
        await self.indexer.sync(project)

        logger.info("project_created", project_id=str(project.id))
        return project

    async def get_project(self, project_id: UUID) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project", str(project_id))
        return project

    async def update_project(self, project_id: UUID, **changes: Any) -> Project:
        project = await self.get_project(project_id)
        apply_changes(project, changes, PROJECT_FIELDS)
        project = await self.project_repo.update(project)
        await self.indexer.sync(project)

        logger.info("project_updated", project_id=str(project_id))
        return project

    async def delete_project(self, project_id: UUID) -> None:
        """Soft delete a project. Projects with live breakdowns are kept."""
        project = await self.get_project(project_id)
        breakdowns = await self.breakdown_repo.get_by_project(project_id)
        if breakdowns:
            raise ConflictError(
                f"Cannot delete project with {len(breakdowns)} breakdown(s)",
                {"project_id": str(project_id), "breakdowns": len(breakdowns)},
            )
        project = await self.project_repo.soft_delete(project)
        await self.indexer.sync(project)

        logger.info("project_deleted", project_id=str(project_id))

    # ----- Breakdowns -----

    async def create_breakdown(
        self,
        project_id: UUID,
        project_name: str,
        *,
        implementing_office: str | None = None,
        municipality: str | None = None,
        year: int | None = None,
        status: str = "ongoing",
        department_id: UUID | None = None,
        created_by: UUID | None = None,
    ) -> ProjectBreakdown:
        project = await self.get_project(project_id)
        breakdown = ProjectBreakdown(
            project_id=project_id,
            budget_item_id=project.budget_item_id,
            project_name=project_name,
            implementing_office=implementing_office,
            municipality=municipality,
            year=year if year is not None else project.year,
            status=status,
            department_id=department_id if department_id is not None else project.department_id,
            created_by=created_by,
        )
        breakdown = await self.breakdown_repo.create(breakdown)
        await self.indexer.sync(breakdown)

        logger.info("breakdown_created", breakdown_id=str(breakdown.id), project_id=str(project_id))
        return breakdown

    async def get_breakdown(self, breakdown_id: UUID) -> ProjectBreakdown:
        breakdown = await self.breakdown_repo.get_by_id(breakdown_id)
        if not breakdown:
            raise NotFoundError("Project breakdown", str(breakdown_id))
        return breakdown

    async def update_breakdown(self, breakdown_id: UUID, **changes: Any) -> ProjectBreakdown:
        breakdown = await self.get_breakdown(breakdown_id)
        apply_changes(breakdown, changes, BREAKDOWN_FIELDS)
        breakdown = await self.breakdown_repo.update(breakdown)
        await self.indexer.sync(breakdown)

        logger.info("breakdown_updated", breakdown_id=str(breakdown_id))
        return breakdown

    async def delete_breakdown(self, breakdown_id: UUID) -> None:
        breakdown = await self.get_breakdown(breakdown_id)
        breakdown = await self.breakdown_repo.soft_delete(breakdown)
        await self.indexer.sync(breakdown)

        logger.info("breakdown_deleted", breakdown_id=str(breakdown_id))
