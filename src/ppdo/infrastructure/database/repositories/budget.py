"""Repositories for budget items, projects, breakdowns and special funds."""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ppdo.infrastructure.database.models.budget import BudgetItem, Project, ProjectBreakdown
from ppdo.infrastructure.database.models.funds import FundMixin
from ppdo.infrastructure.database.repositories.base import BaseRepository


class BudgetItemRepository(BaseRepository[BudgetItem]):
    model_class = BudgetItem

    async def get_by_year(self, year: int, *, limit: int = 100) -> Sequence[BudgetItem]:
        query = (
            self._base_query()
            .where(BudgetItem.year == year)
            .order_by(BudgetItem.particulars.asc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all()


class ProjectRepository(BaseRepository[Project]):
    model_class = Project

    async def get_by_budget_item(self, budget_item_id: UUID) -> Sequence[Project]:
        query = self._base_query().where(Project.budget_item_id == budget_item_id)
        result = await self.session.execute(query)
        return result.scalars().all()


class ProjectBreakdownRepository(BaseRepository[ProjectBreakdown]):
    model_class = ProjectBreakdown

    async def get_by_project(self, project_id: UUID) -> Sequence[ProjectBreakdown]:
        query = self._base_query().where(ProjectBreakdown.project_id == project_id)
        result = await self.session.execute(query)
        return result.scalars().all()


class FundRepository(BaseRepository[Any]):
    """Repository for any of the special fund tables.

    The fund tables share one shape, so one repository serves all of them;
    the concrete model is chosen per instance.
    """

    def __init__(self, session: AsyncSession, model_class: type[FundMixin]) -> None:
        super().__init__(session, model_class)
