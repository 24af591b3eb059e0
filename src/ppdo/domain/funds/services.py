"""Special fund service, one instance per fund table."""

from collections.abc import Sequence
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ppdo.domain.budget.services import apply_changes
from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.types import EntityType
from ppdo.infrastructure.database.models.funds import (
    FundMixin,
    SpecialEducationFund,
    SpecialHealthFund,
    TrustFund,
    TwentyPercentDF,
)
from ppdo.infrastructure.database.repositories.budget import FundRepository
from ppdo.shared.exceptions import NotFoundError, ValidationError
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

FUND_MODELS: dict[EntityType, type[FundMixin]] = {
    EntityType.TRUST_FUND: TrustFund,
    EntityType.SPECIAL_EDUCATION_FUND: SpecialEducationFund,
    EntityType.SPECIAL_HEALTH_FUND: SpecialHealthFund,
    EntityType.TWENTY_PERCENT_DF: TwentyPercentDF,
}

FUND_FIELDS = frozenset(
    {
        "project_title",
        "office_in_charge",
        "remarks",
        "year",
        "status",
        "received",
        "utilized",
        "department_id",
    }
)


class FundService:
    """CRUD for one kind of special fund."""

    def __init__(self, fund_repo: FundRepository, indexer: SearchIndexer) -> None:
        self.fund_repo = fund_repo
        self.indexer = indexer
        self.model: type[FundMixin] = fund_repo.model_class

    @classmethod
    def for_type(
        cls,
        session: AsyncSession,
        entity_type: EntityType,
        indexer: SearchIndexer,
    ) -> "FundService":
        model = FUND_MODELS.get(entity_type)
        if model is None:
            raise ValidationError(f"'{entity_type.value}' is not a fund type")
        return cls(FundRepository(session, model), indexer)

    async def create_fund(
        self,
        project_title: str,
        *,
        office_in_charge: str | None = None,
        remarks: str | None = None,
        year: int | None = None,
        status: str = "ongoing",
        received: Decimal = Decimal("0"),
        utilized: Decimal = Decimal("0"),
        department_id: UUID | None = None,
        created_by: UUID | None = None,
    ) -> Any:
        fund = self.model(
            project_title=project_title,
            office_in_charge=office_in_charge,
            remarks=remarks,
            year=year,
            status=status,
            received=received,
            utilized=utilized,
            department_id=department_id,
            created_by=created_by,
        )
        fund = await self.fund_repo.create(fund)
        await self.indexer.sync(fund)

        logger.info("fund_created", fund_type=self.model.entity_type.value, fund_id=str(fund.id))
        return fund

    async def get_fund(self, fund_id: UUID) -> Any:
        fund = await self.fund_repo.get_by_id(fund_id)
        if not fund:
            raise NotFoundError(self.model.entity_type.label, str(fund_id))
        return fund

    async def list_funds(self, limit: int = 100, offset: int = 0) -> Sequence[Any]:
        return await self.fund_repo.get_all(limit=limit, offset=offset)

    async def update_fund(self, fund_id: UUID, **changes: Any) -> Any:
        fund = await self.get_fund(fund_id)
        apply_changes(fund, changes, FUND_FIELDS)
        fund = await self.fund_repo.update(fund)
        await self.indexer.sync(fund)

        logger.info("fund_updated", fund_type=self.model.entity_type.value, fund_id=str(fund_id))
        return fund

    async def delete_fund(self, fund_id: UUID) -> None:
        fund = await self.get_fund(fund_id)
        fund = await self.fund_repo.soft_delete(fund)
        await self.indexer.sync(fund)

        logger.info("fund_deleted", fund_type=self.model.entity_type.value, fund_id=str(fund_id))
