"""Implementing agency service."""

from collections.abc import Sequence
from uuid import UUID

from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.types import EntityType
from ppdo.infrastructure.database.models.agency import ImplementingAgency
from ppdo.infrastructure.database.repositories.organization import ImplementingAgencyRepository
from ppdo.shared.exceptions import ConflictError, NotFoundError
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)


class AgencyService:
    """CRUD for implementing agencies, mirrored into the search index."""

    def __init__(self, agency_repo: ImplementingAgencyRepository, indexer: SearchIndexer) -> None:
        self.agency_repo = agency_repo
        self.indexer = indexer

    async def create_agency(
        self,
        code: str,
        full_name: str,
        *,
        created_by: UUID | None = None,
        agency_type: str = "internal",
        description: str | None = None,
        department_id: UUID | None = None,
        is_active: bool = True,
    ) -> ImplementingAgency:
        """Create an agency. Codes are unique."""
        if await self.agency_repo.get_by_code(code):
            raise ConflictError(f"Agency code '{code}' already exists", {"code": code})

        agency = ImplementingAgency(
            code=code,
            full_name=full_name,
            agency_type=agency_type,
            description=description,
            department_id=department_id,
            is_active=is_active,
            created_by=created_by,
        )
        agency = await self.agency_repo.create(agency)
        await self.indexer.sync(agency)

        logger.info("agency_created", agency_id=str(agency.id), code=code)
        return agency

    async def get_agency(self, agency_id: UUID) -> ImplementingAgency:
        agency = await self.agency_repo.get_by_id(agency_id)
        if not agency:
            raise NotFoundError("Agency", str(agency_id))
        return agency

    async def list_agencies(self, limit: int = 50, offset: int = 0) -> Sequence[ImplementingAgency]:
        return await self.agency_repo.get_all(limit=limit, offset=offset)

    async def update_agency(
        self,
        agency_id: UUID,
        *,
        code: str | None = None,
        full_name: str | None = None,
        agency_type: str | None = None,
        description: str | None = None,
        department_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> ImplementingAgency:
        """Update agency details."""
        agency = await self.get_agency(agency_id)

        if code is not None and code != agency.code:
            if await self.agency_repo.get_by_code(code):
                raise ConflictError(f"Agency code '{code}' already exists", {"code": code})
            agency.code = code
        if full_name is not None:
            agency.full_name = full_name
        if agency_type is not None:
            agency.agency_type = agency_type
        if description is not None:
            agency.description = description
        if department_id is not None:
            agency.department_id = department_id
        if is_active is not None:
            agency.is_active = is_active

        agency = await self.agency_repo.update(agency)
        await self.indexer.sync(agency)

        logger.info("agency_updated", agency_id=str(agency_id))
        return agency

    async def delete_agency(self, agency_id: UUID) -> None:
        """Hard delete an agency and drop it from the index."""
        agency = await self.get_agency(agency_id)
        await self.agency_repo.delete(agency)
        await self.indexer.remove(str(agency_id), EntityType.AGENCY)

        logger.info("agency_deleted", agency_id=str(agency_id))
