"""Department service."""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.reindex import ENTITY_SOURCES, is_indexable
from ppdo.domain.search.types import EntityType
from ppdo.infrastructure.database.models.department import Department
from ppdo.infrastructure.database.repositories.base import BaseRepository
from ppdo.infrastructure.database.repositories.organization import DepartmentRepository
from ppdo.shared.exceptions import ConflictError, NotFoundError, ValidationError
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)


class DepartmentService:
    """CRUD for departments, mirrored into the search index."""

    def __init__(self, department_repo: DepartmentRepository, indexer: SearchIndexer) -> None:
        self.department_repo = department_repo
        self.indexer = indexer

    async def create_department(
        self,
        name: str,
        code: str,
        *,
        created_by: UUID | None = None,
        description: str | None = None,
        parent_department_id: UUID | None = None,
        head_user_id: UUID | None = None,
        is_active: bool = True,
    ) -> Department:
        if await self.department_repo.get_by_code(code):
            raise ConflictError(f"Department code '{code}' already exists", {"code": code})
        if parent_department_id is not None:
            await self.get_department(parent_department_id)

        department = Department(
            name=name,
            code=code,
            description=description,
            parent_department_id=parent_department_id,
            head_user_id=head_user_id,
            is_active=is_active,
            created_by=created_by,
        )
        department = await self.department_repo.create(department)
        await self.indexer.sync(department)

        logger.info("department_created", department_id=str(department.id), code=code)
        return department

    async def get_department(self, department_id: UUID) -> Department:
        department = await self.department_repo.get_by_id(department_id)
        if not department:
            raise NotFoundError("Department", str(department_id))
        return department

    async def list_departments(self, limit: int = 50, offset: int = 0) -> Sequence[Department]:
        return await self.department_repo.get_all(limit=limit, offset=offset)

    async def update_department(
        self,
        department_id: UUID,
        *,
        name: str | None = None,
        code: str | None = None,
        description: str | None = None,
        parent_department_id: UUID | None = None,
        head_user_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> Department:
        department = await self.get_department(department_id)

        if code is not None and code != department.code:
            if await self.department_repo.get_by_code(code):
                raise ConflictError(f"Department code '{code}' already exists", {"code": code})
            department.code = code
        if parent_department_id is not None:
            if parent_department_id == department_id:
                raise ValidationError("A department cannot be its own parent")
            await self.get_department(parent_department_id)
            department.parent_department_id = parent_department_id
        if name is not None:
            department.name = name
        if description is not None:
            department.description = description
        if head_user_id is not None:
            department.head_user_id = head_user_id
        if is_active is not None:
            department.is_active = is_active

        department = await self.department_repo.update(department)
        await self.indexer.sync(department)

        logger.info("department_updated", department_id=str(department_id))
        return department

    async def delete_department(self, department_id: UUID) -> None:
        """Hard delete a department and drop it from the index.

        Rows assigned to the department, and its child departments, are
        detached first and re-indexed so no index record keeps the old id.
        """
        department = await self.get_department(department_id)
        detached = await self._detach_dependents(department_id)
        await self.department_repo.delete(department)
        await self.indexer.remove(str(department_id), EntityType.DEPARTMENT)
        for entity in detached:
            if is_indexable(entity):
                await self.indexer.sync(entity)

        logger.info(
            "department_deleted",
            department_id=str(department_id),
            detached=len(detached),
        )

    async def _detach_dependents(self, department_id: UUID) -> list[Any]:
        session = self.department_repo.session
        detached: list[Any] = []
        for model in ENTITY_SOURCES.values():
            if model is Department:
                continue
            repo = BaseRepository(session, model)
            for entity in await repo.get_by_department(department_id, include_deleted=True):
                entity.department_id = None
                detached.append(await repo.update(entity))
        for child in await self.department_repo.get_children(department_id):
            child.parent_department_id = None
            detached.append(await self.department_repo.update(child))
        return detached
