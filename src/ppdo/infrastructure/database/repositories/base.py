"""Base repository with soft-delete awareness."""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar, cast
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Base repository for source entities.

    Queries built from ``_base_query`` hide soft-deleted rows unless asked
    not to. Subclasses set ``model_class``.
    """

    model_class: type[T]

    def __init__(self, session: AsyncSession, model_class: type[T] | None = None) -> None:
        self.session = session
        if model_class is not None:
            self.model_class = model_class

    def _base_query(self, include_deleted: bool = False) -> Any:
        """Create a base query filtered by soft-delete status.

        Args:
            include_deleted: If True, includes soft-deleted records (default: False)
        """
        model = cast(Any, self.model_class)
        query = select(model)
        if not include_deleted and hasattr(model, "deleted_at"):
            query = query.where(model.deleted_at.is_(None))
        return query

    @asynccontextmanager
    async def begin_nested(self) -> AsyncIterator[None]:
        """Begin a savepoint so a failing step can be rolled back on its own."""
        async with self.session.begin_nested():
            yield

    async def get_by_id(self, id: UUID, *, include_deleted: bool = False) -> T | None:
        """Get entity by ID."""
        model = cast(Any, self.model_class)
        query = self._base_query(include_deleted=include_deleted).where(model.id == id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[T]:
        """Get live entities, newest first."""
        model = cast(Any, self.model_class)
        query = (
            self._base_query()
            .order_by(model.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self) -> int:
        """Count live entities."""
        query = select(func.count()).select_from(self._base_query().subquery())
        result = await self.session.execute(query)
        return result.scalar_one()

    async def iter_batches(self, batch_size: int) -> AsyncIterator[Sequence[T]]:
        """Yield live entities in primary-key order, one batch at a time.

        Keyset pagination keeps each batch query cheap and tolerates rows
        being added while the walk is in progress.
        """
        model = cast(Any, self.model_class)
        last_id: UUID | None = None
        while True:
            query = self._base_query().order_by(model.id.asc()).limit(batch_size)
            if last_id is not None:
                query = query.where(model.id > last_id)
            result = await self.session.execute(query)
            batch = result.scalars().all()
            if not batch:
                return
            yield batch
            last_id = cast(Any, batch[-1]).id

    async def get_by_department(
        self,
        department_id: UUID,
        *,
        include_deleted: bool = False,
    ) -> Sequence[T]:
        """Get entities assigned to a department."""
        model = cast(Any, self.model_class)
        query = self._base_query(include_deleted=include_deleted).where(
            model.department_id == department_id
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def create(self, entity: T) -> T:
        """Create a new entity."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: T) -> T:
        """Update an existing entity."""
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity: T) -> None:
        """Hard delete an entity."""
        await self.session.delete(entity)
        await self.session.flush()

    async def soft_delete(self, entity: T) -> T:
        """Soft delete an entity by setting deleted_at."""
        entity_any = cast(Any, entity)
        if not hasattr(entity_any, "deleted_at"):
            raise ValueError(f"{type(entity).__name__} does not support soft delete")
        entity_any.deleted_at = datetime.now(UTC)
        return await self.update(cast(T, entity_any))
