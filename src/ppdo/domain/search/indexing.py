"""Indexing protocol: keeps search index records in step with source entities.

Domain services call ``sync`` after every create, update and soft delete and
``remove`` after every hard delete. Both run inside a savepoint of the
caller's session so a failing index write is rolled back on its own and the
source write still commits.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from ppdo.domain.search.ports import Searchable, SearchIndexStore
from ppdo.domain.search.ranking import type_value
from ppdo.domain.search.types import EntityType, IndexResult, IndexUpdate
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry
from ppdo.observability.metrics import SEARCH_INDEX_FAILURES, SEARCH_INDEX_WRITES
from ppdo.shared.exceptions import IndexingError, IndexingValidationError
from ppdo.shared.logging import get_logger
from ppdo.shared.search_tokens import build_slug, generate_index_data

logger = get_logger(__name__)

MAX_ENTITY_ID_LENGTH = 64


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SearchIndexer:
    """Upserts and removes index records through a ``SearchIndexStore``."""

    def __init__(
        self,
        store: SearchIndexStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.clock = clock

    # ----- Protocol -----

    async def index_entity(self, update: IndexUpdate) -> IndexResult:
        """Create or fully replace the index record of one entity.

        Raises:
            IndexingValidationError: If the entity type is unknown, or the
                entity id or primary text is missing.
            IndexingError: If the record or its postings could not be written.
        """
        entity_type = self._validate(update)
        now = self.clock()
        data = generate_index_data(update.primary_text, update.secondary_text)

        entry = await self.store.get_by_entity(entity_type.value, update.entity_id)
        created = entry is None
        if entry is None:
            entry = SearchIndexEntry(
                entity_type=entity_type.value,
                entity_id=update.entity_id,
                access_count=0,
                indexed_at=now,
            )

        entry.primary_text = update.primary_text
        entry.normalized_primary_text = data.normalized_primary_text
        entry.secondary_text = update.secondary_text
        entry.normalized_secondary_text = data.normalized_secondary_text
        entry.tokens = data.tokens
        entry.slug = build_slug(update.primary_text, update.entity_id)
        entry.department_id = update.department_id
        entry.status = update.status
        entry.year = update.year
        entry.parent_id = update.parent_id
        entry.parent_slug = update.parent_slug
        entry.created_by = update.created_by
        if update.created_at is not None:
            entry.created_at = update.created_at
        elif created:
            entry.created_at = now
        entry.updated_at = update.updated_at or now
        entry.is_deleted = update.is_deleted
        entry.last_reindexed_at = now

        try:
            await self.store.save(entry)
            token_count = await self.store.replace_tokens(
                entry, data.primary_tokens, data.secondary_tokens
            )
        except SQLAlchemyError as e:
            raise IndexingError(
                "Could not write search index record",
                {"entity_type": entity_type.value, "entity_id": update.entity_id},
            ) from e

        operation = "tombstone" if update.is_deleted else "upsert"
        SEARCH_INDEX_WRITES.labels(entity_type=entity_type.value, operation=operation).inc()
        logger.debug(
            "search_index_upserted",
            entity_type=entity_type.value,
            entity_id=update.entity_id,
            created=created,
            is_deleted=update.is_deleted,
            token_count=token_count,
        )
        return IndexResult(
            entry_id=entry.id,
            entity_type=entity_type,
            entity_id=update.entity_id,
            token_count=token_count,
            created=created,
        )

    async def remove_from_index(self, entity_id: str) -> int:
        """Physically delete every record mirroring ``entity_id``.

        Returns the number of records removed; zero when none existed.
        """
        entity_id = str(entity_id).strip() if entity_id is not None else ""
        if not entity_id:
            raise IndexingValidationError("entity_id", "must not be empty")

        removed = await self.store.delete_by_entity_id(entity_id)
        if removed:
            SEARCH_INDEX_WRITES.labels(entity_type="any", operation="remove").inc(removed)
        logger.debug("search_index_removed", entity_id=entity_id, removed=removed)
        return removed

    # ----- Write-path wrappers -----

    async def sync(self, entity: Searchable) -> bool:
        """Mirror ``entity`` into the index without failing the caller.

        Returns False (after logging) if the index write failed.
        """
        update: IndexUpdate | None = None
        try:
            update = entity.to_index_update()
            async with self.store.begin_nested():
                await self.index_entity(update)
        except Exception as e:
            if update is None:
                label, entity_id = type(entity).__name__, str(getattr(entity, "id", ""))
            else:
                label, entity_id = type_value(update.entity_type), update.entity_id
            self._record_failure("sync", label, entity_id, e)
            return False
        return True

    async def remove(self, entity_id: str, entity_type: EntityType | None = None) -> bool:
        """Drop ``entity_id`` from the index without failing the caller."""
        label = entity_type.value if entity_type is not None else "any"
        try:
            async with self.store.begin_nested():
                await self.remove_from_index(entity_id)
        except Exception as e:
            self._record_failure("remove", label, str(entity_id), e)
            return False
        return True

    # ----- Helpers -----

    @staticmethod
    def _validate(update: IndexUpdate) -> EntityType:
        entity_id = update.entity_id
        try:
            entity_type = EntityType.parse(update.entity_type)
        except ValueError:
            raise IndexingValidationError(
                "entity_type",
                f"'{update.entity_type}' is not a known entity type",
                entity_id=entity_id,
            ) from None

        if not entity_id or not str(entity_id).strip():
            raise IndexingValidationError("entity_id", "must not be empty")
        if len(entity_id) > MAX_ENTITY_ID_LENGTH:
            raise IndexingValidationError(
                "entity_id",
                f"must be at most {MAX_ENTITY_ID_LENGTH} characters",
                entity_id=entity_id,
            )
        if not update.primary_text or not update.primary_text.strip():
            raise IndexingValidationError("primary_text", "must not be empty", entity_id=entity_id)
        return entity_type

    @staticmethod
    def _record_failure(operation: str, entity_type: str, entity_id: str, error: Exception) -> None:
        SEARCH_INDEX_FAILURES.labels(entity_type=entity_type, operation=operation).inc()
        logger.error(
            "search_index_sync_failed",
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            error=str(error),
            error_type=type(error).__name__,
        )
