"""Reindex / backfill of the search index from the source tables.

Rebuilds index records for one or every entity type, then prunes records
whose source row is gone. Running it twice yields the same index contents.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.service import parse_entity_type
from ppdo.domain.search.types import EntityType, ReindexStats, ReindexSummary, TypeIndexStats
from ppdo.infrastructure.database.models import (
    BudgetItem,
    Department,
    ImplementingAgency,
    Project,
    ProjectBreakdown,
    SpecialEducationFund,
    SpecialHealthFund,
    TrustFund,
    TwentyPercentDF,
    User,
)
from ppdo.infrastructure.database.repositories import (
    BaseRepository,
    SearchIndexRepository,
    UserRepository,
)
from ppdo.observability.metrics import REINDEX_RECORDS
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

# Source table of every entity type.
ENTITY_SOURCES: dict[EntityType, type[Any]] = {
    EntityType.USER: User,
    EntityType.DEPARTMENT: Department,
    EntityType.AGENCY: ImplementingAgency,
    EntityType.BUDGET_ITEM: BudgetItem,
    EntityType.PROJECT_ITEM: Project,
    EntityType.PROJECT_BREAKDOWN: ProjectBreakdown,
    EntityType.TRUST_FUND: TrustFund,
    EntityType.SPECIAL_EDUCATION_FUND: SpecialEducationFund,
    EntityType.SPECIAL_HEALTH_FUND: SpecialHealthFund,
    EntityType.TWENTY_PERCENT_DF: TwentyPercentDF,
}

_unmapped = [t.value for t in EntityType if t not in ENTITY_SOURCES]
if _unmapped:
    raise RuntimeError(f"Entity types without a source table: {', '.join(_unmapped)}")

# Keep error reports bounded on badly broken tables.
MAX_ERROR_DETAILS = 100


def is_indexable(entity: Any) -> bool:
    """Whether a live source row belongs in the index at all."""
    if isinstance(entity, User):
        return entity.is_searchable
    return True


class ReindexService:
    """Rebuilds the search index from the source tables.

    Every row is indexed inside its own savepoint so one bad row never stops
    a batch; the session is committed once per batch.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        indexer: SearchIndexer | None = None,
        store: SearchIndexRepository | None = None,
        batch_size: int = 100,
    ) -> None:
        self.session = session
        self.store = store or SearchIndexRepository(session)
        self.indexer = indexer or SearchIndexer(self.store)
        self.batch_size = max(1, batch_size)

    async def reindex_type(self, entity_type: str | EntityType) -> ReindexStats:
        """Reindex every live row of one entity type and prune orphans."""
        entity_type = parse_entity_type(entity_type)
        source = BaseRepository(self.session, ENTITY_SOURCES[entity_type])
        stats = ReindexStats(entity_type=entity_type)
        live_ids: set[str] = set()

        logger.info("reindex_type_started", entity_type=entity_type.value)
        async for batch in source.iter_batches(self.batch_size):
            for entity in batch:
                stats.total += 1
                entity_id = str(entity.id)
                if not is_indexable(entity):
                    stats.skipped += 1
                    continue
                live_ids.add(entity_id)
                try:
                    update = entity.to_index_update()
                    async with self.store.begin_nested():
                        await self.indexer.index_entity(update)
                except Exception as e:
                    stats.errors += 1
                    if len(stats.error_details) < MAX_ERROR_DETAILS:
                        stats.error_details.append({"entity_id": entity_id, "error": str(e)})
                    logger.warning(
                        "reindex_record_failed",
                        entity_type=entity_type.value,
                        entity_id=entity_id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    continue
                stats.indexed += 1
            await self.session.commit()

        stats.pruned = await self._prune(entity_type, live_ids)
        await self.session.commit()

        for result in ("indexed", "skipped", "errors", "pruned"):
            count = getattr(stats, result)
            if count:
                REINDEX_RECORDS.labels(entity_type=entity_type.value, result=result).inc(count)
        logger.info(
            "reindex_type_completed",
            entity_type=entity_type.value,
            total=stats.total,
            indexed=stats.indexed,
            skipped=stats.skipped,
            errors=stats.errors,
            pruned=stats.pruned,
        )
        return stats

    async def reindex_all(self) -> ReindexSummary:
        """Reindex every entity type; a failing type does not stop the others."""
        summary = ReindexSummary()
        for entity_type in EntityType:
            try:
                stats = await self.reindex_type(entity_type)
            except Exception as e:
                await self.session.rollback()
                logger.error("reindex_type_failed", entity_type=entity_type.value, error=str(e))
                stats = ReindexStats(
                    entity_type=entity_type,
                    errors=1,
                    error_details=[{"entity_id": "*", "error": str(e)}],
                )
            summary.stats.append(stats)

        logger.info(
            "reindex_completed",
            total=summary.total,
            indexed=summary.indexed,
            skipped=summary.skipped,
            errors=summary.errors,
            pruned=summary.pruned,
        )
        return summary

    async def clear_index(self, entity_type: str | EntityType | None = None) -> int:
        """Delete index records of one type, or every record when no type is given.

        Source tables are untouched; a later reindex rebuilds what was cleared.
        """
        parsed = parse_entity_type(entity_type) if entity_type is not None else None
        removed = await self.store.clear(parsed.value if parsed else None)
        logger.warning(
            "search_index_cleared",
            entity_type=parsed.value if parsed else "all",
            removed=removed,
        )
        return removed

    async def index_stats(self) -> list[TypeIndexStats]:
        """Source row counts against live index record counts, per type."""
        indexed = await self.store.counts_by_type()
        results: list[TypeIndexStats] = []
        for entity_type, model in ENTITY_SOURCES.items():
            if entity_type is EntityType.USER:
                source_count = await UserRepository(self.session).count_searchable()
            else:
                source_count = await BaseRepository(self.session, model).count()
            results.append(
                TypeIndexStats(
                    entity_type=entity_type,
                    source_count=source_count,
                    indexed_count=indexed.get(entity_type.value, 0),
                )
            )
        return results

    async def _prune(self, entity_type: EntityType, live_ids: set[str]) -> int:
        """Delete index records of ``entity_type`` with no live source row."""
        existing = await self.store.entry_ids_by_entity(entity_type.value)
        orphans = [
            entry_id for entity_id, entry_id in existing.items() if entity_id not in live_ids
        ]
        if not orphans:
            return 0
        logger.info("reindex_pruned", entity_type=entity_type.value, count=len(orphans))
        return await self.store.delete_entries(orphans)
