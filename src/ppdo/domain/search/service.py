"""Search query service: ranked search, category counts and suggestions."""

import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from ppdo.config import Settings
from ppdo.domain.search.navigation import page_depth_text, source_url
from ppdo.domain.search.ports import SearchIndexStore
from ppdo.domain.search.ranking import (
    PRIMARY_FIELD,
    SECONDARY_FIELD,
    CorpusStats,
    RankedRecord,
    RankingConfig,
    as_utc,
    rank,
)
from ppdo.domain.search.types import (
    CallerScope,
    EntityType,
    SearchFilters,
    SearchHit,
    SearchPage,
    Suggestion,
)
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry
from ppdo.observability.metrics import SEARCH_QUERIES, SEARCH_QUERY_LATENCY
from ppdo.shared.exceptions import InvalidSearchFilterError
from ppdo.shared.logging import get_logger
from ppdo.shared.search_tokens import (
    MAX_TOKEN_LENGTH,
    create_highlight,
    normalize,
    normalize_text,
    split_words,
)

logger = get_logger(__name__)

UNAVAILABLE_MESSAGE = "Search is temporarily unavailable. Please try again later."

# Prefix lookups over-fetch so de-duplication still leaves a full list.
_SUGGESTION_OVERFETCH = 4


def _utcnow() -> datetime:
    return datetime.now(UTC)


def parse_entity_type(value: str | EntityType) -> EntityType:
    """Resolve an entity type filter value.

    Raises:
        InvalidSearchFilterError: If the value is not a known entity type.
    """
    try:
        return EntityType.parse(value)
    except ValueError:
        raise InvalidSearchFilterError("entity_type", str(value), EntityType.values()) from None


class SearchService:
    """Read side of the search index.

    Candidates come from the token postings, pre-filtered by the request
    filters and the caller's department scope, and are ranked in memory.
    """

    def __init__(
        self,
        store: SearchIndexStore,
        *,
        config: RankingConfig | None = None,
        default_limit: int = 20,
        max_limit: int = 100,
        max_candidates: int = 500,
        suggestion_limit: int = 5,
        min_query_length: int = 2,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.config = config or RankingConfig()
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.max_candidates = max_candidates
        self.suggestion_limit = suggestion_limit
        self.min_query_length = min_query_length
        self.clock = clock

    @classmethod
    def from_settings(cls, store: SearchIndexStore, settings: Settings) -> "SearchService":
        return cls(
            store,
            config=RankingConfig.from_settings(settings),
            default_limit=settings.search_default_limit,
            max_limit=settings.search_max_limit,
            max_candidates=settings.search_max_candidates,
            suggestion_limit=settings.search_suggestion_limit,
            min_query_length=settings.search_min_query_length,
        )

    # ----- Search -----

    async def search(
        self,
        query: str,
        *,
        entity_types: Sequence[str | EntityType] | None = None,
        department_ids: Sequence[str] | None = None,
        statuses: Sequence[str] | None = None,
        years: Sequence[int] | None = None,
        limit: int | None = None,
        offset: int = 0,
        caller: CallerScope | None = None,
    ) -> SearchPage:
        """Ranked, paginated search over live index records.

        Invalid filters produce an empty page carrying ``error``; a failing
        database produces ``available=False``. Neither raises.
        """
        start = time.perf_counter()
        query = query or ""
        tokens = normalize(query)
        limit = self._clamp_limit(limit, self.default_limit)
        offset = max(0, offset)
        page = SearchPage(
            query=query,
            normalized_query=" ".join(tokens),
            offset=offset,
            limit=limit,
        )

        try:
            filters = self._build_filters(entity_types, department_ids, statuses, years)
        except InvalidSearchFilterError as e:
            page.error = e.message
            self._observe("search", "invalid_filter", start)
            logger.info("search_invalid_filter", error=e.message)
            return page

        if not tokens:
            self._observe("search", "empty_query", start)
            return page

        visible = caller.visible_department_ids if caller else None
        try:
            candidates, truncated = await self.store.find_candidates(
                tokens,
                filters=filters,
                visible_department_ids=visible,
                max_candidates=self.max_candidates,
            )
            stats = CorpusStats(total_documents=0)
            if candidates:
                stats = CorpusStats(
                    total_documents=await self.store.count_live(),
                    document_frequencies=await self.store.document_frequencies(tokens),
                )
        except SQLAlchemyError as e:
            page.available = False
            page.error = UNAVAILABLE_MESSAGE
            self._observe("search", "unavailable", start)
            logger.error("search_unavailable", error=str(e), query_tokens=len(tokens))
            return page

        ranked = rank(
            query,
            candidates,
            stats=stats,
            config=self.config,
            now=self.clock(),
            caller=caller,
        )
        best = ranked[0].score if ranked else 0.0

        page.total = len(ranked)
        page.truncated = truncated
        page.has_more = offset + limit < page.total
        page.results = [self._to_hit(r, best, tokens) for r in ranked[offset : offset + limit]]

        self._observe("search", "ok" if ranked else "no_results", start)
        logger.info(
            "search_executed",
            query_tokens=len(tokens),
            candidates=len(candidates),
            total=page.total,
            truncated=truncated,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return page

    # ----- Facets -----

    async def category_counts(
        self,
        query: str | None = None,
        *,
        department_ids: Sequence[str] | None = None,
        statuses: Sequence[str] | None = None,
        years: Sequence[int] | None = None,
        caller: CallerScope | None = None,
    ) -> dict[str, int]:
        """Matching live records per entity type, every type present.

        Without a query every live record is counted. A failing database
        yields all zeros.
        """
        start = time.perf_counter()
        filters = self._build_filters(None, department_ids, statuses, years)
        zero = {entity_type.value: 0 for entity_type in EntityType}

        tokens: list[str] | None = None
        if query and query.strip():
            tokens = normalize(query)
            if not tokens:
                self._observe("categories", "empty_query", start)
                return zero

        try:
            counts = await self.store.counts_by_type(
                tokens,
                filters=filters,
                visible_department_ids=caller.visible_department_ids if caller else None,
            )
        except SQLAlchemyError as e:
            self._observe("categories", "unavailable", start)
            logger.error("search_unavailable", operation="categories", error=str(e))
            return zero
        self._observe("categories", "ok", start)
        return {key: counts.get(key, 0) for key in zero}

    # ----- Type-ahead -----

    async def suggestions(
        self,
        partial: str,
        *,
        limit: int | None = None,
        entity_types: Sequence[str | EntityType] | None = None,
        caller: CallerScope | None = None,
    ) -> list[Suggestion]:
        """Type-ahead completions for a partially typed query.

        The last word is matched as a prefix of primary-text tokens; earlier
        words must be present as tokens.
        """
        start = time.perf_counter()
        text = partial or ""
        if len(text.strip()) < self.min_query_length:
            return []
        words = split_words(text)
        if not words:
            return []

        try:
            filters = self._build_filters(entity_types, None, None, None)
        except InvalidSearchFilterError as e:
            self._observe("suggestions", "invalid_filter", start)
            logger.info("suggestions_invalid_filter", error=e.message)
            return []

        limit = self._clamp_limit(limit, self.suggestion_limit)
        prefix = words[-1][:MAX_TOKEN_LENGTH]
        required = normalize(" ".join(words[:-1]))
        try:
            entries = await self.store.find_by_prefix(
                prefix,
                required_tokens=required,
                filters=filters,
                visible_department_ids=caller.visible_department_ids if caller else None,
                limit=limit * _SUGGESTION_OVERFETCH,
            )
        except SQLAlchemyError as e:
            self._observe("suggestions", "unavailable", start)
            logger.error("search_unavailable", operation="suggestions", error=str(e))
            return []

        typed = normalize_text(text)
        ordered = sorted(entries, key=lambda entry: self._suggestion_key(entry, typed))

        results: list[Suggestion] = []
        seen: set[str] = set()
        for entry in ordered:
            if entry.normalized_primary_text in seen:
                continue
            seen.add(entry.normalized_primary_text)
            results.append(
                Suggestion(
                    text=entry.primary_text,
                    entity_type=EntityType(entry.entity_type),
                    entity_id=entry.entity_id,
                    slug=entry.slug,
                )
            )
            if len(results) >= limit:
                break

        self._observe("suggestions", "ok" if results else "no_results", start)
        return results

    # ----- Usage and verification -----

    async def record_access(self, entity_type: str | EntityType, entity_id: str) -> bool:
        """Count a click-through on a result. Returns False if no live record matched."""
        parsed = parse_entity_type(entity_type)
        updated = await self.store.increment_access(parsed.value, entity_id)
        logger.debug(
            "search_access_recorded",
            entity_type=parsed.value,
            entity_id=entity_id,
            updated=updated,
        )
        return updated

    async def list_indexed(
        self,
        entity_type: str | EntityType,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[SearchIndexEntry]:
        """Live index records of one type, newest first."""
        parsed = parse_entity_type(entity_type)
        return await self.store.list_by_type(
            parsed.value,
            limit=self._clamp_limit(limit, self.max_limit),
            offset=max(0, offset),
        )

    # ----- Helpers -----

    def _clamp_limit(self, limit: int | None, default: int) -> int:
        if limit is None:
            limit = default
        return max(1, min(limit, self.max_limit))

    @staticmethod
    def _build_filters(
        entity_types: Sequence[str | EntityType] | None,
        department_ids: Sequence[str] | None,
        statuses: Sequence[str] | None,
        years: Sequence[int] | None,
    ) -> SearchFilters:
        return SearchFilters(
            entity_types=tuple(parse_entity_type(t) for t in entity_types or ()),
            department_ids=tuple(str(d) for d in department_ids or () if str(d).strip()),
            statuses=tuple(s.strip() for s in statuses or () if s and s.strip()),
            years=tuple(years or ()),
        )

    @staticmethod
    def _suggestion_key(entry: SearchIndexEntry, typed: str) -> tuple[int, int, float, str]:
        starts = 0 if entry.normalized_primary_text.startswith(typed) else 1
        updated = as_utc(entry.updated_at).timestamp() if entry.updated_at else 0.0
        return (starts, -(entry.access_count or 0), -updated, entry.entity_id)

    @staticmethod
    def _to_hit(
        ranked: RankedRecord[SearchIndexEntry],
        best_score: float,
        tokens: Sequence[str],
    ) -> SearchHit:
        record = ranked.record
        entity_type = EntityType(record.entity_type)
        match_score = round(100 * ranked.score / best_score) if best_score > 0 else 0
        highlighted = set(tokens)
        return SearchHit(
            entity_type=entity_type,
            entity_id=record.entity_id,
            primary_text=record.primary_text,
            secondary_text=record.secondary_text,
            slug=record.slug,
            status=record.status,
            department_id=record.department_id,
            year=record.year,
            score=ranked.score,
            match_score=max(0, min(100, match_score)),
            matched_fields=ranked.matched_fields,
            highlights={
                PRIMARY_FIELD: create_highlight(record.primary_text, highlighted),
                SECONDARY_FIELD: create_highlight(record.secondary_text, highlighted),
            },
            source_url=source_url(entity_type, record.entity_id, record.year, record.parent_slug),
            page_depth_text=page_depth_text(entity_type),
            updated_at=record.updated_at,
        )

    @staticmethod
    def _observe(operation: str, outcome: str, start: float) -> None:
        SEARCH_QUERIES.labels(operation=operation, outcome=outcome).inc()
        SEARCH_QUERY_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)
