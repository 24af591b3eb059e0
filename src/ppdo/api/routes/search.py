"""Search API routes."""

from collections.abc import Sequence
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from ppdo.api.deps import CallerScopeDep, ReindexServiceDep, SearchServiceDep
from ppdo.api.middleware.auth import CurrentUser, RequireAdmin
from ppdo.api.ratelimit import (
    RATE_LIMIT_REINDEX,
    RATE_LIMIT_SEARCH,
    RATE_LIMIT_SUGGEST,
    limiter,
)
from ppdo.domain.search.types import (
    ReindexStats,
    ReindexSummary,
    SearchHit,
    SearchPage,
    Suggestion,
    TypeIndexStats,
)
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry
from ppdo.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])


# ----- Request/Response Schemas -----


class SearchHitResponse(BaseModel):
    """One ranked search result."""

    entity_type: str
    entity_id: str
    primary_text: str
    secondary_text: str | None
    slug: str
    status: str | None
    department_id: str | None
    year: int | None
    score: float
    match_score: int
    matched_fields: list[str]
    highlights: dict[str, str | None]
    source_url: str
    page_depth_text: str
    updated_at: datetime | None


class SearchResponse(BaseModel):
    """A page of ranked search results."""

    query: str
    normalized_query: str
    results: list[SearchHitResponse]
    total: int
    offset: int
    limit: int
    has_more: bool
    truncated: bool
    error: str | None
    available: bool


class CategoryCountsResponse(BaseModel):
    """Matching records per entity type."""

    counts: dict[str, int]
    total: int


class SuggestionResponse(BaseModel):
    """Type-ahead suggestion."""

    text: str
    entity_type: str
    entity_id: str
    slug: str


class AccessRequest(BaseModel):
    """Click-through on a search result."""

    entity_type: str = Field(..., min_length=1)
    entity_id: str = Field(..., min_length=1, max_length=64)


class AccessResponse(BaseModel):
    updated: bool


class IndexRecordResponse(BaseModel):
    """An index record as stored, for verification."""

    id: str
    entity_type: str
    entity_id: str
    primary_text: str
    secondary_text: str | None
    tokens: list[str]
    slug: str
    department_id: str | None
    status: str | None
    year: int | None
    parent_slug: str | None
    access_count: int
    updated_at: datetime
    indexed_at: datetime
    last_reindexed_at: datetime


class TypeStatsResponse(BaseModel):
    entity_type: str
    label: str
    source_count: int
    indexed_count: int
    coverage: float


class IndexStatsResponse(BaseModel):
    """Index coverage per entity type and overall."""

    types: list[TypeStatsResponse]
    total_source: int
    total_indexed: int
    coverage: float


class ReindexRequest(BaseModel):
    """Reindex one entity type, or everything when omitted."""

    entity_type: str | None = None


class ClearIndexResponse(BaseModel):
    deleted: int


class ReindexTypeResponse(BaseModel):
    entity_type: str
    total: int
    indexed: int
    skipped: int
    errors: int
    pruned: int
    error_details: list[dict[str, str]]


class ReindexResponse(BaseModel):
    """Outcome of a reindex run."""

    stats: list[ReindexTypeResponse]
    total: int
    indexed: int
    skipped: int
    errors: int
    pruned: int


# ----- Helper Functions -----


def _hit_to_response(hit: SearchHit) -> SearchHitResponse:
    return SearchHitResponse(
        entity_type=hit.entity_type.value,
        entity_id=hit.entity_id,
        primary_text=hit.primary_text,
        secondary_text=hit.secondary_text,
        slug=hit.slug,
        status=hit.status,
        department_id=hit.department_id,
        year=hit.year,
        score=round(hit.score, 6),
        match_score=hit.match_score,
        matched_fields=hit.matched_fields,
        highlights=hit.highlights,
        source_url=hit.source_url,
        page_depth_text=hit.page_depth_text,
        updated_at=hit.updated_at,
    )


def _page_to_response(page: SearchPage) -> SearchResponse:
    return SearchResponse(
        query=page.query,
        normalized_query=page.normalized_query,
        results=[_hit_to_response(hit) for hit in page.results],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
        truncated=page.truncated,
        error=page.error,
        available=page.available,
    )


def _suggestion_to_response(suggestion: Suggestion) -> SuggestionResponse:
    return SuggestionResponse(
        text=suggestion.text,
        entity_type=suggestion.entity_type.value,
        entity_id=suggestion.entity_id,
        slug=suggestion.slug,
    )


def _entry_to_response(entry: SearchIndexEntry) -> IndexRecordResponse:
    return IndexRecordResponse(
        id=str(entry.id),
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        primary_text=entry.primary_text,
        secondary_text=entry.secondary_text,
        tokens=list(entry.tokens),
        slug=entry.slug,
        department_id=entry.department_id,
        status=entry.status,
        year=entry.year,
        parent_slug=entry.parent_slug,
        access_count=entry.access_count,
        updated_at=entry.updated_at,
        indexed_at=entry.indexed_at,
        last_reindexed_at=entry.last_reindexed_at,
    )


def _stats_to_response(stats: ReindexStats) -> ReindexTypeResponse:
    return ReindexTypeResponse(
        entity_type=stats.entity_type.value,
        total=stats.total,
        indexed=stats.indexed,
        skipped=stats.skipped,
        errors=stats.errors,
        pruned=stats.pruned,
        error_details=stats.error_details,
    )


def _index_stats_to_response(stats: Sequence[TypeIndexStats]) -> IndexStatsResponse:
    total_source = sum(s.source_count for s in stats)
    total_indexed = sum(s.indexed_count for s in stats)
    overall = 100.0
    if total_source:
        overall = round(100.0 * min(total_indexed, total_source) / total_source, 1)
    return IndexStatsResponse(
        types=[
            TypeStatsResponse(
                entity_type=s.entity_type.value,
                label=s.entity_type.plural_label,
                source_count=s.source_count,
                indexed_count=s.indexed_count,
                coverage=s.coverage,
            )
            for s in stats
        ],
        total_source=total_source,
        total_indexed=total_indexed,
        coverage=overall,
    )


# ----- Routes -----


@router.get("", response_model=SearchResponse)
@limiter.limit(RATE_LIMIT_SEARCH)
async def search(
    request: Request,
    user: CurrentUser,
    service: SearchServiceDep,
    caller: CallerScopeDep,
    q: str = Query("", max_length=500, description="Search query"),
    entity_type: Annotated[list[str] | None, Query()] = None,
    department_id: Annotated[list[str] | None, Query()] = None,
    status: Annotated[list[str] | None, Query()] = None,
    year: Annotated[list[int] | None, Query()] = None,
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
) -> SearchResponse:
    """Ranked search across every indexed entity type."""
    page = await service.search(
        q,
        entity_types=entity_type,
        department_ids=department_id,
        statuses=status,
        years=year,
        limit=limit,
        offset=offset,
        caller=caller,
    )
    return _page_to_response(page)


@router.get("/categories", response_model=CategoryCountsResponse)
@limiter.limit(RATE_LIMIT_SEARCH)
async def category_counts(
    request: Request,
    user: CurrentUser,
    service: SearchServiceDep,
    caller: CallerScopeDep,
    q: str | None = Query(None, max_length=500),
    department_id: Annotated[list[str] | None, Query()] = None,
    status: Annotated[list[str] | None, Query()] = None,
    year: Annotated[list[int] | None, Query()] = None,
) -> CategoryCountsResponse:
    """Matching record counts per entity type, for the category sidebar."""
    counts = await service.category_counts(
        q,
        department_ids=department_id,
        statuses=status,
        years=year,
        caller=caller,
    )
    return CategoryCountsResponse(counts=counts, total=sum(counts.values()))


@router.get("/suggestions", response_model=list[SuggestionResponse])
@limiter.limit(RATE_LIMIT_SUGGEST)
async def suggestions(
    request: Request,
    user: CurrentUser,
    service: SearchServiceDep,
    caller: CallerScopeDep,
    q: str = Query("", max_length=200),
    limit: int | None = Query(None, ge=1),
    entity_type: Annotated[list[str] | None, Query()] = None,
) -> list[SuggestionResponse]:
    """Type-ahead suggestions for a partial query."""
    results = await service.suggestions(q, limit=limit, entity_types=entity_type, caller=caller)
    return [_suggestion_to_response(s) for s in results]


@router.post("/access", response_model=AccessResponse)
async def record_access(
    user: CurrentUser,
    service: SearchServiceDep,
    body: AccessRequest,
) -> AccessResponse:
    """Record that a search result was opened."""
    updated = await service.record_access(body.entity_type, body.entity_id)
    return AccessResponse(updated=updated)


@router.get("/index/{entity_type}", response_model=list[IndexRecordResponse])
async def list_indexed(
    entity_type: str,
    user: RequireAdmin,
    service: SearchServiceDep,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[IndexRecordResponse]:
    """Index records of one entity type, for verification."""
    entries = await service.list_indexed(entity_type, limit=limit, offset=offset)
    return [_entry_to_response(e) for e in entries]


@router.get("/index-stats", response_model=IndexStatsResponse)
async def index_stats(
    user: RequireAdmin,
    reindex: ReindexServiceDep,
) -> IndexStatsResponse:
    """Source versus index record counts per entity type."""
    return _index_stats_to_response(await reindex.index_stats())


@router.delete("/index", response_model=ClearIndexResponse)
@limiter.limit(RATE_LIMIT_REINDEX)
async def clear_index(
    request: Request,
    user: RequireAdmin,
    reindex: ReindexServiceDep,
    entity_type: str | None = Query(None),
) -> ClearIndexResponse:
    """Wipe index records of one entity type, or the whole index."""
    logger.info("clear_index_requested", entity_type=entity_type, requested_by=user.id)
    return ClearIndexResponse(deleted=await reindex.clear_index(entity_type))


@router.post("/reindex", response_model=ReindexResponse)
@limiter.limit(RATE_LIMIT_REINDEX)
async def run_reindex(
    request: Request,
    user: RequireAdmin,
    reindex: ReindexServiceDep,
    body: ReindexRequest | None = None,
) -> ReindexResponse:
    """Rebuild the index for one entity type or for all of them."""
    logger.info(
        "reindex_requested",
        entity_type=body.entity_type if body else None,
        requested_by=user.id,
    )
    if body is not None and body.entity_type:
        summary = ReindexSummary(stats=[await reindex.reindex_type(body.entity_type)])
    else:
        summary = await reindex.reindex_all()

    return ReindexResponse(
        stats=[_stats_to_response(s) for s in summary.stats],
        total=summary.total,
        indexed=summary.indexed,
        skipped=summary.skipped,
        errors=summary.errors,
        pruned=summary.pruned,
    )
