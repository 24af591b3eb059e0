"""Search domain types.

Kept free of infrastructure imports so that source models can produce
``IndexUpdate`` values without circular imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EntityType(str, Enum):
    """Closed set of entity types mirrored into the search index."""

    # 1st page - list views
    BUDGET_ITEM = "budgetItem"
    TWENTY_PERCENT_DF = "twentyPercentDF"
    TRUST_FUND = "trustFund"
    SPECIAL_EDUCATION_FUND = "specialEducationFund"
    SPECIAL_HEALTH_FUND = "specialHealthFund"
    DEPARTMENT = "department"
    AGENCY = "agency"
    USER = "user"
    # 2nd page - detail views
    PROJECT_ITEM = "projectItem"
    # 3rd page - breakdown views
    PROJECT_BREAKDOWN = "projectBreakdown"

    @classmethod
    def parse(cls, value: str | EntityType) -> EntityType:
        """Resolve a raw value, raising ``ValueError`` for unknown types."""
        if isinstance(value, EntityType):
            return value
        return cls(value)

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @property
    def label(self) -> str:
        return ENTITY_LABELS[self][0]

    @property
    def plural_label(self) -> str:
        return ENTITY_LABELS[self][1]

    @property
    def page_depth(self) -> int:
        return ENTITY_PAGE_DEPTHS[self]


ENTITY_LABELS: dict[EntityType, tuple[str, str]] = {
    EntityType.BUDGET_ITEM: ("Budget Item", "Budget Items"),
    EntityType.TWENTY_PERCENT_DF: ("20% Development Fund", "20% Development Funds"),
    EntityType.TRUST_FUND: ("Trust Fund", "Trust Funds"),
    EntityType.SPECIAL_EDUCATION_FUND: ("Special Education Fund", "Special Education Funds"),
    EntityType.SPECIAL_HEALTH_FUND: ("Special Health Fund", "Special Health Funds"),
    EntityType.DEPARTMENT: ("Department", "Departments"),
    EntityType.AGENCY: ("Implementing Agency", "Implementing Agencies"),
    EntityType.USER: ("User", "Users"),
    EntityType.PROJECT_ITEM: ("Project", "Projects"),
    EntityType.PROJECT_BREAKDOWN: ("Project Breakdown", "Project Breakdowns"),
}

# Navigation depth of the page an entity lives on:
# 1 = list view, 2 = detail view, 3 = breakdown view.
ENTITY_PAGE_DEPTHS: dict[EntityType, int] = {
    EntityType.BUDGET_ITEM: 1,
    EntityType.TWENTY_PERCENT_DF: 1,
    EntityType.TRUST_FUND: 1,
    EntityType.SPECIAL_EDUCATION_FUND: 1,
    EntityType.SPECIAL_HEALTH_FUND: 1,
    EntityType.DEPARTMENT: 1,
    EntityType.AGENCY: 1,
    EntityType.USER: 1,
    EntityType.PROJECT_ITEM: 2,
    EntityType.PROJECT_BREAKDOWN: 3,
}


_ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def ordinal(n: int) -> str:
    """Return ``n`` with its English ordinal suffix (1st, 2nd, 11th, 23rd)."""
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    suffix = _ORDINAL_SUFFIXES.get(n % 10, "th")
    return f"{n}{suffix}"


def page_depth_text(entity_type: EntityType) -> str:
    """Display text such as "Found in 2nd page"."""
    return f"Found in {ordinal(entity_type.page_depth)} page"


@dataclass(frozen=True)
class IndexUpdate:
    """Everything the indexing protocol needs to (re)write one index record."""

    entity_type: EntityType
    entity_id: str
    primary_text: str
    secondary_text: str | None = None
    department_id: str | None = None
    status: str | None = None
    year: int | None = None
    parent_id: str | None = None
    parent_slug: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_deleted: bool = False


@dataclass(frozen=True)
class IndexResult:
    """Outcome of a single ``index_entity`` call."""

    entry_id: Any
    entity_type: EntityType
    entity_id: str
    token_count: int
    created: bool


@dataclass(frozen=True)
class CallerScope:
    """Department visibility and affinity of the caller.

    ``related_department_ids`` holds the caller department's parent, children
    and siblings.
    """

    department_id: str | None = None
    related_department_ids: frozenset[str] = frozenset()
    restrict_to_department: bool = False

    @property
    def visible_department_ids(self) -> list[str] | None:
        """Department pre-filter, or None when the caller sees everything."""
        if not self.restrict_to_department:
            return None
        return [self.department_id] if self.department_id else []


@dataclass(frozen=True)
class SearchFilters:
    """Optional pre-filters applied before candidates are scored."""

    entity_types: tuple[EntityType, ...] = ()
    department_ids: tuple[str, ...] = ()
    statuses: tuple[str, ...] = ()
    years: tuple[int, ...] = ()


@dataclass
class SearchHit:
    """One ranked search result with everything the UI needs to render it."""

    entity_type: EntityType
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


@dataclass
class SearchPage:
    """A page of ranked results.

    ``available`` is False when the search backend failed, which callers must
    present differently from an empty result.
    """

    query: str
    normalized_query: str
    results: list[SearchHit] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0
    has_more: bool = False
    truncated: bool = False
    error: str | None = None
    available: bool = True


@dataclass(frozen=True)
class Suggestion:
    """A type-ahead suggestion."""

    text: str
    entity_type: EntityType
    entity_id: str
    slug: str


@dataclass
class ReindexStats:
    """Per-entity-type outcome of a reindex run."""

    entity_type: EntityType
    total: int = 0
    indexed: int = 0
    skipped: int = 0
    errors: int = 0
    pruned: int = 0
    error_details: list[dict[str, str]] = field(default_factory=list)


@dataclass
class ReindexSummary:
    """Outcome of a full reindex across every entity type."""

    stats: list[ReindexStats] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(s.total for s in self.stats)

    @property
    def indexed(self) -> int:
        return sum(s.indexed for s in self.stats)

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.stats)

    @property
    def errors(self) -> int:
        return sum(s.errors for s in self.stats)

    @property
    def pruned(self) -> int:
        return sum(s.pruned for s in self.stats)


@dataclass(frozen=True)
class TypeIndexStats:
    """Source versus index coverage for one entity type."""

    entity_type: EntityType
    source_count: int
    indexed_count: int

    @property
    def coverage(self) -> float:
        if self.source_count == 0:
            return 100.0
        return round(100.0 * min(self.indexed_count, self.source_count) / self.source_count, 1)
