"""Ports for the search domain."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import AsyncContextManager, Protocol
from uuid import UUID

from ppdo.domain.search.types import IndexUpdate, SearchFilters
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry


class Searchable(Protocol):
    """A source entity that knows how it is mirrored into the search index.

    Every source model exposes this so the write path and the reindex job
    share one field mapping.
    """

    def to_index_update(self) -> IndexUpdate:
        """Describe this entity as an index write."""


class SearchIndexStore(Protocol):
    """Index storage used by the indexer, the query service and reindex."""

    def begin_nested(self) -> AsyncContextManager[None]:
        """Open a savepoint around a single index write."""

    async def get_by_entity(self, entity_type: str, entity_id: str) -> SearchIndexEntry | None:
        """Get the record for one entity, tombstones included."""

    async def save(self, entry: SearchIndexEntry) -> SearchIndexEntry:
        """Add or update a record and flush it."""

    async def replace_tokens(
        self,
        entry: SearchIndexEntry,
        primary_tokens: Sequence[str],
        secondary_tokens: Sequence[str],
    ) -> int:
        """Rewrite the postings of one record."""

    async def delete_by_entity_id(self, entity_id: str) -> int:
        """Delete every record mirroring an entity id."""

    async def delete_entries(self, entry_ids: Collection[UUID]) -> int:
        """Delete records by record id."""

    async def entry_ids_by_entity(self, entity_type: str) -> dict[str, UUID]:
        """Map entity id to record id for one type."""

    async def clear(self, entity_type: str | None = None) -> int:
        """Delete every record of one type, or all records."""

    async def find_candidates(
        self,
        tokens: Sequence[str],
        *,
        filters: SearchFilters | None = None,
        visible_department_ids: Collection[str] | None = None,
        max_candidates: int = 500,
    ) -> tuple[list[SearchIndexEntry], bool]:
        """Live records sharing a token with the query, capped."""

    async def document_frequencies(self, tokens: Sequence[str]) -> dict[str, int]:
        """Live document frequency of each token."""

    async def count_live(self) -> int:
        """Number of live records."""

    async def counts_by_type(
        self,
        tokens: Sequence[str] | None = None,
        *,
        filters: SearchFilters | None = None,
        visible_department_ids: Collection[str] | None = None,
    ) -> dict[str, int]:
        """Live record counts per entity type."""

    async def find_by_prefix(
        self,
        prefix: str,
        *,
        required_tokens: Sequence[str] = (),
        filters: SearchFilters | None = None,
        visible_department_ids: Collection[str] | None = None,
        limit: int = 20,
    ) -> Sequence[SearchIndexEntry]:
        """Live records with a primary token starting with ``prefix``."""

    async def increment_access(self, entity_type: str, entity_id: str) -> bool:
        """Bump a record's access counter."""

    async def list_by_type(
        self,
        entity_type: str,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[SearchIndexEntry]:
        """Live records of one type."""
