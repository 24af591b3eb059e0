"""Search index repository."""

from collections.abc import Collection, Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update

from ppdo.domain.search.types import SearchFilters
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry, SearchIndexToken
from ppdo.infrastructure.database.repositories.base import BaseRepository


class SearchIndexRepository(BaseRepository[SearchIndexEntry]):
    """Persistence for index records and their token postings."""

    model_class = SearchIndexEntry

    # ----- Filters -----

    @staticmethod
    def _apply_filters(
        query: Any,
        filters: SearchFilters | None,
        visible_department_ids: Collection[str] | None,
    ) -> Any:
        query = query.where(SearchIndexEntry.is_deleted.is_(False))
        if filters is not None:
            if filters.entity_types:
                query = query.where(
                    SearchIndexEntry.entity_type.in_([t.value for t in filters.entity_types])
                )
            if filters.department_ids:
                query = query.where(SearchIndexEntry.department_id.in_(filters.department_ids))
            if filters.statuses:
                query = query.where(SearchIndexEntry.status.in_(filters.statuses))
            if filters.years:
                query = query.where(SearchIndexEntry.year.in_(filters.years))
        if visible_department_ids is not None:
            query = query.where(SearchIndexEntry.department_id.in_(list(visible_department_ids)))
        return query

    # ----- Records -----

    async def get_by_entity(self, entity_type: str, entity_id: str) -> SearchIndexEntry | None:
        """Get the record for one entity, tombstones included."""
        result = await self.session.execute(
            select(SearchIndexEntry).where(
                SearchIndexEntry.entity_type == entity_type,
                SearchIndexEntry.entity_id == entity_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_many(self, ids: Collection[UUID]) -> Sequence[SearchIndexEntry]:
        if not ids:
            return []
        result = await self.session.execute(
            select(SearchIndexEntry).where(SearchIndexEntry.id.in_(list(ids)))
        )
        return result.scalars().all()

    async def save(self, entry: SearchIndexEntry) -> SearchIndexEntry:
        """Add or update a record and flush it so it has an id."""
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def replace_tokens(
        self,
        entry: SearchIndexEntry,
        primary_tokens: Sequence[str],
        secondary_tokens: Sequence[str],
    ) -> int:
        """Replace the postings of one record. Tombstones keep none.

        Returns the number of postings written.
        """
        await self.session.execute(
            delete(SearchIndexToken).where(SearchIndexToken.entry_id == entry.id)
        )
        if entry.is_deleted:
            return 0

        primary = set(primary_tokens)
        secondary = set(secondary_tokens)
        ordered = list(dict.fromkeys([*primary_tokens, *secondary_tokens]))
        if not ordered:
            return 0

        await self.session.execute(
            insert(SearchIndexToken),
            [
                {
                    "entry_id": entry.id,
                    "token": token,
                    "entity_type": entry.entity_type,
                    "in_primary": token in primary,
                    "in_secondary": token in secondary,
                }
                for token in ordered
            ],
        )
        return len(ordered)

    async def delete_entries(self, entry_ids: Collection[UUID]) -> int:
        """Physically delete records and their postings."""
        if not entry_ids:
            return 0
        ids = list(entry_ids)
        await self.session.execute(
            delete(SearchIndexToken).where(SearchIndexToken.entry_id.in_(ids))
        )
        await self.session.execute(delete(SearchIndexEntry).where(SearchIndexEntry.id.in_(ids)))
        await self.session.flush()
        return len(ids)

    async def delete_by_entity_id(self, entity_id: str) -> int:
        """Delete every record mirroring ``entity_id``. Returns how many went."""
        result = await self.session.execute(
            select(SearchIndexEntry.id).where(SearchIndexEntry.entity_id == entity_id)
        )
        ids = [row[0] for row in result.all()]
        return await self.delete_entries(ids)

    async def increment_access(self, entity_type: str, entity_id: str) -> bool:
        result = await self.session.execute(
            update(SearchIndexEntry)
            .where(
                SearchIndexEntry.entity_type == entity_type,
                SearchIndexEntry.entity_id == entity_id,
                SearchIndexEntry.is_deleted.is_(False),
            )
            .values(access_count=SearchIndexEntry.access_count + 1)
        )
        return (result.rowcount or 0) > 0

    async def list_by_type(
        self,
        entity_type: str,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[SearchIndexEntry]:
        """Live records of one type, most recently updated first."""
        result = await self.session.execute(
            select(SearchIndexEntry)
            .where(
                SearchIndexEntry.entity_type == entity_type,
                SearchIndexEntry.is_deleted.is_(False),
            )
            .order_by(SearchIndexEntry.updated_at.desc(), SearchIndexEntry.entity_id.asc())
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all()

    async def entry_ids_by_entity(self, entity_type: str) -> dict[str, UUID]:
        """Map entity id -> record id for every record of a type, tombstones included."""
        result = await self.session.execute(
            select(SearchIndexEntry.entity_id, SearchIndexEntry.id).where(
                SearchIndexEntry.entity_type == entity_type
            )
        )
        return {entity_id: entry_id for entity_id, entry_id in result.all()}

    async def clear(self, entity_type: str | None = None) -> int:
        """Delete every record of one type, or the whole index, with postings."""
        query = select(SearchIndexEntry.id)
        if entity_type is not None:
            query = query.where(SearchIndexEntry.entity_type == entity_type)
        result = await self.session.execute(query)
        return await self.delete_entries([row[0] for row in result.all()])

    # ----- Query side -----

    async def find_candidates(
        self,
        tokens: Sequence[str],
        *,
        filters: SearchFilters | None = None,
        visible_department_ids: Collection[str] | None = None,
        max_candidates: int = 500,
    ) -> tuple[list[SearchIndexEntry], bool]:
        """Live records sharing at least one token with the query.

        Records matching more query tokens are preferred when the cap is hit.
        Returns the records and whether the cap truncated the candidate set.
        """
        if not tokens:
            return [], False

        hits = func.count(SearchIndexToken.token)
        query = (
            select(SearchIndexToken.entry_id)
            .join(SearchIndexEntry, SearchIndexEntry.id == SearchIndexToken.entry_id)
            .where(SearchIndexToken.token.in_(list(tokens)))
            .group_by(SearchIndexToken.entry_id)
            .order_by(
                hits.desc(),
                func.max(SearchIndexEntry.updated_at).desc(),
                SearchIndexToken.entry_id.asc(),
            )
            .limit(max_candidates + 1)
        )
        query = self._apply_filters(query, filters, visible_department_ids)
        result = await self.session.execute(query)
        ids = [row[0] for row in result.all()]

        truncated = len(ids) > max_candidates
        entries = await self.get_many(ids[:max_candidates])
        return list(entries), truncated

    async def document_frequencies(self, tokens: Sequence[str]) -> dict[str, int]:
        """Number of live records containing each token."""
        if not tokens:
            return {}
        result = await self.session.execute(
            select(SearchIndexToken.token, func.count(SearchIndexToken.entry_id))
            .where(SearchIndexToken.token.in_(list(tokens)))
            .group_by(SearchIndexToken.token)
        )
        frequencies = {token: 0 for token in tokens}
        frequencies.update({token: count for token, count in result.all()})
        return frequencies

    async def count_live(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(SearchIndexEntry)
            .where(SearchIndexEntry.is_deleted.is_(False))
        )
        return result.scalar_one()

    async def counts_by_type(
        self,
        tokens: Sequence[str] | None = None,
        *,
        filters: SearchFilters | None = None,
        visible_department_ids: Collection[str] | None = None,
    ) -> dict[str, int]:
        """Live record counts per entity type.

        With tokens, only records sharing at least one token are counted.
        """
        if tokens:
            query = (
                select(
                    SearchIndexEntry.entity_type,
                    func.count(func.distinct(SearchIndexEntry.id)),
                )
                .join(SearchIndexToken, SearchIndexToken.entry_id == SearchIndexEntry.id)
                .where(SearchIndexToken.token.in_(list(tokens)))
                .group_by(SearchIndexEntry.entity_type)
            )
        else:
            query = select(SearchIndexEntry.entity_type, func.count(SearchIndexEntry.id)).group_by(
                SearchIndexEntry.entity_type
            )
        query = self._apply_filters(query, filters, visible_department_ids)
        result = await self.session.execute(query)
        return {entity_type: count for entity_type, count in result.all()}

    async def find_by_prefix(
        self,
        prefix: str,
        *,
        required_tokens: Sequence[str] = (),
        filters: SearchFilters | None = None,
        visible_department_ids: Collection[str] | None = None,
        limit: int = 20,
    ) -> Sequence[SearchIndexEntry]:
        """Live records with a primary-text token starting with ``prefix``.

        Every token in ``required_tokens`` must also be present.
        """
        prefixed = select(SearchIndexToken.entry_id).where(
            SearchIndexToken.in_primary.is_(True),
            SearchIndexToken.token.startswith(prefix, autoescape=True),
        )
        query = select(SearchIndexEntry).where(SearchIndexEntry.id.in_(prefixed))

        required = list(dict.fromkeys(required_tokens))
        if required:
            having_all = (
                select(SearchIndexToken.entry_id)
                .where(SearchIndexToken.token.in_(required))
                .group_by(SearchIndexToken.entry_id)
                .having(func.count(func.distinct(SearchIndexToken.token)) == len(required))
            )
            query = query.where(SearchIndexEntry.id.in_(having_all))

        query = self._apply_filters(query, filters, visible_department_ids)
        query = query.order_by(
            SearchIndexEntry.access_count.desc(),
            SearchIndexEntry.updated_at.desc(),
            SearchIndexEntry.entity_id.asc(),
        ).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()
