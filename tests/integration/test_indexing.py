"""Integration tests for the indexing protocol against a real database."""

from datetime import timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from ppdo.domain.search.indexing import SearchIndexer
from ppdo.domain.search.ranking import as_utc
from ppdo.domain.search.types import EntityType, IndexUpdate
from ppdo.infrastructure.database.models.search_index import SearchIndexEntry, SearchIndexToken
from ppdo.shared.exceptions import IndexingError, IndexingValidationError


async def _count(session, model, *conditions) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


class BrokenEntity:
    """A source entity whose index update is always rejected."""

    def to_index_update(self) -> IndexUpdate:
        return IndexUpdate(entity_type=EntityType.AGENCY, entity_id="a1", primary_text="   ")


class UnwritableStore:
    """Index store whose writes fail at the database."""

    def __init__(self, store):
        self._store = store

    def __getattr__(self, name):
        return getattr(self._store, name)

    async def save(self, entry):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))


class TestIndexEntity:
    """Test creating and replacing index records."""

    async def test_creates_record_with_derived_fields(self, indexer, store, make_update, fixed_now):
        update = make_update(
            "b1",
            "Road Repair Program",
            secondary_text="Engineering Office",
            department_id="d1",
            status="ongoing",
            year=2024,
        )

        result = await indexer.index_entity(update)

        assert result.created is True
        assert result.token_count == 5
        entry = await store.get_by_entity("budgetItem", "b1")
        assert entry is not None
        assert entry.tokens == ["road", "repair", "program", "engineering", "office"]
        assert entry.normalized_primary_text == "road repair program"
        assert entry.slug == "road-repair-program-b1"
        assert entry.department_id == "d1"
        assert entry.year == 2024
        assert entry.access_count == 0
        assert as_utc(entry.indexed_at) == fixed_now
        assert as_utc(entry.last_reindexed_at) == fixed_now

    async def test_reindexing_same_update_is_idempotent(self, indexer, store, session, make_update):
        update = make_update("b1", "Road Repair", secondary_text="Engineering")

        await indexer.index_entity(update)
        first = (await store.get_by_entity("budgetItem", "b1")).snapshot()
        second_result = await indexer.index_entity(update)
        second = (await store.get_by_entity("budgetItem", "b1")).snapshot()

        assert second_result.created is False
        assert first == second
        assert await _count(session, SearchIndexEntry) == 1
        assert await _count(session, SearchIndexToken) == 3

    async def test_update_replaces_tokens(self, indexer, store, make_update):
        await indexer.index_entity(make_update("b1", "Road Repair"))
        await indexer.index_entity(make_update("b1", "Bridge Construction"))

        old, _ = await store.find_candidates(["road"])
        new, _ = await store.find_candidates(["bridge"])

        assert old == []
        assert [e.entity_id for e in new] == ["b1"]

    async def test_update_keeps_access_count_and_first_index_time(
        self, store, make_update, fixed_now
    ):
        later = fixed_now + timedelta(days=3)
        await SearchIndexer(store, clock=lambda: fixed_now).index_entity(make_update("b1", "Road"))
        await store.increment_access("budgetItem", "b1")

        await SearchIndexer(store, clock=lambda: later).index_entity(make_update("b1", "Road"))

        entry = await store.get_by_entity("budgetItem", "b1")
        assert entry.access_count == 1
        assert as_utc(entry.indexed_at) == fixed_now
        assert as_utc(entry.last_reindexed_at) == later

    async def test_same_id_under_two_types_is_two_records(self, indexer, session, make_update):
        await indexer.index_entity(make_update("x1", "Road"))
        await indexer.index_entity(make_update("x1", "Road", EntityType.TRUST_FUND))

        assert await _count(session, SearchIndexEntry) == 2


class TestTombstones:
    """Test soft-deleted sources."""

    async def test_tombstone_keeps_record_without_postings(
        self, indexer, store, session, make_update
    ):
        await indexer.index_entity(make_update("b1", "Road Repair"))

        result = await indexer.index_entity(make_update("b1", "Road Repair", is_deleted=True))

        entry = await store.get_by_entity("budgetItem", "b1")
        assert entry is not None
        assert entry.is_deleted is True
        assert result.token_count == 0
        assert await _count(session, SearchIndexToken) == 0
        assert await store.count_live() == 0
        assert await store.find_candidates(["road"]) == ([], False)

    async def test_tombstone_can_be_revived(self, indexer, store, make_update):
        await indexer.index_entity(make_update("b1", "Road", is_deleted=True))
        await indexer.index_entity(make_update("b1", "Road"))

        candidates, _ = await store.find_candidates(["road"])

        assert [e.entity_id for e in candidates] == ["b1"]


class TestRemoveFromIndex:
    """Test physical removal after hard deletes."""

    async def test_removes_every_record_for_the_id(self, indexer, session, make_update):
        await indexer.index_entity(make_update("x1", "Road"))
        await indexer.index_entity(make_update("x1", "Road", EntityType.TRUST_FUND))

        removed = await indexer.remove_from_index("x1")

        assert removed == 2
        assert await _count(session, SearchIndexEntry) == 0
        assert await _count(session, SearchIndexToken) == 0

    async def test_removing_unknown_id_is_a_no_op(self, indexer):
        assert await indexer.remove_from_index("missing") == 0

    async def test_empty_id_rejected(self, indexer):
        with pytest.raises(IndexingValidationError):
            await indexer.remove_from_index("  ")


class TestValidation:
    """Test malformed updates are rejected."""

    async def test_empty_primary_text(self, indexer, make_update):
        with pytest.raises(IndexingValidationError) as exc_info:
            await indexer.index_entity(make_update("b1", "  "))

        assert exc_info.value.details["field"] == "primary_text"

    async def test_entity_id_too_long(self, indexer, make_update):
        with pytest.raises(IndexingValidationError):
            await indexer.index_entity(make_update("x" * 65, "Road"))

    async def test_empty_entity_id(self, indexer, make_update):
        with pytest.raises(IndexingValidationError):
            await indexer.index_entity(make_update("", "Road"))

    async def test_unknown_entity_type(self, indexer):
        update = IndexUpdate(entity_type="contract", entity_id="c1", primary_text="Lease")

        with pytest.raises(IndexingValidationError) as exc_info:
            await indexer.index_entity(update)

        assert exc_info.value.details["field"] == "entity_type"


class TestSyncWrappers:
    """Test the write-path wrappers never fail the caller."""

    async def test_sync_failure_returns_false(self, indexer, store):
        assert await indexer.sync(BrokenEntity()) is False
        assert await store.count_live() == 0

    async def test_session_usable_after_failed_sync(self, indexer, store, make_update):
        await indexer.sync(BrokenEntity())

        await indexer.index_entity(make_update("b1", "Road"))

        assert await store.count_live() == 1

    async def test_remove_failure_returns_false(self, indexer):
        assert await indexer.remove("", EntityType.AGENCY) is False

    async def test_remove_success(self, indexer, store, make_update):
        await indexer.index_entity(make_update("a1", "Public Works", EntityType.AGENCY))

        assert await indexer.remove("a1", EntityType.AGENCY) is True
        assert await store.get_by_entity("agency", "a1") is None

    async def test_database_write_failure(self, store, make_update):
        indexer = SearchIndexer(UnwritableStore(store))

        with pytest.raises(IndexingError) as exc_info:
            await indexer.index_entity(make_update("b1", "Road"))

        assert exc_info.value.details == {"entity_type": "budgetItem", "entity_id": "b1"}

    async def test_sync_survives_database_write_failure(self, store, make_update):
        indexer = SearchIndexer(UnwritableStore(store))
        entity = SimpleNamespace(to_index_update=lambda: make_update("b1", "Road"))

        assert await indexer.sync(entity) is False
        assert await store.get_by_entity("budgetItem", "b1") is None

    async def test_sync_survives_mapping_error(self, indexer, store, make_update):
        def unmappable() -> None:
            raise ValueError("'pending' is not a valid status")

        assert await indexer.sync(SimpleNamespace(id="u1", to_index_update=unmappable)) is False

        await indexer.index_entity(make_update("b1", "Road"))
        assert await store.count_live() == 1
