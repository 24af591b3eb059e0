"""Integration tests for reindexing the search index from source tables."""

from datetime import UTC, datetime

import pytest

from ppdo.domain.search.reindex import ENTITY_SOURCES, ReindexService
from ppdo.domain.search.types import EntityType
from ppdo.infrastructure.database.models import (
    BudgetItem,
    Department,
    ImplementingAgency,
    TrustFund,
    User,
)
from ppdo.shared.exceptions import InvalidSearchFilterError


@pytest.fixture
def reindex(session, store, indexer) -> ReindexService:
    return ReindexService(session, store=store, indexer=indexer, batch_size=2)


@pytest.fixture
async def sources(session):
    """One or more source rows of several entity types."""
    rows = [
        Department(name="Engineering Office", code="ENG"),
        ImplementingAgency(code="DPWH", full_name="Public Works and Highways"),
        BudgetItem(particulars="Road Repair", year=2024),
        BudgetItem(particulars="Bridge Construction", year=2024),
        BudgetItem(
            particulars="Old Seawall",
            year=2020,
            deleted_at=datetime(2024, 1, 1, tzinfo=UTC),
        ),
        TrustFund(project_title="Road Trust", year=2024),
        User(email="juan@ppdo.local", first_name="Juan", last_name="Dela Cruz"),
        User(email=None, first_name="Pending", last_name="Account"),
    ]
    session.add_all(rows)
    await session.commit()
    for row in rows:
        await session.refresh(row)
    return rows


async def _snapshots(store, entity_type: EntityType) -> dict[str, dict]:
    entries = await store.list_by_type(entity_type.value, limit=1000)
    return {e.entity_id: e.snapshot() for e in entries}


class TestReindexType:
    """Test rebuilding one entity type."""

    async def test_indexes_live_rows(self, reindex, store, sources):
        stats = await reindex.reindex_type("budgetItem")

        assert stats.total == 2
        assert stats.indexed == 2
        assert stats.errors == 0
        titles = {e.primary_text for e in await store.list_by_type("budgetItem")}
        assert titles == {"Road Repair", "Bridge Construction"}

    async def test_users_without_email_are_skipped(self, reindex, store, sources):
        stats = await reindex.reindex_type(EntityType.USER)

        assert stats.total == 2
        assert stats.indexed == 1
        assert stats.skipped == 1
        [entry] = await store.list_by_type("user")
        assert entry.primary_text == "Juan Dela Cruz"
        assert entry.secondary_text == "juan@ppdo.local"

    async def test_prunes_orphans(self, reindex, indexer, store, make_update, sources):
        await indexer.index_entity(make_update("ghost", "Vanished Item"))

        stats = await reindex.reindex_type("budgetItem")

        assert stats.pruned == 1
        assert await store.get_by_entity("budgetItem", "ghost") is None

    async def test_prunes_tombstones_of_soft_deleted_rows(self, reindex, indexer, store, sources):
        deleted = sources[4]
        await indexer.sync(deleted)
        tombstone = await store.get_by_entity("budgetItem", str(deleted.id))
        assert tombstone.is_deleted is True

        stats = await reindex.reindex_type("budgetItem")

        assert stats.pruned == 1
        assert await store.get_by_entity("budgetItem", str(deleted.id)) is None

    async def test_bad_row_does_not_stop_the_batch(self, reindex, session, sources):
        broken = BudgetItem(particulars="   ", year=2024)
        session.add(broken)
        await session.commit()

        stats = await reindex.reindex_type("budgetItem")

        assert stats.total == 3
        assert stats.indexed == 2
        assert stats.errors == 1
        assert stats.error_details[0]["entity_id"] == str(broken.id)

    async def test_unknown_user_status_is_indexed_as_stored(self, reindex, store, session):
        session.add(User(email="ana@ppdo.local", first_name="Ana", status="pending"))
        await session.commit()

        stats = await reindex.reindex_type(EntityType.USER)

        assert stats.errors == 0
        [entry] = await store.list_by_type("user")
        assert entry.status == "pending"

    async def test_unknown_type(self, reindex):
        with pytest.raises(InvalidSearchFilterError):
            await reindex.reindex_type("contract")


class TestReindexAll:
    """Test rebuilding the whole index."""

    async def test_covers_every_entity_type(self, reindex, sources):
        summary = await reindex.reindex_all()

        assert [s.entity_type for s in summary.stats] == list(EntityType)
        assert summary.indexed == 6
        assert summary.skipped == 1
        assert summary.errors == 0

    async def test_running_twice_converges(self, reindex, store, sources):
        await reindex.reindex_all()
        first = {t: await _snapshots(store, t) for t in EntityType}

        summary = await reindex.reindex_all()
        second = {t: await _snapshots(store, t) for t in EntityType}

        assert first == second
        assert summary.pruned == 0

    async def test_mapping_error_does_not_stop_the_run(self, reindex, sources, monkeypatch):
        original = BudgetItem.to_index_update

        def to_index_update(self):
            if self.particulars == "Road Repair":
                raise ValueError("unmappable row")
            return original(self)

        monkeypatch.setattr(BudgetItem, "to_index_update", to_index_update)

        summary = await reindex.reindex_all()

        assert [s.entity_type for s in summary.stats] == list(EntityType)
        budget = next(s for s in summary.stats if s.entity_type is EntityType.BUDGET_ITEM)
        assert budget.errors == 1
        assert budget.indexed == 1
        assert summary.indexed == 5
        assert summary.errors == 1

    async def test_every_type_has_a_source_table(self):
        assert set(ENTITY_SOURCES) == set(EntityType)


class TestIndexStats:
    """Test source versus index coverage."""

    async def test_full_coverage_after_reindex(self, reindex, sources):
        await reindex.reindex_all()

        stats = {s.entity_type: s for s in await reindex.index_stats()}

        assert stats[EntityType.BUDGET_ITEM].source_count == 2
        assert stats[EntityType.BUDGET_ITEM].indexed_count == 2
        assert stats[EntityType.USER].source_count == 1
        assert stats[EntityType.USER].coverage == 100.0
        assert stats[EntityType.PROJECT_ITEM].coverage == 100.0

    async def test_partial_coverage_before_reindex(self, reindex, sources):
        stats = {s.entity_type: s for s in await reindex.index_stats()}

        assert stats[EntityType.BUDGET_ITEM].indexed_count == 0
        assert stats[EntityType.BUDGET_ITEM].coverage == 0.0


class TestClearIndex:
    """Test wiping index records."""

    async def test_clear_one_type(self, reindex, store, sources):
        await reindex.reindex_all()

        removed = await reindex.clear_index("budgetItem")

        assert removed == 2
        assert await store.list_by_type("budgetItem") == []
        assert len(await store.list_by_type("agency")) == 1

    async def test_clear_everything(self, reindex, store, sources):
        await reindex.reindex_all()

        assert await reindex.clear_index() == 6
        assert await store.count_live() == 0

    async def test_clear_unknown_type(self, reindex):
        with pytest.raises(InvalidSearchFilterError):
            await reindex.clear_index("contract")
