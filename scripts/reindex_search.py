"""Rebuild the search index from the source tables.

Indexes every live row, tombstones soft-deleted ones and prunes index records
whose source row no longer exists. Safe to run repeatedly.

Usage:
    python scripts/reindex_search.py
    python scripts/reindex_search.py --entity-type trustFund
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from ppdo.config import get_settings
from ppdo.domain.search.reindex import ReindexService
from ppdo.domain.search.types import EntityType, ReindexSummary
from ppdo.infrastructure.database.connection import build_engine, build_session_factory
from ppdo.shared.logging import setup_logging


async def _reindex(entity_type: str | None) -> ReindexSummary:
    settings = get_settings()
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    try:
        async with session_factory() as session:
            service = ReindexService(session, batch_size=settings.reindex_batch_size)
            if entity_type:
                summary = ReindexSummary(stats=[await service.reindex_type(entity_type)])
            else:
                summary = await service.reindex_all()
            await session.commit()
    finally:
        await engine.dispose()

    return summary


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--entity-type",
        choices=EntityType.values(),
        help="Only reindex this entity type",
    )
    args = parser.parse_args()

    setup_logging()
    summary = asyncio.run(_reindex(args.entity_type))

    for stats in summary.stats:
        print(
            f"{stats.entity_type.value:<24} total={stats.total} indexed={stats.indexed} "
            f"skipped={stats.skipped} errors={stats.errors} pruned={stats.pruned}"
        )
        for detail in stats.error_details[:5]:
            print(f"    {detail.get('entity_id')}: {detail.get('error')}")
    print(
        f"Reindexed {summary.indexed} of {summary.total} record(s), "
        f"{summary.errors} error(s), {summary.pruned} pruned."
    )
    if summary.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
