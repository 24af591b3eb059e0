"""Search index models.

``search_index`` holds one denormalized record per searchable entity;
``search_index_tokens`` is the inverted index over it.

Primary access patterns:
- (entity_type, entity_id) -> record           (upsert on every source write)
- entity_id -> records                         (remove on hard delete)
- token -> entry ids                           (candidate lookup, df, counts)
- token prefix (primary text only) -> entries  (type-ahead)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ppdo.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin


class SearchIndexEntry(Base, UUIDPrimaryKeyMixin):
    """Denormalized searchable mirror of one source entity."""

    __tablename__ = "search_index"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", name="uq_search_index_entity"),
        Index("ix_search_index_type_deleted", "entity_type", "is_deleted"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    primary_text: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_primary_text: Mapped[str] = mapped_column(Text, nullable=False)
    secondary_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    normalized_secondary_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    tokens: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    slug: Mapped[str] = mapped_column(String(600), nullable=False)

    department_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    parent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    parent_slug: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Source entity timestamps; updated_at drives recency.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    access_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    indexed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_reindexed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<SearchIndexEntry {self.entity_type}:{self.entity_id}>"

    def snapshot(self) -> dict[str, Any]:
        """Content fields, excluding bookkeeping timestamps and counters."""
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "primary_text": self.primary_text,
            "normalized_primary_text": self.normalized_primary_text,
            "secondary_text": self.secondary_text,
            "normalized_secondary_text": self.normalized_secondary_text,
            "tokens": list(self.tokens),
            "slug": self.slug,
            "department_id": self.department_id,
            "status": self.status,
            "year": self.year,
            "parent_id": self.parent_id,
            "parent_slug": self.parent_slug,
            "created_by": self.created_by,
            "is_deleted": self.is_deleted,
        }


class SearchIndexToken(Base):
    """One posting: token ``token`` occurs in index record ``entry_id``.

    Postings exist only for live records. ``entity_type`` is copied from the
    record so facet counts never need to join.
    """

    __tablename__ = "search_index_tokens"
    __table_args__ = (
        Index("ix_search_index_tokens_token_type", "token", "entity_type"),
    )

    entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("search_index.id", ondelete="CASCADE"),
        primary_key=True,
    )
    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    in_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    in_secondary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
