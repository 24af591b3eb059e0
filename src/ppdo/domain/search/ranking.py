"""Relevance ranking for search candidates.

Final score of a record for a query:

    text      = sum over matched query tokens of
                idf(token) * (w_primary * tf_primary + w_secondary * tf_secondary)
    score     = text
                * coverage     (0.5 + 0.5 * matched / query tokens)
                * proximity    (phrase / near-phrase bonus on the primary text)
                * recency      (floor + (1 - floor) * 0.5 ** (age / half_life))
                * status       (penalty for inactive / suspended, never zero)
                * type boost   (optional, per entity type)
                * affinity     (caller's own or related department)

with ``tf = 1 + ln(count)`` and a BM25-style idf floored at ``idf_floor``.
Records matching no query token are dropped; tombstones never score.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

from ppdo.domain.search.types import CallerScope
from ppdo.shared.search_tokens import MAX_TOKEN_LENGTH, normalize, split_words

if TYPE_CHECKING:
    from ppdo.config import Settings

PRIMARY_FIELD = "primary_text"
SECONDARY_FIELD = "secondary_text"
_SECONDS_PER_DAY = 86_400.0


class RankableRecord(Protocol):
    """The fields of an index record the ranking engine reads."""

    entity_type: str
    entity_id: str
    primary_text: str
    secondary_text: str | None
    department_id: str | None
    status: str | None
    updated_at: datetime
    is_deleted: bool


@dataclass(frozen=True)
class RankingConfig:
    """Tunable ranking constants."""

    primary_weight: float = 3.0
    secondary_weight: float = 1.0
    idf_floor: float = 0.1
    phrase_bonus: float = 0.5
    prefix_bonus: float = 0.25
    proximity_bonus: float = 0.3
    recency_half_life_days: float = 90.0
    recency_floor: float = 0.5
    status_penalties: Mapping[str, float] = field(
        default_factory=lambda: {"inactive": 0.6, "suspended": 0.5}
    )
    type_boosts: Mapping[str, float] = field(default_factory=dict)
    department_affinity_bonus: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> RankingConfig:
        return cls(
            primary_weight=settings.search_primary_weight,
            secondary_weight=settings.search_secondary_weight,
            idf_floor=settings.search_idf_floor,
            phrase_bonus=settings.search_phrase_bonus,
            prefix_bonus=settings.search_prefix_bonus,
            proximity_bonus=settings.search_proximity_bonus,
            recency_half_life_days=settings.search_recency_half_life_days,
            recency_floor=settings.search_recency_floor,
            status_penalties=dict(settings.search_status_penalties),
            type_boosts=dict(settings.search_type_boosts),
            department_affinity_bonus=settings.search_department_affinity_bonus,
        )


@dataclass(frozen=True)
class CorpusStats:
    """Corpus size and per-token document frequencies for the query tokens."""

    total_documents: int
    document_frequencies: Mapping[str, int] = field(default_factory=dict)

    def idf(self, token: str, floor: float = 0.0) -> float:
        df = self.document_frequencies.get(token, 0)
        return inverse_document_frequency(df, self.total_documents, floor)


R = TypeVar("R", bound=RankableRecord)


@dataclass
class RankedRecord(Generic[R]):
    """A record with its final score and the evidence behind it."""

    record: R
    score: float
    text_score: float
    matched_tokens: list[str]
    matched_fields: list[str]


def type_value(entity_type: str | Enum) -> str:
    """Plain string value of an entity type, whether enum member or raw string."""
    if isinstance(entity_type, Enum):
        return str(entity_type.value)
    return entity_type


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def inverse_document_frequency(df: int, total: int, floor: float = 0.0) -> float:
    """BM25-style idf, never below ``floor``."""
    n = max(total, df, 1)
    value = math.log(1.0 + (n - df + 0.5) / (df + 0.5))
    return max(floor, value)


def term_frequency(token: str, words: Sequence[str]) -> float:
    """Log-scaled count of ``token`` in ``words``; 0 when absent."""
    count = sum(1 for word in words if word == token)
    return 1.0 + math.log(count) if count else 0.0


def _field_words(text: str | None) -> list[str]:
    return [word[:MAX_TOKEN_LENGTH] for word in split_words(text)]


def text_relevance(
    query_tokens: Sequence[str],
    primary_words: Sequence[str],
    secondary_words: Sequence[str],
    stats: CorpusStats,
    config: RankingConfig,
) -> tuple[float, list[str], list[str]]:
    """Weighted tf-idf over both fields.

    Returns the score, the matched query tokens and the fields they matched in.
    """
    score = 0.0
    matched: list[str] = []
    fields: set[str] = set()
    for token in query_tokens:
        tf_primary = term_frequency(token, primary_words)
        tf_secondary = term_frequency(token, secondary_words)
        if not tf_primary and not tf_secondary:
            continue
        matched.append(token)
        if tf_primary:
            fields.add(PRIMARY_FIELD)
        if tf_secondary:
            fields.add(SECONDARY_FIELD)
        weighted = config.primary_weight * tf_primary + config.secondary_weight * tf_secondary
        score += stats.idf(token, config.idf_floor) * weighted
    ordered_fields = [f for f in (PRIMARY_FIELD, SECONDARY_FIELD) if f in fields]
    return score, matched, ordered_fields


def coverage_factor(matched: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return 0.5 + 0.5 * (matched / total)


def _contains_phrase(words: Sequence[str], phrase: Sequence[str]) -> bool:
    size = len(phrase)
    if size == 0 or size > len(words):
        return False
    return any(list(words[i : i + size]) == list(phrase) for i in range(len(words) - size + 1))


def minimal_window(words: Sequence[str], targets: Iterable[str]) -> int | None:
    """Length of the shortest run of ``words`` containing every target."""
    wanted = set(targets)
    if not wanted:
        return None
    counts: dict[str, int] = {}
    covered = 0
    best: int | None = None
    left = 0
    for right, word in enumerate(words):
        if word in wanted:
            counts[word] = counts.get(word, 0) + 1
            if counts[word] == 1:
                covered += 1
        while covered == len(wanted):
            size = right - left + 1
            if best is None or size < best:
                best = size
            left_word = words[left]
            if left_word in wanted:
                counts[left_word] -= 1
                if counts[left_word] == 0:
                    covered -= 1
            left += 1
    return best


def proximity_factor(
    phrase: Sequence[str],
    matched_tokens: Sequence[str],
    primary_words: Sequence[str],
    config: RankingConfig,
) -> float:
    """Reward exact phrases and tightly clustered query tokens in the primary text."""
    if _contains_phrase(primary_words, phrase):
        factor = 1.0 + config.phrase_bonus
        if list(primary_words[: len(phrase)]) == list(phrase):
            factor += config.prefix_bonus
        return factor

    primary_vocabulary = set(primary_words)
    in_primary = [token for token in matched_tokens if token in primary_vocabulary]
    if len(in_primary) < 2:
        return 1.0
    window = minimal_window(primary_words, in_primary)
    if not window:
        return 1.0
    return 1.0 + config.proximity_bonus * len(in_primary) / window


def recency_factor(updated_at: datetime | None, now: datetime, config: RankingConfig) -> float:
    """Bounded exponential decay; never below ``recency_floor``."""
    floor = config.recency_floor
    if updated_at is None:
        return floor
    age_days = max(0.0, (as_utc(now) - as_utc(updated_at)).total_seconds() / _SECONDS_PER_DAY)
    return floor + (1.0 - floor) * 0.5 ** (age_days / config.recency_half_life_days)


def status_factor(status: str | None, config: RankingConfig) -> float:
    if not status:
        return 1.0
    return config.status_penalties.get(status.lower(), 1.0)


def type_factor(entity_type: str, config: RankingConfig) -> float:
    return config.type_boosts.get(type_value(entity_type), 1.0)


def affinity_factor(
    department_id: str | None,
    caller: CallerScope | None,
    config: RankingConfig,
) -> float:
    """Boost records from the caller's department, and less so from related ones."""
    if caller is None or not caller.department_id or not department_id:
        return 1.0
    if department_id == caller.department_id:
        return 1.0 + config.department_affinity_bonus
    if department_id in caller.related_department_ids:
        return 1.0 + config.department_affinity_bonus / 2
    return 1.0


def _sort_key(ranked: RankedRecord) -> tuple[float, float, str]:
    updated = ranked.record.updated_at
    timestamp = as_utc(updated).timestamp() if updated is not None else 0.0
    return (-ranked.score, -timestamp, ranked.record.entity_id)


def rank(
    query: str,
    records: Iterable[R],
    *,
    stats: CorpusStats,
    config: RankingConfig | None = None,
    now: datetime | None = None,
    caller: CallerScope | None = None,
) -> list[RankedRecord[R]]:
    """Score ``records`` against ``query`` and return them best first.

    Ties are broken by most recent ``updated_at``, then by ``entity_id``.
    An empty query yields an empty list.
    """
    config = config or RankingConfig()
    now = now or datetime.now(UTC)
    query_tokens = normalize(query)
    if not query_tokens:
        return []
    phrase = split_words(query)

    best: dict[tuple[str, str], RankedRecord[R]] = {}
    for record in records:
        if record.is_deleted:
            continue
        primary_words = _field_words(record.primary_text)
        secondary_words = _field_words(record.secondary_text)
        text_score, matched, fields = text_relevance(
            query_tokens, primary_words, secondary_words, stats, config
        )
        if not matched:
            continue

        score = (
            text_score
            * coverage_factor(len(matched), len(query_tokens))
            * proximity_factor(phrase, matched, primary_words, config)
            * recency_factor(record.updated_at, now, config)
            * status_factor(record.status, config)
            * type_factor(record.entity_type, config)
            * affinity_factor(record.department_id, caller, config)
        )
        key = (type_value(record.entity_type), record.entity_id)
        current = best.get(key)
        if current is None or score > current.score:
            best[key] = RankedRecord(
                record=record,
                score=score,
                text_score=text_score,
                matched_tokens=matched,
                matched_fields=fields,
            )

    return sorted(best.values(), key=_sort_key)
