"""Search tokenization and text normalization.

Every piece of text that enters the search index, and every query that reads
from it, goes through the same functions here so that the index vocabulary and
the query vocabulary always line up.

Normalization rules:
- case folding, then Unicode NFKD with combining marks dropped ("José" -> "jose")
- words are runs of letters and digits; punctuation, whitespace and
  underscores separate words ("dela-cruz" -> "dela", "cruz")
- index tokens drop English and Filipino stop words and single letters
  (single digits survive), are deduplicated and keep first-seen order
"""

from __future__ import annotations

import html
import re
import unicodedata
from dataclasses import dataclass, field

from ppdo.shared.stopwords import STOP_WORDS

# Unicode-aware "word" tokens, excluding underscores.
_WORD_RE = re.compile(r"[^\W_]+", flags=re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_PART_RE = re.compile(r"[a-z0-9]+")

MAX_TOKEN_LENGTH = 128
HIGHLIGHT_OPEN = "<mark>"
HIGHLIGHT_CLOSE = "</mark>"


@dataclass(frozen=True)
class IndexData:
    """Normalized text and tokens derived from an entity's display text."""

    normalized_primary_text: str
    normalized_secondary_text: str | None
    tokens: list[str]
    primary_tokens: list[str] = field(default_factory=list)
    secondary_tokens: list[str] = field(default_factory=list)


def remove_diacritics(text: str) -> str:
    """Strip combining marks so accented and plain spellings compare equal."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: str | None) -> str:
    """Lowercase, strip diacritics and collapse whitespace."""
    if not text:
        return ""
    folded = remove_diacritics(text.casefold())
    return _WHITESPACE_RE.sub(" ", folded).strip()


def split_words(text: str | None) -> list[str]:
    """Return every normalized word in order, stop words included.

    Used for phrase and proximity matching where word positions matter.
    """
    return _WORD_RE.findall(normalize_text(text))


def _keep_token(token: str, remove_stop_words: bool) -> bool:
    if len(token) == 1 and not token.isdigit():
        return False
    if remove_stop_words and token in STOP_WORDS:
        return False
    return True


def normalize(text: str | None, remove_stop_words: bool = True) -> list[str]:
    """Convert free text into the deduplicated token sequence used by the index.

    Returns an empty list for empty or missing input.
    """
    seen: set[str] = set()
    tokens: list[str] = []
    for word in split_words(text):
        if not _keep_token(word, remove_stop_words):
            continue
        token = word[:MAX_TOKEN_LENGTH]
        if token in seen:
            continue
        seen.add(token)
        tokens.append(token)
    return tokens


def build_slug(text: str | None, entity_id: str) -> str:
    """Build a URL-safe slug, suffixed with the entity id for uniqueness."""
    base = "-".join(_SLUG_PART_RE.findall(normalize_text(text)))
    suffix = str(entity_id)
    return f"{base}-{suffix}" if base else suffix


def generate_index_data(primary_text: str, secondary_text: str | None = None) -> IndexData:
    """Derive normalized texts and token lists for one index record."""
    primary_tokens = normalize(primary_text)
    secondary_tokens = normalize(secondary_text)

    combined = list(primary_tokens)
    seen = set(primary_tokens)
    for token in secondary_tokens:
        if token not in seen:
            seen.add(token)
            combined.append(token)

    return IndexData(
        normalized_primary_text=normalize_text(primary_text),
        normalized_secondary_text=normalize_text(secondary_text) if secondary_text else None,
        tokens=combined,
        primary_tokens=primary_tokens,
        secondary_tokens=secondary_tokens,
    )


def create_highlight(text: str | None, tokens: list[str] | set[str]) -> str | None:
    """Wrap words of ``text`` that match a query token in <mark> tags.

    The original spelling is kept; only the comparison is normalized. Text
    outside the marks is HTML-escaped.
    """
    if not text:
        return None
    wanted = set(tokens)
    if not wanted:
        return html.escape(text)

    parts: list[str] = []
    cursor = 0
    for match in _WORD_RE.finditer(text):
        if normalize_text(match.group())[:MAX_TOKEN_LENGTH] not in wanted:
            continue
        parts.append(html.escape(text[cursor : match.start()]))
        parts.append(f"{HIGHLIGHT_OPEN}{html.escape(match.group())}{HIGHLIGHT_CLOSE}")
        cursor = match.end()
    parts.append(html.escape(text[cursor:]))
    return "".join(parts)
