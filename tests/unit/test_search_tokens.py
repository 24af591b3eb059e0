"""Unit tests for search tokenization and normalization."""

from ppdo.shared.search_tokens import (
    build_slug,
    create_highlight,
    generate_index_data,
    normalize,
    normalize_text,
    remove_diacritics,
    split_words,
)


class TestNormalizeText:
    """Test text folding."""

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_text("  Road   REPAIR \n Program ") == "road repair program"

    def test_strips_diacritics(self):
        assert remove_diacritics("José Peñaranda") == "Jose Penaranda"
        assert normalize_text("José") == "jose"

    def test_empty_input(self):
        assert normalize_text(None) == ""
        assert normalize_text("") == ""


class TestNormalize:
    """Test index token generation."""

    def test_drops_english_stop_words(self):
        assert normalize("The Road to San José") == ["road", "san", "jose"]

    def test_drops_filipino_stop_words(self):
        tokens = normalize("Pagpapaayos ng mga kalsada sa barangay")

        assert tokens == ["pagpapaayos", "kalsada", "barangay"]

    def test_punctuation_and_underscores_split_words(self):
        assert normalize("dela-cruz_bridge") == ["dela", "cruz", "bridge"]

    def test_case_and_punctuation_insensitive(self):
        assert normalize("JUAN dela-cruz") == normalize("juan dela cruz")
        assert normalize("Juan Dela Cruz") == normalize("Juan Dela Cruz")

    def test_single_letters_dropped_digits_kept(self):
        assert normalize("a b 5 x2") == ["5", "x2"]

    def test_deduplicates_in_first_seen_order(self):
        assert normalize("Road road ROAD bridge road") == ["road", "bridge"]

    def test_keep_stop_words_when_asked(self):
        assert normalize("the road", remove_stop_words=False) == ["the", "road"]

    def test_empty_input(self):
        assert normalize("") == []
        assert normalize(None) == []
        assert normalize("the of and") == []

    def test_split_words_keeps_stop_words_and_order(self):
        assert split_words("Repair of the Road") == ["repair", "of", "the", "road"]


class TestBuildSlug:
    """Test slug generation."""

    def test_slug_is_suffixed_with_entity_id(self):
        assert build_slug("Road Concreting, Phase II", "abc") == "road-concreting-phase-ii-abc"

    def test_slug_without_usable_text(self):
        assert build_slug("!!!", "abc") == "abc"
        assert build_slug(None, "abc") == "abc"


class TestGenerateIndexData:
    """Test derivation of normalized fields and tokens."""

    def test_combines_primary_and_secondary_tokens(self):
        data = generate_index_data("Road Repair", "Engineering Office road")

        assert data.tokens == ["road", "repair", "engineering", "office"]
        assert data.primary_tokens == ["road", "repair"]
        assert data.secondary_tokens == ["engineering", "office", "road"]
        assert data.normalized_primary_text == "road repair"
        assert data.normalized_secondary_text == "engineering office road"

    def test_missing_secondary_text(self):
        data = generate_index_data("Road Repair")

        assert data.normalized_secondary_text is None
        assert data.secondary_tokens == []


class TestCreateHighlight:
    """Test result highlighting."""

    def test_marks_matching_words_and_escapes_the_rest(self):
        result = create_highlight("Road <Repair>", ["repair"])

        assert result == "Road &lt;<mark>Repair</mark>&gt;"

    def test_matches_ignore_accents_and_case(self):
        assert create_highlight("José Rizal", ["jose"]) == "<mark>José</mark> Rizal"

    def test_no_tokens_returns_escaped_text(self):
        assert create_highlight("A & B", []) == "A &amp; B"

    def test_missing_text(self):
        assert create_highlight(None, ["road"]) is None
