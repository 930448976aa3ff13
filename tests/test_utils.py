"""
Tests for the text and similarity helpers.

Tests cover:
- Levenshtein similarity properties
- Name normalization
- Offset search, snippets and name overlap
"""

import pytest

from utils.similarity import calculate_name_similarity, levenshtein_distance
from utils.text_processing import (
    collapse_whitespace,
    extract_mention_contexts,
    find_all_positions,
    names_overlap,
    normalize_name,
    pick,
    slugify,
    strip_diacritics,
)


# =============================================================================
# SIMILARITY
# =============================================================================

class TestSimilarity:

    def test_classic_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_similarity_formula(self):
        assert calculate_name_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    @pytest.mark.parametrize("a,b", [
        ("ahmed al-rashid", "ahmad al-rashid"),
        ("acme", "acme holdings"),
        ("", "nordic"),
        ("göran", "goran"),
    ])
    def test_symmetry(self, a, b):
        assert calculate_name_similarity(a, b) == calculate_name_similarity(b, a)

    @pytest.mark.parametrize("value", ["", "a", "ahmed al-rashid", "Nordic Trading"])
    def test_identity(self, value):
        assert calculate_name_similarity(value, value) == 1.0

    def test_bounded(self):
        assert calculate_name_similarity("abc", "xyz") == 0.0


# =============================================================================
# NORMALIZATION
# =============================================================================

class TestNormalizeName:

    @pytest.mark.parametrize("raw,expected", [
        ("Acme Corp", "acme"),
        ("Göran Persson", "goran persson"),
        ("Al-Rashid Holdings, Inc.", "al-rashid holdings"),
        ("AT&T Inc.", "at&t"),
        ("  Nordic   Trading AB ", "nordic trading"),
        ("Smith & Sons Ltd", "smith sons"),
        ("", ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_name(raw) == expected

    def test_suffix_only_removed_as_whole_word(self):
        assert normalize_name("Cobalt Agency") == "cobalt agency"

    def test_custom_suffixes(self):
        assert normalize_name("Volvo Group", legal_suffixes=("group",)) == "volvo"

    def test_strip_diacritics(self):
        assert strip_diacritics("Åsa Müller") == "Asa Muller"


# =============================================================================
# TEXT HELPERS
# =============================================================================

class TestTextHelpers:

    def test_find_all_positions_case_insensitive(self):
        assert find_all_positions("Ahmed met ahmed", "AHMED") == [0, 10]

    def test_find_all_positions_empty(self):
        assert find_all_positions("", "x") == []
        assert find_all_positions("text", "") == []

    def test_mention_contexts_are_bounded(self):
        text = "x" * 100 + " Nordic " + "y" * 100
        contexts = extract_mention_contexts("Nordic", text, radius=5, max_contexts=3)
        assert contexts == ["xxxx Nordic yyyy"]

    def test_mention_contexts_cap(self):
        text = "Ali " * 10
        assert len(extract_mention_contexts("Ali", text, radius=2, max_contexts=3)) == 3

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  a \n\t b  ") == "a b"

    @pytest.mark.parametrize("a,b,expected", [
        ("Ahmed Al-Rashid", "al-rashid", True),
        ("Rashid", "Ahmed Al-Rashid", True),
        ("Ali Hassan", "Ali", True),
        ("Wei", "Wei Zhang", True),
        ("Nordic Trading", "Baltic Shipping", False),
        ("", "Acme", False),
    ])
    def test_names_overlap(self, a, b, expected):
        assert names_overlap(a, b) is expected

    def test_pick_prefers_first_present_key(self):
        assert pick({"extractedBy": "nlp"}, "extracted_by", "extractedBy") == "nlp"
        assert pick({"extracted_by": None}, "extracted_by", default="x") == "x"

    def test_slugify(self):
        assert slugify("Ahmed Al-Rashid") == "ahmeda"
