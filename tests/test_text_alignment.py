"""
Tests for text normalization, edit distance and word alignment.
"""

import pytest
from hypothesis import given, strategies as st

from reading_fluency_assessor.alignment import (
    align_words,
    best_candidate,
    classify_similarity,
    levenshtein,
    normalize_text,
    tokenize,
    word_similarity,
)
from reading_fluency_assessor.models import Language, MatchType


words = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=8)


class TestNormalizeText:
    """Test sentence normalization."""

    def test_lowercases_and_strips_punctuation(self):
        """Punctuation is removed and case folded."""
        assert normalize_text("The cat sat on the mat.") == "the cat sat on the mat"

    def test_keeps_apostrophes(self):
        """Contractions keep their apostrophe."""
        assert normalize_text("They eat lunch at twelve o'clock!") == "they eat lunch at twelve o'clock"

    def test_collapses_whitespace(self):
        """Whitespace runs collapse to one space and the ends are trimmed."""
        assert normalize_text("  a   big\tdog \n ran  ") == "a big dog ran"

    def test_empty_input(self):
        """Empty input yields empty output."""
        assert normalize_text("") == ""
        assert normalize_text("?!...") == ""

    def test_english_drops_accented_letters(self):
        """The English alphabet has no accented letters."""
        assert normalize_text("niño") == "nio"

    def test_filipino_keeps_accented_letters(self):
        """Filipino keeps ñ and accented vowels."""
        assert normalize_text("Niño, salamát!", Language.FILIPINO) == "niño salamát"

    def test_digits_are_removed(self):
        """Digits are outside both alphabets."""
        assert normalize_text("Room 12 is big") == "room is big"

    def test_tokenize(self):
        """Tokenize splits the normalized sentence."""
        assert tokenize("A big dog ran in the park.") == ["a", "big", "dog", "ran", "in", "the", "park"]
        assert tokenize("   ") == []

    @given(st.text(max_size=60))
    def test_normalization_is_idempotent(self, text):
        """Normalizing twice changes nothing."""
        once = normalize_text(text)
        assert normalize_text(once) == once
        assert once == once.strip()
        assert "  " not in once


class TestLevenshtein:
    """Test the edit-distance matcher."""

    @pytest.mark.parametrize("a,b,expected", [
        ("", "", 0),
        ("mat", "", 3),
        ("", "mat", 3),
        ("mat", "map", 1),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("the", "the", 0),
    ])
    def test_known_distances(self, a, b, expected):
        """Distances for known pairs."""
        assert levenshtein(a, b) == expected

    @pytest.mark.property
    @given(st.text(max_size=15))
    def test_identity(self, a):
        """A string is at distance zero from itself."""
        assert levenshtein(a, a) == 0

    @pytest.mark.property
    @given(st.text(max_size=15), st.text(max_size=15))
    def test_symmetry_and_bounds(self, a, b):
        """Distance is symmetric, non-negative and bounded by the longer string."""
        distance = levenshtein(a, b)
        assert distance == levenshtein(b, a)
        assert 0 <= distance <= max(len(a), len(b))
        assert (distance == 0) == (a == b)


class TestWordAligner:
    """Test alignment of recognized words to the expected sentence."""

    def test_identical_sentence_is_perfect(self):
        """Identical text gives every word an exact match."""
        alignment = align_words("The cat sat on the mat", "the cat sat on the mat")
        assert alignment.word_accuracy == 100
        assert alignment.exact_matches == 6
        assert alignment.soft_matches == 0
        assert alignment.completeness_score == 100
        assert all(entry.match_type == MatchType.EXACT for entry in alignment.entries)

    def test_substituted_word_is_soft_match(self):
        """'map' for 'mat' is one edit away and counts 0.6 of a word."""
        alignment = align_words("The cat sat on the mat", "The cat sat on the map")
        last = alignment.entries[-1]
        assert last.expected_word == "mat"
        assert last.matched_word == "map"
        assert last.similarity_percent == pytest.approx(200 / 3)
        assert last.match_type == MatchType.SOFT
        assert last.error_type == "Mispronounced"
        assert alignment.exact_matches == 5
        assert alignment.soft_matches == 1
        assert alignment.word_accuracy == pytest.approx((5 + 0.6) / 6 * 100)

    def test_empty_transcript(self):
        """Nothing recognized: every word is omitted."""
        alignment = align_words("A big dog", "")
        assert alignment.word_accuracy == 0
        assert alignment.completeness_score == 0
        assert [entry.matched_word for entry in alignment.entries] == ["", "", ""]
        assert all(entry.error_type == "Omitted" for entry in alignment.entries)

    def test_empty_expectation(self):
        """No expected words: zero accuracy, nothing omitted."""
        alignment = align_words("", "hello there")
        assert alignment.word_accuracy == 0
        assert alignment.entries == ()
        assert alignment.completeness_score == 100

    def test_skipped_word_does_not_shift_matches(self):
        """Words after a skipped word still find their match inside the window."""
        alignment = align_words("We go to the store for milk", "we go the store for milk")
        matched = {entry.expected_word: entry.matched_word for entry in alignment.entries}
        assert matched["store"] == "store"
        assert matched["milk"] == "milk"
        assert alignment.exact_matches == 6

    def test_window_limits_candidates(self):
        """A word far outside the window is not found."""
        best, distance = best_candidate("milk", 0, ["a", "b", "c", "milk"])
        assert best != "milk"
        assert distance > 0

    def test_ties_keep_first_candidate(self):
        """Equal distances resolve to the earliest spoken word."""
        best, distance = best_candidate("cat", 1, ["bat", "hat", "rat"])
        assert best == "bat"
        assert distance == 1

    def test_window_is_clipped_at_sentence_end(self):
        """An expected index beyond the spoken words searches what is left."""
        best, distance = best_candidate("sky", 6, ["he", "can", "see", "the", "sky"])
        assert best == "sky"
        assert distance == 0

    def test_unrelated_word_is_not_matched(self):
        """Low similarity is classified as no match."""
        alignment = align_words("elephant", "cat")
        assert alignment.entries[0].match_type == MatchType.NONE
        assert alignment.word_accuracy == 0

    @pytest.mark.parametrize("similarity,expected", [
        (100.0, MatchType.EXACT),
        (95.0, MatchType.EXACT),
        (94.9, MatchType.SOFT),
        (60.0, MatchType.SOFT),
        (59.9, MatchType.NONE),
        (0.0, MatchType.NONE),
    ])
    def test_similarity_classes(self, similarity, expected):
        """Exact at 95 and above, soft from 60."""
        assert classify_similarity(similarity) == expected

    def test_similarity_never_negative(self):
        """Distance above the word length floors at zero."""
        assert word_similarity("a", 5) == 0

    @pytest.mark.property
    @given(st.lists(words, min_size=1, max_size=10))
    def test_identical_words_score_100(self, sentence_words):
        """Normalized-equal transcripts always score 100."""
        sentence = " ".join(sentence_words)
        alignment = align_words(sentence.upper() + ".", sentence)
        assert alignment.word_accuracy == pytest.approx(100)

    @pytest.mark.property
    @given(st.lists(words, min_size=1, max_size=8), st.lists(words, max_size=8))
    def test_accuracy_bounds(self, expected_words, spoken_words):
        """Word accuracy stays within [0, 100]."""
        alignment = align_words(" ".join(expected_words), " ".join(spoken_words))
        assert 0 <= alignment.word_accuracy <= 100
        assert len(alignment.entries) == len(expected_words)
        assert 0 <= alignment.completeness_score <= 100
