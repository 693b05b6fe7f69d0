"""
Tests for the heuristic phoneme approximator.
"""

import pytest
from hypothesis import given, strategies as st

from reading_fluency_assessor.alignment import (
    approximate_phonemes,
    compare_phonemes,
    utterance_phonemes,
)
from reading_fluency_assessor.models import Language


class TestApproximatePhonemes:
    """Test word decomposition into sound tokens."""

    @pytest.mark.parametrize("word,expected", [
        ("cat", ["C", "A", "T"]),
        ("the", ["TH", "E"]),
        ("ship", ["SH", "I", "P"]),
        ("book", ["B", "OO", "K"]),
        ("green", ["GR", "EE", "N"]),
        ("phone", ["F", "O", "N", "E"]),
    ])
    def test_english_words(self, word, expected):
        """English digraphs become single tokens."""
        assert approximate_phonemes(word) == expected

    def test_vowel_runs_are_one_token(self):
        """Adjacent vowels without a digraph form one token."""
        assert approximate_phonemes("bias") == ["B", "IA", "S"]

    def test_case_and_punctuation_ignored(self):
        """Uppercase and punctuation do not change the tokens."""
        assert approximate_phonemes("Cat!") == approximate_phonemes("cat")

    def test_empty_word(self):
        """An empty word has no tokens."""
        assert approximate_phonemes("") == []

    def test_filipino_ng(self):
        """Filipino 'ng' is one consonant token."""
        assert approximate_phonemes("ngayon", Language.FILIPINO) == ["NG", "A", "Y", "O", "N"]

    def test_filipino_keeps_accented_vowels(self):
        """Accented vowels count as vowels in Filipino."""
        assert approximate_phonemes("salamát", Language.FILIPINO) == ["S", "A", "L", "A", "M", "Á", "T"]

    def test_utterance_concatenates_in_order(self):
        """Sentence tokens are word tokens in word order."""
        assert utterance_phonemes(["the", "cat"]) == ["TH", "E", "C", "A", "T"]
        assert utterance_phonemes([]) == []

    @given(st.text(alphabet="abcdefghijklmnopqrstuvwxyz'", max_size=12))
    def test_tokens_are_uppercase_and_non_empty(self, word):
        """Every token is a non-empty uppercase string."""
        for token in approximate_phonemes(word):
            assert token
            assert token == token.upper()
            assert " " not in token


class TestComparePhonemes:
    """Test positional phoneme comparison."""

    def test_identical_sequences(self):
        """Identical sequences score 100."""
        tokens = utterance_phonemes(["the", "cat", "sat"])
        assert compare_phonemes(tokens, tokens) == 100

    def test_empty_expected(self):
        """An empty expectation scores 0."""
        assert compare_phonemes([], ["A"]) == 0

    def test_empty_actual(self):
        """Nothing recognized scores 0."""
        assert compare_phonemes(["C", "A", "T"], []) == 0

    def test_one_position_tolerance(self):
        """A one-token shift still matches."""
        assert compare_phonemes(["A", "B", "C"], ["X", "A", "B", "C"]) == 100

    def test_two_position_shift_does_not_match(self):
        """A two-token shift is outside the tolerance."""
        assert compare_phonemes(["A", "B"], ["X", "Y", "A", "B"]) == 0

    def test_no_wraparound_before_start(self):
        """The position before the first token is not the last token."""
        assert compare_phonemes(["Z", "Q"], ["A", "B", "Z"]) == 0

    def test_partial_match(self):
        """Matches are counted per expected token."""
        assert compare_phonemes(["M", "A", "T"], ["M", "A", "P"]) == pytest.approx(200 / 3)

    @pytest.mark.property
    @given(st.lists(st.sampled_from(["A", "B", "C", "TH", "EE"]), max_size=12),
           st.lists(st.sampled_from(["A", "B", "C", "TH", "EE"]), max_size=12))
    def test_accuracy_bounds(self, expected, actual):
        """Phoneme accuracy stays within [0, 100]."""
        assert 0 <= compare_phonemes(expected, actual) <= 100
