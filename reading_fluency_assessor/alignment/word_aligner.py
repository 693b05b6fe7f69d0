"""
Word-level alignment of a recognized transcript against the expected sentence.

Each expected word is matched to the closest recognized word inside a small
window around its own position, so a skipped or inserted word does not shift
every following match.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..models import Language, MatchType, WordAlignmentEntry
from .edit_distance import levenshtein
from .normalizer import tokenize


logger = logging.getLogger(__name__)

# Candidates considered on each side of the expected word's index
WINDOW_BEFORE = 2
WINDOW_AFTER = 2

EXACT_MATCH_THRESHOLD = 95.0
SOFT_MATCH_THRESHOLD = 60.0
SOFT_MATCH_WEIGHT = 0.6


@dataclass(frozen=True)
class WordAlignment:
    """Result of aligning one transcript to one expected sentence."""
    expected_words: Tuple[str, ...]
    spoken_words: Tuple[str, ...]
    entries: Tuple[WordAlignmentEntry, ...]
    exact_matches: int
    soft_matches: int

    @property
    def word_accuracy(self) -> float:
        """Weighted share of matched words, 0 for an empty expectation."""
        if not self.expected_words:
            return 0.0
        return (self.exact_matches + SOFT_MATCH_WEIGHT * self.soft_matches) / max(1, len(self.expected_words)) * 100

    @property
    def completeness_score(self) -> int:
        """Percentage of expected words that were not omitted."""
        if not self.expected_words:
            return 100
        omitted = sum(1 for entry in self.entries if round(entry.similarity_percent) == 0)
        return max(0, round(100 - (omitted / len(self.expected_words)) * 100))


def word_similarity(expected: str, distance: int) -> float:
    """Similarity percentage of a candidate at the given edit distance."""
    return max(0, len(expected) - distance) / max(1, len(expected)) * 100


def classify_similarity(similarity: float) -> MatchType:
    """Classify a similarity percentage as exact, soft or no match."""
    if similarity >= EXACT_MATCH_THRESHOLD:
        return MatchType.EXACT
    if similarity >= SOFT_MATCH_THRESHOLD:
        return MatchType.SOFT
    return MatchType.NONE


def best_candidate(expected: str, index: int, spoken_words: Sequence[str]) -> Tuple[str, int]:
    """
    Find the closest spoken word to an expected word within the search window.

    Args:
        expected: Expected word
        index: Position of the expected word in its sentence
        spoken_words: Recognized words

    Returns:
        Tuple of (matched word, edit distance); ('', len(expected)) when the
        window is empty
    """
    best = ""
    best_distance = None
    start = max(0, index - WINDOW_BEFORE)
    end = min(len(spoken_words), index + WINDOW_AFTER + 1)
    for j in range(start, end):
        distance = levenshtein(expected, spoken_words[j])
        # strict comparison keeps the first occurrence on ties
        if best_distance is None or distance < best_distance:
            best_distance = distance
            best = spoken_words[j]

    if best_distance is None:
        best_distance = levenshtein(expected, "")
    return best, best_distance


def align_word_lists(expected_words: Sequence[str], spoken_words: Sequence[str]) -> WordAlignment:
    """Align already-normalized word lists."""
    entries: List[WordAlignmentEntry] = []
    exact_matches = 0
    soft_matches = 0

    for i, expected in enumerate(expected_words):
        matched, distance = best_candidate(expected, i, spoken_words)
        similarity = word_similarity(expected, distance)
        match_type = classify_similarity(similarity)
        if match_type == MatchType.EXACT:
            exact_matches += 1
        elif match_type == MatchType.SOFT:
            soft_matches += 1
        entries.append(WordAlignmentEntry(
            expected_word=expected,
            matched_word=matched,
            similarity_percent=similarity,
            match_type=match_type
        ))

    alignment = WordAlignment(
        expected_words=tuple(expected_words),
        spoken_words=tuple(spoken_words),
        entries=tuple(entries),
        exact_matches=exact_matches,
        soft_matches=soft_matches
    )
    logger.debug(
        f"Aligned {len(expected_words)} expected to {len(spoken_words)} spoken words: "
        f"{exact_matches} exact, {soft_matches} soft"
    )
    return alignment


def align_words(expected_text: str, spoken_text: str,
                language: Language = Language.ENGLISH) -> WordAlignment:
    """
    Normalize both sentences and align the recognized words to the expected ones.

    Args:
        expected_text: Sentence on the flashcard
        spoken_text: Transcript from the recognition engine
        language: Language used for normalization

    Returns:
        WordAlignment with one entry per expected word
    """
    return align_word_lists(tokenize(expected_text, language), tokenize(spoken_text, language))
