"""
Alignment module for comparing recognized speech to the expected sentence.
"""

from .normalizer import normalize_text, tokenize
from .edit_distance import levenshtein
from .word_aligner import (
    WordAlignment,
    align_words,
    align_word_lists,
    best_candidate,
    classify_similarity,
    word_similarity,
)
from .phonemes import approximate_phonemes, utterance_phonemes, compare_phonemes

__all__ = [
    'normalize_text',
    'tokenize',
    'levenshtein',
    'WordAlignment',
    'align_words',
    'align_word_lists',
    'best_candidate',
    'classify_similarity',
    'word_similarity',
    'approximate_phonemes',
    'utterance_phonemes',
    'compare_phonemes'
]
