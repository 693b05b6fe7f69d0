"""
Heuristic phoneme approximation.

Words are broken into coarse sound tokens by substituting known digraphs and
vowel clusters, then splitting what is left into vowel runs and consonant
runs. The tokens are only meaningful relative to each other; they are not a
phonetic transcription.
"""

import re
from typing import Dict, Iterable, List, Sequence

from ..models import Language, PhonemeSequence


# Substitutions are applied in table order
DIGRAPHS: Dict[Language, Dict[str, str]] = {
    Language.ENGLISH: {
        'th': 'TH', 'sh': 'SH', 'ch': 'CH', 'ph': 'F', 'gh': 'G', 'wh': 'WH',
        'ck': 'K', 'ng': 'NG', 'nk': 'NK', 'ee': 'EE', 'oo': 'OO', 'ai': 'AY',
        'ay': 'AY', 'ea': 'EE', 'oa': 'OA', 'ow': 'OW', 'ou': 'OU', 'oi': 'OI',
        'oy': 'OY', 'aw': 'AW', 'au': 'AW', 'ar': 'AR', 'er': 'ER', 'ir': 'ER',
        'ur': 'ER', 'or': 'OR',
    },
    Language.FILIPINO: {
        'ng': 'NG', 'ny': 'NY', 'ts': 'TS', 'dy': 'DY', 'sy': 'SY', 'ly': 'LY',
        'th': 'T', 'sh': 'S', 'ch': 'CH', 'ph': 'F', 'gh': 'G',
    },
}

VOWELS: Dict[Language, frozenset] = {
    Language.ENGLISH: frozenset('aeiou'),
    Language.FILIPINO: frozenset('aeiouáéíóú'),
}

_WORD_CHARACTERS = {
    Language.ENGLISH: re.compile(r"[^a-z']"),
    Language.FILIPINO: re.compile(r"[^a-záéíóúñ']"),
}


def approximate_phonemes(word: str, language: Language = Language.ENGLISH) -> PhonemeSequence:
    """
    Decompose a word into coarse phoneme-like tokens.

    Args:
        word: A single word
        language: Language selecting the digraph table and vowel set

    Returns:
        Ordered list of uppercase tokens
    """
    if not word:
        return []
    cleaned = _WORD_CHARACTERS[language].sub("", word.lower())

    substituted = cleaned
    for digraph, token in DIGRAPHS[language].items():
        substituted = substituted.replace(digraph, f" {token} ")

    vowels = VOWELS[language]
    tokens: List[str] = []
    buffer = ""
    i = 0
    while i < len(substituted):
        char = substituted[i]
        if char == " ":
            if buffer:
                tokens.append(buffer)
            buffer = ""
        elif char in vowels:
            if buffer:
                tokens.append(buffer)
                buffer = ""
            run = char
            while i + 1 < len(substituted) and substituted[i + 1] in vowels:
                i += 1
                run += substituted[i]
            tokens.append(run.upper())
        else:
            buffer += char.upper()
        i += 1
    if buffer:
        tokens.append(buffer)
    return [token for token in tokens if token]


def utterance_phonemes(words: Iterable[str], language: Language = Language.ENGLISH) -> PhonemeSequence:
    """Concatenate the phoneme tokens of every word, in word order."""
    sequence: PhonemeSequence = []
    for word in words:
        sequence.extend(approximate_phonemes(word, language))
    return sequence


def compare_phonemes(expected: Sequence[str], actual: Sequence[str]) -> float:
    """
    Percentage of expected tokens found at, or one position around, the same index.

    Args:
        expected: Phoneme tokens of the expected sentence
        actual: Phoneme tokens of the recognized sentence

    Returns:
        Phoneme accuracy in [0, 100]; 0 for an empty expectation
    """
    if not expected:
        return 0.0

    def token_at(index: int):
        if 0 <= index < len(actual):
            return actual[index]
        return None

    matches = 0
    for i, token in enumerate(expected):
        if token_at(i) == token or token_at(i - 1) == token or token_at(i + 1) == token:
            matches += 1
    return matches / max(1, len(expected)) * 100
