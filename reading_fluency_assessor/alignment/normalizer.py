"""
Text normalization for expected and recognized sentences.
"""

import re
from typing import List

from ..models import Language


# Letters kept per language in addition to apostrophes and whitespace
_LANGUAGE_LETTERS = {
    Language.ENGLISH: "a-z",
    Language.FILIPINO: "a-záéíóúñäëïöü",
}

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str, language: Language = Language.ENGLISH) -> str:
    """
    Lowercase text and keep only letters, apostrophes and single spaces.

    Args:
        text: Raw expected or recognized text
        language: Language whose alphabet is kept

    Returns:
        Normalized text, empty for empty input
    """
    if not text:
        return ""
    letters = _LANGUAGE_LETTERS[language]
    lowered = text.lower()
    stripped = re.sub(f"[^{letters}'\\s]", "", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def tokenize(text: str, language: Language = Language.ENGLISH) -> List[str]:
    """Normalize text and split it into words."""
    normalized = normalize_text(text, language)
    return normalized.split(" ") if normalized else []
