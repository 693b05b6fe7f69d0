"""
Flashcard decks and learner roster.
"""

from .seeds import DEFAULT_DECKS, DEFAULT_LEARNERS
from .store import ContentStore, parse_cards, parse_learners

__all__ = [
    'DEFAULT_DECKS',
    'DEFAULT_LEARNERS',
    'ContentStore',
    'parse_cards',
    'parse_learners',
]
