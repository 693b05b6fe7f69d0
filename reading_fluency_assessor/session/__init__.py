"""
Attempt orchestration and flashcard deck sessions.
"""

from .flashcards import FlashcardSession
from .state_machine import AssessmentSession, SessionEvent, SessionState

__all__ = [
    'FlashcardSession',
    'AssessmentSession',
    'SessionEvent',
    'SessionState',
]
