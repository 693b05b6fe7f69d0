"""
Score calculation for completed attempts.
"""

from .calculator import (
    assess_attempt,
    calculate_scores,
    clamp,
    fluency_score,
    label_for_score,
    pronunciation_score,
    words_per_minute,
)
from .reading_speed import ReadingSpeedGrade, grade_reading_speed
from .remarks import REMARKS, remarks_for

__all__ = [
    'assess_attempt',
    'calculate_scores',
    'clamp',
    'fluency_score',
    'label_for_score',
    'pronunciation_score',
    'words_per_minute',
    'ReadingSpeedGrade',
    'grade_reading_speed',
    'REMARKS',
    'remarks_for',
]
