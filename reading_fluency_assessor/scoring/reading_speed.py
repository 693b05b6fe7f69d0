"""
Reading speed grading.

Raw words per minute is stabilized for short cards (a three-word card read
quickly should not count as a very fast reader) and then placed in a speed
band. The grade is informational; it is not part of the average score.
"""

from dataclasses import dataclass
from typing import List, Tuple


# (minimum adjusted WPM, grade percent, label), fastest band first
READING_SPEED_BANDS: List[Tuple[int, int, str]] = [
    (90, 100, "Very Fast"),
    (75, 95, "Moderately Fast"),
    (60, 90, "Fast"),
    (45, 85, "Moderate"),
    (30, 80, "Slightly Slow"),
    (20, 75, "Slow"),
    (0, 70, "Very Slow"),
]

# Cards with at least this many words get the full WPM weight
STABLE_WORD_COUNT = 10


@dataclass(frozen=True)
class ReadingSpeedGrade:
    adjusted_wpm: int
    percent: int
    label: str


def grade_reading_speed(words_per_minute: float, word_count: int) -> ReadingSpeedGrade:
    """
    Grade a reading speed.

    Args:
        words_per_minute: Measured reading speed
        word_count: Number of words on the card

    Returns:
        ReadingSpeedGrade with the adjusted WPM, band percent and band label
    """
    stability = min(1.0, max(1, word_count) / STABLE_WORD_COUNT)
    adjusted = words_per_minute * (0.65 + 0.35 * stability)

    _, percent, label = READING_SPEED_BANDS[-1]
    for min_wpm, band_percent, band_label in READING_SPEED_BANDS:
        if adjusted >= min_wpm:
            percent, label = band_percent, band_label
            break

    return ReadingSpeedGrade(adjusted_wpm=round(adjusted), percent=percent, label=label)
