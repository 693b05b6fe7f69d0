"""
Composite proficiency scoring.

Combines word accuracy, phoneme accuracy, fluency and speaking rate into a
ScoreReport with a qualitative label and remark.
"""

import logging
from typing import Sequence

from ..alignment import align_words, compare_phonemes, utterance_phonemes
from ..models import (
    AverageLabel,
    ExpectedUtterance,
    Language,
    ScoreReport,
    TranscriptionResult,
    VoiceActivitySnapshot,
    WordAlignmentEntry,
)
from .reading_speed import grade_reading_speed
from .remarks import remarks_for


logger = logging.getLogger(__name__)

# Lower bound of each label band, best band first
LABEL_THRESHOLDS = [
    (90, AverageLabel.EXCELLENT),
    (80, AverageLabel.VERY_GOOD),
    (70, AverageLabel.GOOD),
    (60, AverageLabel.FAIR),
]

WORD_ACCURACY_WEIGHT = 0.5
PHONEME_ACCURACY_WEIGHT = 0.35
CONFIDENCE_WEIGHT = 0.15


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def label_for_score(average_score: float) -> AverageLabel:
    """Qualitative band for an average score; lower bounds are inclusive."""
    for threshold, label in LABEL_THRESHOLDS:
        if average_score >= threshold:
            return label
    return AverageLabel.POOR


def fluency_score(snapshot: VoiceActivitySnapshot) -> int:
    """Share of the speech span that was not charged as silence."""
    pause_ratio = min(1.0, snapshot.cumulative_silent_ms / snapshot.total_speech_ms)
    return int(clamp(round((1 - pause_ratio) * 100)))


def words_per_minute(expected_word_count: int, snapshot: VoiceActivitySnapshot) -> int:
    """Expected words over the measured speech span."""
    return max(0, round(expected_word_count / (snapshot.total_speech_ms / 1000) * 60))


def pronunciation_score(word_accuracy: float, phoneme_accuracy: float, confidence: float) -> int:
    """Weighted blend of word accuracy, phoneme accuracy and engine confidence."""
    weighted = (WORD_ACCURACY_WEIGHT * word_accuracy
                + PHONEME_ACCURACY_WEIGHT * phoneme_accuracy
                + CONFIDENCE_WEIGHT * confidence * 100)
    return int(clamp(round(weighted)))


def calculate_scores(word_accuracy: float, phoneme_accuracy: float,
                     snapshot: VoiceActivitySnapshot, expected_word_count: int,
                     confidence: float, language: Language = Language.ENGLISH,
                     completeness_score: int = 0,
                     word_alignment: Sequence[WordAlignmentEntry] = ()) -> ScoreReport:
    """
    Reduce alignment results and frozen timing statistics to a ScoreReport.

    Args:
        word_accuracy: Word accuracy percentage from the aligner
        phoneme_accuracy: Phoneme accuracy percentage
        snapshot: Frozen voice activity statistics
        expected_word_count: Number of words in the expected sentence
        confidence: Recognition confidence in [0, 1]
        language: Language selecting the remark template
        completeness_score: Share of expected words not omitted
        word_alignment: Per-word alignment entries for display

    Returns:
        Immutable ScoreReport
    """
    fluency = fluency_score(snapshot)
    wpm = words_per_minute(expected_word_count, snapshot)
    pronunciation = pronunciation_score(word_accuracy, phoneme_accuracy, confidence)
    # raw WPM doubles as the speed term of the average
    reading_speed_term = int(clamp(wpm))
    average = int(clamp(round((pronunciation + fluency + reading_speed_term) / 3)))
    label = label_for_score(average)
    speed_grade = grade_reading_speed(wpm, expected_word_count)

    report = ScoreReport(
        word_accuracy=word_accuracy,
        phoneme_accuracy=phoneme_accuracy,
        fluency_score=fluency,
        words_per_minute=wpm,
        pronunciation_score=pronunciation,
        average_score=average,
        average_label=label,
        remarks=remarks_for(label, language),
        reading_speed_percent=reading_speed_term,
        reading_speed_label=speed_grade.label,
        completeness_score=completeness_score,
        confidence=confidence,
        expected_word_count=expected_word_count,
        word_alignment=tuple(word_alignment)
    )
    logger.info(
        f"Scored attempt: average {average} ({label.value}), "
        f"pronunciation {pronunciation}, fluency {fluency}, {wpm} WPM"
    )
    return report


def assess_attempt(expected: ExpectedUtterance, transcription: TranscriptionResult,
                   snapshot: VoiceActivitySnapshot) -> ScoreReport:
    """
    Align, compare phonemes and score one completed attempt.

    Args:
        expected: Sentence the learner was asked to read
        transcription: Transcript returned by the recognition engine
        snapshot: Frozen voice activity statistics for the attempt

    Returns:
        ScoreReport for the attempt
    """
    language = expected.language
    alignment = align_words(expected.text, transcription.text, language)
    phoneme_accuracy = compare_phonemes(
        utterance_phonemes(alignment.expected_words, language),
        utterance_phonemes(alignment.spoken_words, language)
    )
    logger.debug(
        f"Expected '{expected.text}', heard '{transcription.text}': "
        f"word accuracy {alignment.word_accuracy:.1f}, phoneme accuracy {phoneme_accuracy:.1f}"
    )
    return calculate_scores(
        word_accuracy=alignment.word_accuracy,
        phoneme_accuracy=phoneme_accuracy,
        snapshot=snapshot,
        expected_word_count=len(alignment.expected_words),
        confidence=transcription.confidence,
        language=language,
        completeness_score=alignment.completeness_score,
        word_alignment=alignment.entries
    )
