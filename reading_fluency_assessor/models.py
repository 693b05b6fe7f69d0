"""
Core data models for the Reading Fluency Assessor.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple, Dict, Any


class Language(Enum):
    """Flashcard languages; the value is the speech engine language tag."""
    ENGLISH = "en-US"
    FILIPINO = "fil-PH"

    @property
    def tag(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> 'Language':
        """Resolve 'english', 'filipino' or a language tag."""
        lowered = name.strip().lower()
        for language in cls:
            if lowered in (language.name.lower(), language.value.lower()):
                return language
        raise ValueError(f"Unknown language: {name}")


class MatchType(Enum):
    """Word alignment classification."""
    EXACT = "exact"
    SOFT = "soft"
    NONE = "none"


class AverageLabel(Enum):
    """Qualitative band for the average score."""
    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


@dataclass(frozen=True)
class ExpectedUtterance:
    """The sentence or word a learner must read aloud for one flashcard."""
    text: str
    language: Language = Language.ENGLISH


@dataclass(frozen=True)
class Flashcard:
    """A remedial reading flashcard."""
    sentence: str
    highlights: Tuple[str, ...] = ()

    def to_utterance(self, language: Language) -> ExpectedUtterance:
        return ExpectedUtterance(text=self.sentence, language=language)

    def to_dict(self) -> Dict[str, Any]:
        return {'sentence': self.sentence, 'highlights': list(self.highlights)}


@dataclass(frozen=True)
class Learner:
    """A learner on the remedial roster."""
    id: str
    learner_code: str
    name: str
    grade: str = ""
    section: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VoiceActivitySnapshot:
    """Frozen voice activity statistics handed to the score calculator."""
    speech_start_ms: Optional[float]
    speech_end_ms: Optional[float]
    cumulative_silent_ms: float

    @property
    def total_speech_ms(self) -> float:
        """Speech span in milliseconds, never below 1."""
        if self.speech_start_ms is None or self.speech_end_ms is None:
            return 1.0
        return max(1.0, self.speech_end_ms - self.speech_start_ms)


@dataclass
class VoiceActivityStats:
    """
    Mutable voice activity accumulator for one attempt.

    Only the voice activity tracker writes to it while an audio session
    is live; scoring reads the result of freeze().
    """
    speech_start_ms: Optional[float] = None
    speech_end_ms: Optional[float] = None
    cumulative_silent_ms: float = 0.0
    last_voice_ms: Optional[float] = None
    silence_start_ms: Optional[float] = None

    def reset(self) -> None:
        """Clear all accumulated values for a new attempt."""
        self.speech_start_ms = None
        self.speech_end_ms = None
        self.cumulative_silent_ms = 0.0
        self.last_voice_ms = None
        self.silence_start_ms = None

    def freeze(self, now_ms: float) -> VoiceActivitySnapshot:
        """Close the speech span at now_ms if still open and snapshot the stats."""
        if self.speech_end_ms is None:
            self.speech_end_ms = now_ms
        return VoiceActivitySnapshot(
            speech_start_ms=self.speech_start_ms,
            speech_end_ms=self.speech_end_ms,
            cumulative_silent_ms=self.cumulative_silent_ms
        )


@dataclass(frozen=True)
class TranscriptionResult:
    """One transcript delivered by the speech recognition engine."""
    text: str
    confidence: float = 0.8

    @classmethod
    def create(cls, text: str, confidence: Optional[float] = None,
               default_confidence: float = 0.8) -> 'TranscriptionResult':
        """Build a result, substituting the default when no confidence is reported."""
        if confidence is None:
            confidence = default_confidence
        return cls(text=text or "", confidence=min(1.0, max(0.0, float(confidence))))


@dataclass(frozen=True)
class WordAlignmentEntry:
    """Alignment of one expected word to its best recognized candidate."""
    expected_word: str
    matched_word: str
    similarity_percent: float
    match_type: MatchType = MatchType.NONE

    @property
    def error_type(self) -> str:
        """Per-word verdict shown next to the flashcard."""
        score = round(self.similarity_percent)
        if score == 0:
            return "Omitted"
        if score < 85:
            return "Mispronounced"
        return "None"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'expected_word': self.expected_word,
            'matched_word': self.matched_word,
            'similarity_percent': round(self.similarity_percent),
            'match_type': self.match_type.value,
            'error_type': self.error_type,
        }


PhonemeSequence = List[str]


@dataclass(frozen=True)
class ScoreReport:
    """Composite proficiency report for one completed attempt."""
    word_accuracy: float
    phoneme_accuracy: float
    fluency_score: int
    words_per_minute: int
    pronunciation_score: int
    average_score: int
    average_label: AverageLabel
    remarks: str
    reading_speed_percent: int = 0
    reading_speed_label: str = ""
    completeness_score: int = 0
    confidence: float = 0.8
    expected_word_count: int = 0
    word_alignment: Tuple[WordAlignmentEntry, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'word_accuracy': round(self.word_accuracy, 2),
            'phoneme_accuracy': round(self.phoneme_accuracy, 2),
            'fluency_score': self.fluency_score,
            'words_per_minute': self.words_per_minute,
            'pronunciation_score': self.pronunciation_score,
            'average_score': self.average_score,
            'average_label': self.average_label.value,
            'remarks': self.remarks,
            'reading_speed_percent': self.reading_speed_percent,
            'reading_speed_label': self.reading_speed_label,
            'completeness_score': self.completeness_score,
            'confidence': self.confidence,
            'expected_word_count': self.expected_word_count,
            'word_alignment': [entry.to_dict() for entry in self.word_alignment],
        }


@dataclass
class PerformanceRecord:
    """One persisted attempt result for a learner."""
    learner_id: str
    card_index: int
    expected_text: str
    word_accuracy: float
    phoneme_accuracy: float
    fluency_score: int
    words_per_minute: int
    pronunciation_score: int
    average_score: int
    average_label: str
    remarks: str
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_report(cls, learner_id: str, card_index: int, expected_text: str,
                    report: ScoreReport, timestamp: Optional[datetime] = None) -> 'PerformanceRecord':
        """Build a record from a score report."""
        return cls(
            learner_id=learner_id,
            card_index=card_index,
            expected_text=expected_text,
            word_accuracy=round(report.word_accuracy, 2),
            phoneme_accuracy=round(report.phoneme_accuracy, 2),
            fluency_score=report.fluency_score,
            words_per_minute=report.words_per_minute,
            pronunciation_score=report.pronunciation_score,
            average_score=report.average_score,
            average_label=report.average_label.value,
            remarks=report.remarks,
            timestamp=timestamp or datetime.now()
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PerformanceRecord':
        """Create instance from dictionary."""
        data = data.copy()
        if isinstance(data.get('timestamp'), str):
            data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        return cls(**data)
