"""
Configuration settings for the Reading Fluency Assessor.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any


class Config:
    """Configuration class for application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent
    DATA_DIR = PROJECT_ROOT / "data"

    # Content and performance storage
    CONTENT_FILE_TEMPLATE = "flashcards_{language}.json"
    ROSTER_FILE = "learners.json"
    PERFORMANCE_FILE = "performance_history.json"

    # Audio capture settings
    SAMPLE_RATE = 16000
    AUDIO_FORMATS = [".wav", ".mp3", ".m4a", ".flac", ".ogg"]

    # Speech engine voice settings
    SPEECH_RATE = 150


@dataclass
class AssessmentConfig:
    """Tunables for one assessment attempt."""

    # Voice activity detection
    voice_db_threshold: float = -50.0
    silence_charge_ms: float = 200.0
    rms_epsilon: float = 1e-12
    fft_size: int = 2048
    frame_rate_hz: float = 60.0

    # Recognition lifecycle
    recognition_timeout_s: float = 45.0
    recognition_grace_s: float = 5.0
    end_of_utterance_ms: float = 4000.0

    # Scoring
    default_confidence: float = 0.8

    @property
    def frame_interval_s(self) -> float:
        """Seconds between two sampling frames."""
        return 1.0 / self.frame_rate_hz

    def get_config_summary(self) -> Dict[str, Any]:
        """Get a summary of current configuration."""
        return {
            "vad": {
                "voice_db_threshold": self.voice_db_threshold,
                "silence_charge_ms": self.silence_charge_ms,
                "fft_size": self.fft_size,
                "frame_rate_hz": self.frame_rate_hz,
            },
            "recognition": {
                "timeout_s": self.recognition_timeout_s,
                "grace_s": self.recognition_grace_s,
                "end_of_utterance_ms": self.end_of_utterance_ms,
            },
            "scoring": {
                "default_confidence": self.default_confidence,
            },
        }


# Default assessment configuration instance
default_assessment_config = AssessmentConfig()
