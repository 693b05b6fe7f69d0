"""
Scoped ownership of the audio source and tracker for one attempt.
"""

import logging
from typing import Optional

from ..config import AssessmentConfig
from ..models import VoiceActivityStats, VoiceActivitySnapshot
from .scheduler import FrameScheduler
from .sources import AudioLevelSource
from .vad import VoiceActivityTracker


logger = logging.getLogger(__name__)


class AudioSession:
    """
    Live capture stream plus its voice activity tracker.

    Use acquire() to build one; the source is closed again if any part of
    the setup fails. close() may be called from any exit path.
    """

    def __init__(self, source: AudioLevelSource, tracker: VoiceActivityTracker):
        self.source = source
        self.tracker = tracker
        self._closed = False

    @classmethod
    def acquire(cls, source: AudioLevelSource, scheduler: FrameScheduler,
                stats: VoiceActivityStats,
                config: Optional[AssessmentConfig] = None) -> 'AudioSession':
        """
        Open the source and start tracking voice activity.

        Raises:
            MicrophoneAccessError: If the source cannot be opened
        """
        try:
            source.open()
            tracker = VoiceActivityTracker(source, scheduler, stats, config)
            tracker.start()
        except Exception:
            source.close()
            raise
        logger.debug(f"Audio session acquired on {type(source).__name__}")
        return cls(source, tracker)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> VoiceActivityStats:
        return self.tracker.stats

    def freeze(self, now_ms: float) -> VoiceActivitySnapshot:
        """Stop tracking and snapshot the accumulated statistics."""
        self.tracker.stop()
        return self.tracker.stats.freeze(now_ms)

    def close(self) -> None:
        """Stop the tracker and release the stream."""
        if self._closed:
            return
        self._closed = True
        self.tracker.stop()
        self.source.close()
        logger.debug("Audio session closed")

    def __enter__(self) -> 'AudioSession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
