"""
Voice activity tracking driven by the frame scheduler.

Once per frame the tracker reads the current time-domain buffer from its
audio source, converts its RMS level to decibels and updates the attempt's
VoiceActivityStats. Silence is only charged against fluency when it follows
speech and lasts longer than the configured span.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
import numpy as np

from ..config import AssessmentConfig, default_assessment_config
from ..models import VoiceActivityStats
from .scheduler import FrameScheduler
from .sources import AudioLevelSource


logger = logging.getLogger(__name__)


def buffer_level_db(buffer: np.ndarray, epsilon: float = 1e-12) -> float:
    """
    Level of a time-domain buffer in decibels relative to full scale.

    Args:
        buffer: Float samples in [-1, 1]
        epsilon: Offset that keeps log10 finite for digital silence

    Returns:
        20 * log10(rms + epsilon)
    """
    samples = np.asarray(buffer, dtype=np.float64)
    if samples.size == 0:
        rms = 0.0
    else:
        rms = float(np.sqrt(np.mean(np.square(samples))))
    return float(20.0 * np.log10(rms + epsilon))


@dataclass(frozen=True)
class LevelSample:
    """Per-frame level reading published to listeners."""
    timestamp_ms: float
    db: float
    voiced: bool


class VoiceActivityTracker:
    """
    Samples an audio source once per frame and accumulates speech timing.

    The tracker is the only writer of its VoiceActivityStats while running.
    """

    def __init__(self, source: AudioLevelSource, scheduler: FrameScheduler,
                 stats: VoiceActivityStats, config: Optional[AssessmentConfig] = None):
        """
        Initialize the tracker.

        Args:
            source: Open audio source to sample
            scheduler: Host frame scheduler
            stats: Accumulator for this attempt
            config: Threshold and silence settings
        """
        self.source = source
        self.scheduler = scheduler
        self.stats = stats
        self.config = config or default_assessment_config
        self._running = False
        self._frame_handle: Any = None
        self._listeners: List[Callable[[LevelSample], None]] = []

    @property
    def is_running(self) -> bool:
        return self._running

    def add_listener(self, listener: Callable[[LevelSample], None]) -> None:
        """Register a callback that receives every LevelSample."""
        self._listeners.append(listener)

    def start(self) -> None:
        """Begin sampling on the next frame."""
        if self._running:
            return
        self._running = True
        self._frame_handle = self.scheduler.request_frame(self._on_frame)
        logger.debug("Voice activity tracking started")

    def _on_frame(self) -> None:
        self._frame_handle = None
        if not self._running:
            return
        now_ms = self.scheduler.now_ms()
        sample = self.process_buffer(self.source.read_buffer(), now_ms)
        try:
            for listener in list(self._listeners):
                listener(sample)
        finally:
            # a listener may have stopped the tracker
            if self._running:
                self._frame_handle = self.scheduler.request_frame(self._on_frame)

    def process_buffer(self, buffer: np.ndarray, now_ms: float) -> LevelSample:
        """
        Apply one sample of the speech/silence rules to the stats.

        Args:
            buffer: Current time-domain buffer
            now_ms: Timestamp of the sample

        Returns:
            LevelSample describing the frame
        """
        db = buffer_level_db(buffer, self.config.rms_epsilon)
        voiced = db > self.config.voice_db_threshold
        stats = self.stats

        if voiced:
            if stats.speech_start_ms is None:
                stats.speech_start_ms = now_ms
                logger.debug(f"Speech started at {now_ms:.0f}ms ({db:.1f} dB)")
            stats.last_voice_ms = now_ms
            stats.silence_start_ms = None
        elif stats.silence_start_ms is None:
            stats.silence_start_ms = now_ms
        else:
            span_ms = now_ms - stats.silence_start_ms
            if span_ms > self.config.silence_charge_ms and stats.last_voice_ms is not None:
                stats.cumulative_silent_ms += span_ms
                # a span is charged once
                stats.last_voice_ms = None
                logger.debug(f"Charged {span_ms:.0f}ms of silence, total {stats.cumulative_silent_ms:.0f}ms")

        return LevelSample(timestamp_ms=now_ms, db=db, voiced=voiced)

    def stop(self) -> None:
        """Cancel sampling and close the source. Safe to call repeatedly."""
        was_running = self._running
        self._running = False
        handle, self._frame_handle = self._frame_handle, None
        if handle is not None:
            self.scheduler.cancel(handle)
        self.source.close()
        if was_running:
            logger.debug("Voice activity tracking stopped")
