"""
Pytest configuration and fixtures for assessor tests.

Provides a manual-clock frame scheduler, a scripted audio level source and a
scripted recognizer so that attempts can be driven deterministically, plus
the Hypothesis profile for property-based tests.
"""

import heapq
import itertools
from typing import Callable, List, Optional, Tuple

import numpy as np
import pytest
from hypothesis import settings, Verbosity

from reading_fluency_assessor.audio.scheduler import FrameScheduler
from reading_fluency_assessor.audio.sources import AudioLevelSource
from reading_fluency_assessor.config import AssessmentConfig
from reading_fluency_assessor.errors import ErrorHandler, MicrophoneAccessError
from reading_fluency_assessor.models import TranscriptionResult
from reading_fluency_assessor.speech.recognizer import SpeechRecognizer


# Configure Hypothesis for property-based testing
settings.register_profile("assessor",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("assessor")


def pytest_configure(config):
    config.addinivalue_line("markers", "property: property-based test")


VOICED = 0.1      # -20 dB
SILENT = 0.0001   # -80 dB


class FakeHandle:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False


class FakeScheduler(FrameScheduler):
    """Frame scheduler driven by a manual millisecond clock."""

    def __init__(self, frame_ms: float = 1000.0 / 60):
        self.now = 0.0
        self.frame_ms = frame_ms
        self._queue: List[Tuple[float, int, FakeHandle]] = []
        self._counter = itertools.count()

    def now_ms(self) -> float:
        return self.now

    def _schedule(self, delay_ms: float, callback) -> FakeHandle:
        handle = FakeHandle(self.now + delay_ms, callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def request_frame(self, callback) -> FakeHandle:
        return self._schedule(self.frame_ms, callback)

    def call_later(self, delay_s: float, callback) -> FakeHandle:
        return self._schedule(delay_s * 1000.0, callback)

    def cancel(self, handle) -> None:
        if handle is not None:
            handle.cancelled = True

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, ms: float) -> None:
        """Run every callback due within the next ms milliseconds."""
        target = self.now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            handle.callback()
        self.now = target


class ScriptedSource(AudioLevelSource):
    """
    Audio source whose amplitude follows a script of (start_ms, end_ms, amplitude).

    Times are relative to open(); outside every span the source is silent.
    """

    def __init__(self, clock: Callable[[], float], script=(), fail_open: Optional[Exception] = None,
                 buffer_size: int = 256):
        super().__init__(16000, buffer_size)
        self.clock = clock
        self.script = list(script)
        self.fail_open = fail_open
        self.open_calls = 0
        self.close_calls = 0
        self._opened_at = 0.0

    def _acquire(self) -> None:
        self.open_calls += 1
        if self.fail_open is not None:
            raise self.fail_open
        self._opened_at = self.clock()

    def _release(self) -> None:
        self.close_calls += 1

    def amplitude(self) -> float:
        elapsed = self.clock() - self._opened_at
        for start, end, amplitude in self.script:
            if start <= elapsed < end:
                return amplitude
        return SILENT

    def read_buffer(self) -> np.ndarray:
        return np.full(self.buffer_size, self.amplitude(), dtype=np.float32)


class ScriptedRecognizer(SpeechRecognizer):
    """Recognizer completed by the test, optionally on stop()."""

    def __init__(self, result_on_stop: Optional[TranscriptionResult] = None,
                 respond_to_stop: bool = True):
        super().__init__()
        self.result_on_stop = result_on_stop
        self.respond_to_stop = respond_to_stop
        self.starts: List[str] = []
        self.stop_calls = 0
        self.abort_calls = 0

    def _begin(self, source, language_tag: str) -> None:
        self.starts.append(language_tag)

    def stop(self) -> None:
        self.stop_calls += 1
        if self.respond_to_stop:
            self._deliver_result(self.result_on_stop)

    def abort(self) -> None:
        self.abort_calls += 1
        super().abort()

    def complete(self, text: Optional[str], confidence: Optional[float] = None) -> None:
        result = None if text is None else TranscriptionResult.create(text, confidence)
        self._deliver_result(result)

    def fail(self, error: Exception) -> None:
        self._deliver_error(error)


@pytest.fixture
def scheduler():
    """Provide a manual-clock scheduler."""
    return FakeScheduler()


@pytest.fixture
def assessment_config():
    """Provide the default assessment configuration."""
    return AssessmentConfig()


@pytest.fixture
def handler():
    """Provide a fresh error handler."""
    return ErrorHandler()


@pytest.fixture
def denied_microphone():
    return MicrophoneAccessError("Permission denied by user")
