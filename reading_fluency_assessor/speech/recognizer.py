"""
Speech recognition collaborators.

A recognizer is started alongside the voice activity tracker and delivers
exactly one completion per attempt: a TranscriptionResult, None for no
speech, or an exception. stop() asks for that completion now; abort()
drops the attempt without one.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple
import numpy as np
import speech_recognition as sr

from ..config import default_assessment_config
from ..errors import RecognitionError
from ..models import TranscriptionResult
from ..audio.scheduler import AsyncioFrameScheduler, FrameScheduler
from ..audio.sources import AudioLevelSource


logger = logging.getLogger(__name__)

ResultCallback = Callable[[Optional[TranscriptionResult]], None]
ErrorCallback = Callable[[Exception], None]


class SpeechRecognizer(ABC):
    """Interface to an external speech-to-text engine."""

    def __init__(self):
        self._on_result: Optional[ResultCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._active = False

    @property
    def is_active(self) -> bool:
        """True between start() and the completion or abort."""
        return self._active

    def start(self, source: AudioLevelSource, language_tag: str,
              on_result: ResultCallback, on_error: ErrorCallback) -> None:
        """
        Begin recognizing the audio captured by source.

        Args:
            source: Audio source shared with the voice activity tracker
            language_tag: Engine language tag, e.g. 'en-US' or 'fil-PH'
            on_result: Receives the transcript, or None when nothing was heard
            on_error: Receives engine failures
        """
        self._on_result = on_result
        self._on_error = on_error
        self._active = True
        logger.debug(f"{type(self).__name__} started for {language_tag}")
        self._begin(source, language_tag)

    @abstractmethod
    def _begin(self, source: AudioLevelSource, language_tag: str) -> None:
        """Engine-specific start."""

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing and deliver the completion. Safe to call repeatedly."""

    def abort(self) -> None:
        """Drop the current attempt without delivering anything."""
        if self._active:
            logger.debug(f"{type(self).__name__} aborted")
        self._active = False
        self._on_result = None
        self._on_error = None

    def _deliver_result(self, result: Optional[TranscriptionResult]) -> None:
        if not self._active:
            return
        callback = self._on_result
        self._active = False
        if callback is not None:
            callback(result)

    def _deliver_error(self, error: Exception) -> None:
        if not self._active:
            return
        callback = self._on_error
        self._active = False
        if callback is not None:
            callback(error)


class ReplayTranscriptRecognizer(SpeechRecognizer):
    """
    Returns a known transcript once its audio source has finished playing.

    Used to replay recorded attempts whose transcript is already known.
    """

    def __init__(self, transcript: str, scheduler: FrameScheduler,
                 confidence: Optional[float] = None,
                 default_confidence: float = default_assessment_config.default_confidence):
        super().__init__()
        self.transcript = transcript
        self.scheduler = scheduler
        self.confidence = confidence
        self.default_confidence = default_confidence
        self._source: Optional[AudioLevelSource] = None
        self._frame_handle = None

    def _begin(self, source: AudioLevelSource, language_tag: str) -> None:
        self._source = source
        self._frame_handle = self.scheduler.request_frame(self._poll)

    def _poll(self) -> None:
        self._frame_handle = None
        if not self._active:
            return
        if self._source is None or self._source.exhausted or not self._source.is_open:
            self.stop()
            return
        self._frame_handle = self.scheduler.request_frame(self._poll)

    def _cancel_poll(self) -> None:
        handle, self._frame_handle = self._frame_handle, None
        if handle is not None:
            self.scheduler.cancel(handle)

    def stop(self) -> None:
        self._cancel_poll()
        if not self._active:
            return
        if not self.transcript.strip():
            self._deliver_result(None)
            return
        self._deliver_result(TranscriptionResult.create(
            self.transcript, self.confidence, self.default_confidence
        ))

    def abort(self) -> None:
        self._cancel_poll()
        super().abort()


class GoogleWebSpeechRecognizer(SpeechRecognizer):
    """
    Google Web Speech recognition through the SpeechRecognition library.

    Audio is taken from the source when stop() is called; the blocking
    request runs on the event loop's executor and the completion is
    delivered back on the loop.
    """

    def __init__(self, scheduler: AsyncioFrameScheduler,
                 default_confidence: float = default_assessment_config.default_confidence):
        super().__init__()
        self.scheduler = scheduler
        self.default_confidence = default_confidence
        self._source: Optional[AudioLevelSource] = None
        self._language_tag = "en-US"
        self._attempt = 0
        self._stopping = False

    def _begin(self, source: AudioLevelSource, language_tag: str) -> None:
        self._source = source
        self._language_tag = language_tag
        self._attempt += 1
        self._stopping = False

    def stop(self) -> None:
        if not self._active or self._stopping:
            return
        self._stopping = True
        samples = self._source.captured_audio() if self._source is not None else None
        if samples is None or len(samples) == 0:
            self._deliver_result(None)
            return

        attempt = self._attempt
        future = self.scheduler.run_in_executor(
            recognize_samples, samples, self._source.sample_rate, self._language_tag
        )
        future.add_done_callback(lambda f: self._on_done(attempt, f))
        logger.info(f"Sent {len(samples) / self._source.sample_rate:.1f}s of audio for recognition")

    def _on_done(self, attempt: int, future) -> None:
        if attempt != self._attempt:
            return
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._deliver_error(error)
            return
        text, confidence = future.result()
        if not text:
            self._deliver_result(None)
            return
        self._deliver_result(TranscriptionResult.create(text, confidence, self.default_confidence))

    def abort(self) -> None:
        self._attempt += 1
        self._stopping = False
        super().abort()


def samples_to_audio_data(samples: np.ndarray, sample_rate: int) -> sr.AudioData:
    """Convert float samples to 16-bit PCM AudioData."""
    pcm = np.clip(np.asarray(samples, dtype=np.float32) * 32767, -32768, 32767).astype(np.int16)
    return sr.AudioData(pcm.tobytes(), sample_rate, 2)


def recognize_samples(samples: np.ndarray, sample_rate: int,
                      language_tag: str) -> Tuple[str, Optional[float]]:
    """
    Recognize a waveform with Google Web Speech.

    Returns:
        Tuple of (best transcript, its confidence or None); the transcript is
        empty when nothing was understood

    Raises:
        RecognitionError: If the service request fails
    """
    recognizer = sr.Recognizer()
    try:
        result = recognizer.recognize_google(
            samples_to_audio_data(samples, sample_rate),
            language=language_tag,
            show_all=True
        )
    except sr.UnknownValueError:
        return "", None
    except sr.RequestError as e:
        raise RecognitionError(f"Recognition request failed: {e}") from e

    if isinstance(result, dict) and result.get("alternative"):
        best = None
        best_confidence = None
        for alternative in result["alternative"]:
            if "transcript" not in alternative:
                continue
            confidence = alternative.get("confidence")
            if best is None or (confidence is not None and
                                (best_confidence is None or confidence > best_confidence)):
                best = alternative["transcript"]
                best_confidence = confidence
        return (best or "").strip(), best_confidence

    if isinstance(result, str):
        return result.strip(), None
    return "", None
