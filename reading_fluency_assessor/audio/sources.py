"""
Audio level sources feeding the voice activity tracker.

A source owns the capture stream and the analysis buffer for one attempt.
The tracker reads the most recent time-domain buffer once per frame.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import numpy as np

from ..config import Config
from ..errors import MicrophoneAccessError
from .loader import AudioLoader


logger = logging.getLogger(__name__)


class AudioLevelSource(ABC):
    """Capture stream plus analysis buffer for one attempt."""

    def __init__(self, sample_rate: int, buffer_size: int = 2048):
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self._open = False
        self._closed = False

    @property
    def is_open(self) -> bool:
        """True while the stream is live."""
        return self._open

    @property
    def exhausted(self) -> bool:
        """True when a finite source has nothing more to play."""
        return False

    def open(self) -> None:
        """
        Acquire the stream.

        Raises:
            MicrophoneAccessError: If the input cannot be opened
        """
        if self._closed:
            raise MicrophoneAccessError("Audio source was already closed")
        if self._open:
            return
        self._acquire()
        self._open = True

    def close(self) -> None:
        """Stop the stream and release the buffer. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        was_open = self._open
        self._open = False
        self._release()
        if was_open:
            logger.debug(f"{type(self).__name__} closed")

    def captured_audio(self) -> Optional[np.ndarray]:
        """Audio captured so far, for recognizers that need the waveform."""
        return None

    @abstractmethod
    def read_buffer(self) -> np.ndarray:
        """Return the latest time-domain buffer (float samples in [-1, 1])."""

    @abstractmethod
    def _acquire(self) -> None:
        """Open the underlying stream."""

    @abstractmethod
    def _release(self) -> None:
        """Close the underlying stream."""


class ArrayAudioSource(AudioLevelSource):
    """
    Replays an in-memory waveform in step with a clock.

    The buffer returned on each read ends at the sample matching the time
    elapsed since open(), so replay behaves like live capture.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int,
                 clock: Callable[[], float], buffer_size: int = 2048):
        """
        Initialize the replay source.

        Args:
            samples: Mono waveform
            sample_rate: Sample rate of the waveform
            clock: Millisecond clock, normally the frame scheduler's now_ms
            buffer_size: Analysis window length in samples
        """
        super().__init__(sample_rate, buffer_size)
        self.samples = np.asarray(samples, dtype=np.float32)
        self.clock = clock
        self._start_ms: Optional[float] = None

    @property
    def duration_ms(self) -> float:
        return len(self.samples) / self.sample_rate * 1000.0

    def _position(self) -> int:
        if self._start_ms is None:
            return 0
        elapsed_ms = self.clock() - self._start_ms
        return min(len(self.samples), max(0, int(elapsed_ms / 1000.0 * self.sample_rate)))

    @property
    def exhausted(self) -> bool:
        return self._start_ms is not None and self._position() >= len(self.samples)

    def _acquire(self) -> None:
        self._start_ms = self.clock()

    def _release(self) -> None:
        pass

    def read_buffer(self) -> np.ndarray:
        if not self._open:
            return np.zeros(self.buffer_size, dtype=np.float32)
        end = self._position()
        start = max(0, end - self.buffer_size)
        window = self.samples[start:end]
        if len(window) == 0:
            return np.zeros(self.buffer_size, dtype=np.float32)
        return window

    def captured_audio(self) -> Optional[np.ndarray]:
        return self.samples[:self._position()]


class FileAudioSource(ArrayAudioSource):
    """Replays a recorded attempt from an audio file."""

    @classmethod
    def from_file(cls, file_path: str, clock: Callable[[], float],
                  loader: Optional[AudioLoader] = None,
                  buffer_size: int = 2048) -> 'FileAudioSource':
        """
        Load a recording for replay.

        Raises:
            AudioValidationError: If the file cannot be loaded
        """
        loader = loader or AudioLoader()
        samples, sample_rate = loader.load_audio(file_path)
        return cls(samples, sample_rate, clock, buffer_size=buffer_size)


class MicrophoneAudioSource(AudioLevelSource):
    """
    Live microphone input through sounddevice.

    The PortAudio callback thread only writes into the rolling analysis
    buffer; the tracker reads a copy from the event loop thread.
    """

    def __init__(self, sample_rate: int = Config.SAMPLE_RATE, buffer_size: int = 2048,
                 device: Optional[int] = None, keep_audio: bool = True):
        """
        Initialize the microphone source.

        Args:
            sample_rate: Capture sample rate
            buffer_size: Analysis window length in samples
            device: Input device index; None for the system default
            keep_audio: Keep the captured waveform in memory for recognition
        """
        super().__init__(sample_rate, buffer_size)
        self.device = device
        self.keep_audio = keep_audio
        self._stream = None
        self._lock = threading.Lock()
        self._ring = np.zeros(buffer_size, dtype=np.float32)
        self._chunks: List[np.ndarray] = []

    def _acquire(self) -> None:
        try:
            import sounddevice as sd
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype='float32',
                device=self.device,
                callback=self._audio_callback
            )
            self._stream.start()
        except Exception as e:
            self._release_stream()
            raise MicrophoneAccessError(str(e)) from e
        logger.info(f"Microphone stream opened at {self.sample_rate}Hz")

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        """Audio stream callback."""
        if status:
            logger.debug(f"Audio input status: {status}")
        chunk = indata[:, 0].copy()
        with self._lock:
            if len(chunk) >= self.buffer_size:
                self._ring = chunk[-self.buffer_size:]
            else:
                self._ring = np.concatenate([self._ring[len(chunk):], chunk])
            if self.keep_audio:
                self._chunks.append(chunk)

    def read_buffer(self) -> np.ndarray:
        with self._lock:
            return self._ring.copy()

    def captured_audio(self) -> Optional[np.ndarray]:
        with self._lock:
            if not self._chunks:
                return np.zeros(0, dtype=np.float32)
            return np.concatenate(self._chunks)

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()

    def _release(self) -> None:
        self._release_stream()
        with self._lock:
            self._ring = np.zeros(self.buffer_size, dtype=np.float32)
