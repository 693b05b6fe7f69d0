"""
Audio file validation and loading for recorded attempts.

Recordings are replayed through the same voice activity tracker that runs
on live microphone input, so they are loaded mono at the capture sample rate
and only lightly filtered.
"""

import logging
from pathlib import Path
from typing import Tuple
import numpy as np
import librosa
import soundfile as sf
from scipy import signal

from ..config import Config
from ..errors import AudioValidationError


logger = logging.getLogger(__name__)


class AudioLoader:
    """Handles audio file loading and validation."""

    SUPPORTED_FORMATS = set(Config.AUDIO_FORMATS)
    MIN_DURATION = 0.1  # seconds
    MAX_DURATION = 600.0  # seconds
    HIGH_PASS_CUTOFF = 80.0  # Hz

    def __init__(self, target_sample_rate: int = Config.SAMPLE_RATE, high_pass: bool = True):
        """
        Initialize AudioLoader.

        Args:
            target_sample_rate: Target sample rate for loaded audio
            high_pass: Remove low-frequency rumble before level analysis
        """
        self.target_sample_rate = target_sample_rate
        self.high_pass = high_pass

    def validate_file_path(self, file_path: str) -> Path:
        """
        Validate that the audio file exists and has a supported format.

        Args:
            file_path: Path to the audio file

        Returns:
            Path object for the validated file

        Raises:
            AudioValidationError: If file doesn't exist or format not supported
        """
        path = Path(file_path)

        if not path.exists():
            raise AudioValidationError(f"Audio file not found: {file_path}")

        if not path.is_file():
            raise AudioValidationError(f"Path is not a file: {file_path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            supported = ', '.join(sorted(self.SUPPORTED_FORMATS))
            raise AudioValidationError(
                f"Unsupported audio format: {path.suffix}. "
                f"Supported formats: {supported}"
            )

        return path

    def load_audio(self, file_path: str) -> Tuple[np.ndarray, int]:
        """
        Load and validate an audio file.

        Args:
            file_path: Path to the audio file

        Returns:
            Tuple of (audio_data, sample_rate)

        Raises:
            AudioValidationError: If loading or validation fails
        """
        path = self.validate_file_path(file_path)

        try:
            audio_data, sample_rate = librosa.load(
                str(path),
                sr=self.target_sample_rate,
                mono=True
            )
        except Exception as e:
            raise AudioValidationError(f"Failed to load audio file {path}: {str(e)}") from e

        self._validate_audio_properties(audio_data, sample_rate, str(path))

        if self.high_pass:
            audio_data = self._apply_high_pass_filter(audio_data, sample_rate)

        logger.info(
            f"Loaded audio: {path.name}, "
            f"duration: {len(audio_data) / sample_rate:.2f}s, "
            f"sample_rate: {sample_rate}Hz"
        )
        return audio_data.astype(np.float32), sample_rate

    def _validate_audio_properties(self, audio_data: np.ndarray, sample_rate: int, file_path: str) -> None:
        """
        Validate audio properties for replay.

        Raises:
            AudioValidationError: If validation fails
        """
        if len(audio_data) == 0:
            raise AudioValidationError(f"Audio file is empty: {file_path}")

        duration = len(audio_data) / sample_rate
        if duration < self.MIN_DURATION:
            raise AudioValidationError(
                f"Audio too short: {duration:.2f}s (minimum: {self.MIN_DURATION}s)"
            )

        if duration > self.MAX_DURATION:
            raise AudioValidationError(
                f"Audio too long: {duration:.2f}s (maximum: {self.MAX_DURATION}s)"
            )

        max_amplitude = np.max(np.abs(audio_data))
        if max_amplitude < 1e-6:
            raise AudioValidationError("Audio appears to be silent or has very low amplitude")

    def _apply_high_pass_filter(self, audio_data: np.ndarray, sample_rate: int) -> np.ndarray:
        """
        Apply a gentle high-pass filter to remove DC offset and rumble.

        Args:
            audio_data: Input audio data
            sample_rate: Sample rate in Hz

        Returns:
            Filtered audio data
        """
        # filtfilt needs more samples than its padding length
        if len(audio_data) < 100:
            return audio_data

        normalized_cutoff = self.HIGH_PASS_CUTOFF / (sample_rate / 2)
        b, a = signal.butter(2, normalized_cutoff, btype='high')
        return signal.filtfilt(b, a, audio_data)

    def get_audio_info(self, file_path: str) -> dict:
        """
        Get audio file information without loading the full audio data.

        Raises:
            AudioValidationError: If file cannot be read
        """
        path = self.validate_file_path(file_path)

        try:
            with sf.SoundFile(str(path)) as f:
                return {
                    'file_path': str(path),
                    'file_size': path.stat().st_size,
                    'duration': f.frames / f.samplerate,
                    'sample_rate': f.samplerate,
                    'channels': f.channels,
                    'frames': f.frames,
                    'format': path.suffix.lower()
                }
        except Exception as e:
            raise AudioValidationError(f"Failed to get audio info for {path}: {str(e)}") from e
