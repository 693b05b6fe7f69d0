"""
Tests for audio sources and the audio file loader.
"""

import sys
import types

import numpy as np
import pytest
import soundfile as sf

from reading_fluency_assessor.audio import (
    ArrayAudioSource,
    AudioLoader,
    FileAudioSource,
    MicrophoneAudioSource,
)
from reading_fluency_assessor.errors import AudioValidationError, MicrophoneAccessError


SAMPLE_RATE = 16000


def tone(seconds: float, amplitude: float = 0.3) -> np.ndarray:
    t = np.arange(int(SAMPLE_RATE * seconds)) / SAMPLE_RATE
    return (amplitude * np.sin(2 * np.pi * 220 * t)).astype(np.float32)


class TestArrayAudioSource:
    """Test clock-driven replay of an in-memory waveform."""

    def test_zeros_before_open(self, scheduler):
        """A closed source reads as silence."""
        source = ArrayAudioSource(tone(1.0), SAMPLE_RATE, scheduler.now_ms, buffer_size=512)
        assert np.all(source.read_buffer() == 0)
        assert not source.exhausted

    def test_window_follows_clock(self, scheduler):
        """The buffer ends at the sample matching elapsed time."""
        samples = np.arange(SAMPLE_RATE, dtype=np.float32) / SAMPLE_RATE
        source = ArrayAudioSource(samples, SAMPLE_RATE, scheduler.now_ms, buffer_size=512)
        source.open()
        scheduler.advance(100)
        window = source.read_buffer()
        assert len(window) == 512
        assert window[-1] == samples[1599]
        assert len(source.captured_audio()) == 1600

    def test_exhausted_after_duration(self, scheduler):
        """A finished replay reports exhaustion."""
        source = ArrayAudioSource(tone(0.5), SAMPLE_RATE, scheduler.now_ms)
        source.open()
        assert source.duration_ms == pytest.approx(500)
        scheduler.advance(499)
        assert not source.exhausted
        scheduler.advance(2)
        assert source.exhausted

    def test_close_is_idempotent_and_final(self, scheduler):
        """A closed source cannot be reopened."""
        source = ArrayAudioSource(tone(0.5), SAMPLE_RATE, scheduler.now_ms)
        source.open()
        source.close()
        source.close()
        assert not source.is_open
        with pytest.raises(MicrophoneAccessError):
            source.open()


class FakeInputStream:
    instances = []

    def __init__(self, samplerate, channels, dtype, device, callback):
        self.samplerate = samplerate
        self.callback = callback
        self.started = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_sounddevice(monkeypatch):
    """Replace sounddevice with an in-memory stream."""
    FakeInputStream.instances = []
    module = types.SimpleNamespace(InputStream=FakeInputStream)
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


class TestMicrophoneAudioSource:
    """Test the live microphone source against a fake stream."""

    def test_callback_fills_buffer(self, fake_sounddevice):
        """Captured blocks roll through the analysis buffer."""
        source = MicrophoneAudioSource(buffer_size=8)
        source.open()
        stream = FakeInputStream.instances[0]
        assert stream.started

        stream.callback(np.ones((4, 1), dtype=np.float32), 4, None, None)
        buffer = source.read_buffer()
        assert list(buffer) == [0, 0, 0, 0, 1, 1, 1, 1]

        stream.callback(np.full((16, 1), 0.5, dtype=np.float32), 16, None, None)
        assert np.all(source.read_buffer() == 0.5)
        assert len(source.captured_audio()) == 20

    def test_close_stops_stream(self, fake_sounddevice):
        """Closing stops and closes the stream once."""
        source = MicrophoneAudioSource()
        source.open()
        stream = FakeInputStream.instances[0]
        source.close()
        source.close()
        assert stream.closed
        assert not stream.started
        assert not source.is_open

    def test_open_failure_is_microphone_error(self, fake_sounddevice):
        """Device errors surface as MicrophoneAccessError."""
        def refuse(**kwargs):
            raise RuntimeError("Error querying device -1")

        fake_sounddevice.InputStream = refuse
        source = MicrophoneAudioSource()
        with pytest.raises(MicrophoneAccessError, match="device"):
            source.open()
        assert not source.is_open


class TestAudioLoader:
    """Test loading recorded attempts."""

    def test_load_wav(self, tmp_path):
        """A WAV file loads mono at the target rate."""
        path = tmp_path / "reading.wav"
        sf.write(str(path), tone(1.0), SAMPLE_RATE)
        audio, sample_rate = AudioLoader().load_audio(str(path))
        assert sample_rate == SAMPLE_RATE
        assert audio.dtype == np.float32
        assert len(audio) == SAMPLE_RATE

    def test_missing_file(self, tmp_path):
        """A missing file is rejected."""
        with pytest.raises(AudioValidationError, match="not found"):
            AudioLoader().load_audio(str(tmp_path / "missing.wav"))

    def test_unsupported_format(self, tmp_path):
        """Unknown extensions are rejected."""
        path = tmp_path / "reading.txt"
        path.write_text("not audio")
        with pytest.raises(AudioValidationError, match="Unsupported audio format"):
            AudioLoader().validate_file_path(str(path))

    def test_silent_file(self, tmp_path):
        """Digital silence is rejected."""
        path = tmp_path / "silence.wav"
        sf.write(str(path), np.zeros(SAMPLE_RATE, dtype=np.float32), SAMPLE_RATE)
        with pytest.raises(AudioValidationError, match="silent"):
            AudioLoader().load_audio(str(path))

    def test_audio_info(self, tmp_path):
        """File information is read without decoding."""
        path = tmp_path / "reading.wav"
        sf.write(str(path), tone(0.5), SAMPLE_RATE)
        info = AudioLoader().get_audio_info(str(path))
        assert info['sample_rate'] == SAMPLE_RATE
        assert info['channels'] == 1
        assert info['duration'] == pytest.approx(0.5)

    def test_file_source_replays_recording(self, tmp_path, scheduler):
        """A file source replays the loaded waveform."""
        path = tmp_path / "reading.wav"
        sf.write(str(path), tone(0.5), SAMPLE_RATE)
        source = FileAudioSource.from_file(str(path), scheduler.now_ms)
        assert source.duration_ms == pytest.approx(500)
        source.open()
        scheduler.advance(600)
        assert source.exhausted
