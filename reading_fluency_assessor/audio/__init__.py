"""
Audio capture, replay and voice activity tracking.
"""

from .loader import AudioLoader
from .scheduler import AsyncioFrameScheduler, FrameScheduler
from .session import AudioSession
from .sources import (
    ArrayAudioSource,
    AudioLevelSource,
    FileAudioSource,
    MicrophoneAudioSource,
)
from .vad import LevelSample, VoiceActivityTracker, buffer_level_db

__all__ = [
    'AudioLoader',
    'AsyncioFrameScheduler',
    'FrameScheduler',
    'AudioSession',
    'ArrayAudioSource',
    'AudioLevelSource',
    'FileAudioSource',
    'MicrophoneAudioSource',
    'LevelSample',
    'VoiceActivityTracker',
    'buffer_level_db',
]
