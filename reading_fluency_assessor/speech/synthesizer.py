"""
Prompt playback through a text-to-speech engine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional
import pyttsx3

from ..config import Config
from ..audio.scheduler import AsyncioFrameScheduler


logger = logging.getLogger(__name__)

# Substrings that identify an engine voice for each language tag
VOICE_HINTS = {
    "en-US": ("en_us", "en-us", "english"),
    "fil-PH": ("fil", "tl", "tagalog", "filipino"),
}


class SpeechSynthesizer(ABC):
    """Interface to an external text-to-speech engine."""

    @abstractmethod
    def speak(self, text: str, language_tag: str,
              on_done: Optional[Callable[[], None]] = None) -> None:
        """Play text back and call on_done when playback finishes."""


class Pyttsx3Synthesizer(SpeechSynthesizer):
    """Offline prompt playback with pyttsx3."""

    def __init__(self, scheduler: AsyncioFrameScheduler, rate: int = Config.SPEECH_RATE,
                 volume: float = 0.9):
        self.scheduler = scheduler
        self.rate = rate
        self.volume = volume

    def speak(self, text: str, language_tag: str,
              on_done: Optional[Callable[[], None]] = None) -> None:
        future = self.scheduler.run_in_executor(self._speak_blocking, text, language_tag)

        def finished(f) -> None:
            if not f.cancelled() and f.exception() is not None:
                logger.warning(f"Prompt playback failed: {f.exception()}")
            if on_done is not None:
                on_done()

        future.add_done_callback(finished)

    def _speak_blocking(self, text: str, language_tag: str) -> None:
        engine = pyttsx3.init()
        engine.setProperty('rate', self.rate)
        engine.setProperty('volume', self.volume)
        voice_id = select_voice(engine.getProperty('voices'), language_tag)
        if voice_id is not None:
            engine.setProperty('voice', voice_id)
        logger.debug(f"Speaking prompt ({language_tag}): {text}")
        engine.say(text)
        engine.runAndWait()


def select_voice(voices, language_tag: str) -> Optional[str]:
    """Pick the first engine voice whose id, name or languages match the tag."""
    hints = VOICE_HINTS.get(language_tag, (language_tag.lower(),))
    for voice in voices or []:
        languages = [
            lang.decode(errors='ignore') if isinstance(lang, bytes) else str(lang)
            for lang in (getattr(voice, 'languages', None) or [])
        ]
        haystack = " ".join([str(voice.id), str(getattr(voice, 'name', ''))] + languages).lower()
        if any(hint in haystack for hint in hints):
            return voice.id
    return None
