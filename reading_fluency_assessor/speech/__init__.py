"""
Speech recognition and synthesis collaborators.
"""

from .recognizer import (
    GoogleWebSpeechRecognizer,
    ReplayTranscriptRecognizer,
    SpeechRecognizer,
    recognize_samples,
)
from .synthesizer import Pyttsx3Synthesizer, SpeechSynthesizer, select_voice

__all__ = [
    'GoogleWebSpeechRecognizer',
    'ReplayTranscriptRecognizer',
    'SpeechRecognizer',
    'recognize_samples',
    'Pyttsx3Synthesizer',
    'SpeechSynthesizer',
    'select_voice',
]
