"""
Error handling system for the Reading Fluency Assessor.

This module provides centralized error definitions and the learner-facing
feedback messages for every way an assessment attempt can fail.
"""

import logging
from enum import Enum
from typing import List, Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur during an assessment."""
    MICROPHONE = "microphone"
    RECOGNITION = "recognition"
    CONTENT = "content"
    AUDIO_PROCESSING = "audio_processing"
    PERSISTENCE = "persistence"
    SESSION = "session"


@dataclass
class ProcessingError:
    """Represents a processing error with context and guidance."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class ReadingAssessmentError(Exception):
    """Base exception for Reading Fluency Assessor errors."""
    pass


class MicrophoneAccessError(ReadingAssessmentError):
    """Raised when the microphone cannot be opened or access was refused."""
    pass


class RecognitionError(ReadingAssessmentError):
    """Raised (or reported) when the speech recognition engine fails."""
    pass


class MalformedContentError(ReadingAssessmentError):
    """Raised when stored flashcard or roster data is invalid."""
    pass


class AudioValidationError(ReadingAssessmentError):
    """Raised when audio file validation fails."""
    pass


class SessionStateError(ReadingAssessmentError):
    """Raised when a session transition is not allowed from the current state."""
    pass


class ErrorHandler:
    """
    Centralized error handling and reporting system.

    Turns failures from the audio, recognition, content and storage
    collaborators into categorized errors with learner-facing messages.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors: List[ProcessingError] = []
        self.warnings: List[ProcessingError] = []

    def add_error(self, error: ProcessingError) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: ProcessingError) -> Dict[str, Any]:
        """Format error for summary display."""
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    def handle_microphone_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle microphone permission and device errors."""
        error_str = str(error).lower()

        if 'device' in error_str or 'no input' in error_str or 'not found' in error_str:
            return ProcessingError(
                category=ErrorCategory.MICROPHONE,
                severity=ErrorSeverity.ERROR,
                message="Microphone not available. Please connect a microphone and try again.",
                details=f"Audio input device error: {error}",
                suggested_actions=[
                    "Check that a microphone is connected",
                    "Select a different input device in the system settings"
                ],
                error_code="MIC_002",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.MICROPHONE,
            severity=ErrorSeverity.ERROR,
            message="Microphone error or permission not granted.",
            details=f"Microphone access failed: {error}",
            suggested_actions=[
                "Allow microphone access for this application",
                "Close other applications that may be using the microphone"
            ],
            error_code="MIC_001",
            context=context
        )

    def no_speech_detected(self, timed_out: bool = False, context: Dict[str, Any] = None) -> ProcessingError:
        """Describe an attempt that ended without any recognized speech."""
        details = "Recognition timed out before any speech was recognized" if timed_out \
            else "Recognition ended with an empty transcript"
        return ProcessingError(
            category=ErrorCategory.RECOGNITION,
            severity=ErrorSeverity.WARNING,
            message="No speech detected. Please try again.",
            details=details,
            suggested_actions=[
                "Speak clearly and close to the microphone",
                "Start reading right after pressing the microphone button"
            ],
            error_code="SPEECH_001",
            context=context
        )

    def handle_recognition_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle errors reported by the speech recognition engine."""
        error_str = str(error).lower()

        if 'network' in error_str or 'connection' in error_str or 'request' in error_str:
            return ProcessingError(
                category=ErrorCategory.RECOGNITION,
                severity=ErrorSeverity.ERROR,
                message="Speech service unavailable. Please try again.",
                details=f"Recognition service request failed: {error}",
                suggested_actions=[
                    "Check your internet connection",
                    "Try again in a few moments"
                ],
                error_code="SPEECH_003",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.RECOGNITION,
            severity=ErrorSeverity.ERROR,
            message="Error in speech recognition. Please try again.",
            details=f"Recognition engine error: {error}",
            suggested_actions=[
                "Try the attempt again",
                "Reduce background noise"
            ],
            error_code="SPEECH_002",
            context=context
        )

    def handle_content_error(self, error: Exception, source: str, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle unreadable or invalid flashcard/roster content."""
        error_str = str(error).lower()

        if 'json' in error_str or 'expecting' in error_str or 'decode' in error_str:
            return ProcessingError(
                category=ErrorCategory.CONTENT,
                severity=ErrorSeverity.WARNING,
                message=f"Stored {source} could not be read; using built-in defaults",
                details=f"Invalid JSON in {source}: {error}",
                suggested_actions=[
                    f"Re-save the {source} from the editor",
                    "Delete the stored file to restore the defaults"
                ],
                error_code="CONTENT_001",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.CONTENT,
            severity=ErrorSeverity.WARNING,
            message=f"Stored {source} is malformed; using built-in defaults",
            details=f"Content validation failed for {source}: {error}",
            suggested_actions=[
                "Ensure every card has a non-empty sentence",
                "Ensure highlights are a list of words"
            ],
            error_code="CONTENT_002",
            context=context
        )

    def handle_persistence_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle failures while saving performance records."""
        return ProcessingError(
            category=ErrorCategory.PERSISTENCE,
            severity=ErrorSeverity.WARNING,
            message="Could not save the attempt result",
            details=f"Performance record was not persisted: {error}",
            suggested_actions=[
                "Check write permissions for the data directory",
                "Ensure there is enough disk space"
            ],
            error_code="STORE_001",
            context=context
        )

    def handle_audio_processing_error(self, error: Exception, context: Dict[str, Any] = None) -> ProcessingError:
        """Handle audio file loading errors."""
        error_str = str(error).lower()

        if 'silent' in error_str or 'amplitude' in error_str:
            return ProcessingError(
                category=ErrorCategory.AUDIO_PROCESSING,
                severity=ErrorSeverity.ERROR,
                message="Audio appears to be silent",
                details=f"Audio silence detected: {error}",
                suggested_actions=[
                    "Check that the recording contains audible speech",
                    "Verify the microphone was working during recording"
                ],
                error_code="AUDIO_001",
                context=context
            )

        if 'format' in error_str or 'not found' in error_str:
            return ProcessingError(
                category=ErrorCategory.AUDIO_PROCESSING,
                severity=ErrorSeverity.ERROR,
                message="Audio file issue",
                details=f"Audio file problem: {error}",
                suggested_actions=[
                    "Check that the file path is correct",
                    "Convert the recording to WAV"
                ],
                error_code="AUDIO_002",
                context=context
            )

        return ProcessingError(
            category=ErrorCategory.AUDIO_PROCESSING,
            severity=ErrorSeverity.ERROR,
            message="Audio processing failed",
            details=f"Audio processing error: {error}",
            suggested_actions=[
                "Check audio file integrity",
                "Try using a different recording"
            ],
            error_code="AUDIO_003",
            context=context
        )


# Global error handler instance
error_handler = ErrorHandler()
