"""
Tests for the error handling and progress tracking systems.
"""

import pytest
from unittest.mock import Mock

from reading_fluency_assessor.errors import (
    ErrorHandler, ProcessingError, ErrorCategory, ErrorSeverity,
    MicrophoneAccessError, RecognitionError
)
from reading_fluency_assessor.models import VoiceActivitySnapshot
from reading_fluency_assessor.progress import CardProgress, SessionProgressTracker
from reading_fluency_assessor.scoring import calculate_scores


def report_with(word_accuracy, speech_ms=2000, silent_ms=0):
    snapshot = VoiceActivitySnapshot(0, speech_ms, silent_ms)
    return calculate_scores(word_accuracy, word_accuracy, snapshot, 6, 0.9)


class TestErrorHandler:
    """Test the error handling system."""

    def test_error_handler_initialization(self):
        """Test error handler initializes correctly."""
        handler = ErrorHandler()
        assert handler.errors == []
        assert handler.warnings == []
        assert not handler.has_errors()
        assert not handler.has_warnings()

    def test_add_error_and_warning(self):
        """Errors and warnings are kept apart."""
        handler = ErrorHandler()
        handler.add_error(handler.handle_recognition_error(RecognitionError("boom")))
        handler.add_error(handler.no_speech_detected())

        assert len(handler.errors) == 1
        assert len(handler.warnings) == 1

    def test_info_is_logged_only(self):
        """Info-level entries are not collected."""
        handler = ErrorHandler()
        handler.add_error(ProcessingError(
            category=ErrorCategory.SESSION,
            severity=ErrorSeverity.INFO,
            message="Session resumed",
            details="",
            suggested_actions=[],
            error_code="INFO_001"
        ))
        assert not handler.has_errors()
        assert not handler.has_warnings()

    def test_error_summary(self):
        """The summary lists codes and actions."""
        handler = ErrorHandler()
        handler.add_error(handler.handle_microphone_error(MicrophoneAccessError("Permission denied")))
        summary = handler.get_error_summary()

        assert summary['error_count'] == 1
        assert summary['errors'][0]['code'] == "MIC_001"
        assert summary['errors'][0]['category'] == "microphone"
        assert summary['errors'][0]['suggested_actions']

        handler.clear_errors()
        assert handler.get_error_summary()['error_count'] == 0

    def test_context_defaults_to_empty(self):
        """An error without context gets an empty dict."""
        error = ErrorHandler().no_speech_detected()
        assert error.context == {}

    @pytest.mark.parametrize("message,code", [
        ("Permission denied by user", "MIC_001"),
        ("Error querying device -1", "MIC_002"),
        ("No input device available", "MIC_002"),
    ])
    def test_microphone_errors(self, message, code):
        """Device problems and refused permission get different codes."""
        error = ErrorHandler().handle_microphone_error(MicrophoneAccessError(message))
        assert error.error_code == code
        assert error.category == ErrorCategory.MICROPHONE

    @pytest.mark.parametrize("message,code,text", [
        ("engine crashed", "SPEECH_002", "Error in speech recognition. Please try again."),
        ("Recognition request failed: timeout", "SPEECH_003", "Speech service unavailable. Please try again."),
        ("connection reset", "SPEECH_003", "Speech service unavailable. Please try again."),
    ])
    def test_recognition_errors(self, message, code, text):
        """Recognition failures map to learner-facing messages."""
        error = ErrorHandler().handle_recognition_error(RuntimeError(message))
        assert error.error_code == code
        assert error.message == text

    def test_no_speech_message(self):
        """No speech is a warning with the retry message."""
        error = ErrorHandler().no_speech_detected(timed_out=True)
        assert error.severity == ErrorSeverity.WARNING
        assert error.message == "No speech detected. Please try again."
        assert "timed out" in error.details

    @pytest.mark.parametrize("message,code", [
        ("Audio appears to be silent", "AUDIO_001"),
        ("Audio file not found: a.wav", "AUDIO_002"),
        ("decoder exploded", "AUDIO_003"),
    ])
    def test_audio_processing_errors(self, message, code):
        """Audio file problems are categorized."""
        assert ErrorHandler().handle_audio_processing_error(ValueError(message)).error_code == code


class TestSessionProgressTracker:
    """Test per-card progress tracking."""

    def test_card_lifecycle(self):
        """A card moves from in progress to completed."""
        tracker = SessionProgressTracker("Ana")
        tracker.start_session()
        tracker.start_card(0, "The cat sat on the mat")
        card = tracker.cards[0]
        assert card.status == "in_progress"
        assert card.duration is not None

        report = report_with(100)
        tracker.complete_card(0, "The cat sat on the mat", report)
        assert card.is_completed
        assert card.latest_report is report
        assert card.feedback == report.remarks

    def test_retry_replaces_report(self):
        """Re-reading a card keeps only the newest report."""
        tracker = SessionProgressTracker()
        tracker.start_card(0, "A")
        tracker.complete_card(0, "A", report_with(50))
        tracker.start_card(0, "A")
        better = report_with(100)
        tracker.complete_card(0, "A", better)

        assert tracker.cards[0].attempts == 2
        assert tracker.cards[0].latest_report is better

    def test_failed_retry_keeps_score(self):
        """A failed retry does not discard an earlier score."""
        tracker = SessionProgressTracker()
        tracker.start_card(0, "A")
        tracker.complete_card(0, "A", report_with(100))
        tracker.start_card(0, "A")
        tracker.fail_card(0, "A", "No speech detected. Please try again.")

        assert tracker.cards[0].status == "completed"
        assert tracker.cards[0].latest_report is not None
        assert tracker.generate_completion_summary()['cards_completed'] == 1

    def test_progress_callbacks(self):
        """Callbacks receive every card update."""
        tracker = SessionProgressTracker()
        callback = Mock()
        tracker.add_progress_callback(callback)
        tracker.start_card(2, "B")
        tracker.fail_card(2, "B", "Microphone error or permission not granted.")

        assert callback.call_count == 2
        updated = callback.call_args[0][0]
        assert isinstance(updated, CardProgress)
        assert updated.status == "failed"

    def test_completion_summary(self):
        """The summary averages the latest report of each card."""
        tracker = SessionProgressTracker("Ana")
        tracker.start_session()
        tracker.start_card(0, "A")
        tracker.complete_card(0, "A", report_with(100))
        tracker.start_card(1, "B")
        tracker.complete_card(1, "B", report_with(60, speech_ms=4000, silent_ms=2000))
        tracker.start_card(2, "C")
        tracker.fail_card(2, "C", "No speech detected. Please try again.")

        summary = tracker.complete_session()

        assert summary['learner'] == "Ana"
        assert summary['cards_attempted'] == 3
        assert summary['cards_completed'] == 2
        assert summary['cards_failed'] == 1
        assert summary['total_attempts'] == 3
        assert summary['session_duration'] is not None
        reports = [tracker.cards[0].latest_report, tracker.cards[1].latest_report]
        assert summary['average_score'] == round(sum(r.average_score for r in reports) / 2)
        assert summary['cards'][2]['average_score'] is None

    def test_empty_summary(self):
        """A session without reports has no average."""
        summary = SessionProgressTracker().complete_session()
        assert summary['average_score'] is None
        assert summary['average_label'] is None
        assert summary['average_wpm'] is None

    def test_console_output(self, capsys):
        """Console mode prints the session summary."""
        tracker = SessionProgressTracker("Ana", enable_console_output=True)
        tracker.start_session()
        tracker.start_card(0, "A")
        tracker.complete_card(0, "A", report_with(100))
        tracker.complete_session()

        output = capsys.readouterr().out
        assert "SESSION SUMMARY" in output
        assert "Cards Completed: 1/1" in output
