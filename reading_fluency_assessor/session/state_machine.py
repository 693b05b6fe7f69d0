"""
Assessment session state machine.

Orchestrates one learner's attempts: it acquires the audio session, runs the
voice activity tracker and the recognizer side by side, decides when their
inputs are frozen, and turns the result into a ScoreReport or a feedback
message. Every exit path tears the audio session down.

States: IDLE -> LISTENING -> SCORING -> FEEDBACK -> {IDLE | ENDED}
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, List, Optional

from ..audio.scheduler import FrameScheduler
from ..audio.session import AudioSession
from ..audio.sources import AudioLevelSource
from ..audio.vad import LevelSample
from ..config import AssessmentConfig, default_assessment_config
from ..errors import (
    ErrorHandler,
    MicrophoneAccessError,
    ProcessingError,
    SessionStateError,
    error_handler,
)
from ..models import (
    ExpectedUtterance,
    PerformanceRecord,
    ScoreReport,
    TranscriptionResult,
    VoiceActivityStats,
)
from ..alignment.normalizer import normalize_text
from ..scoring.calculator import assess_attempt
from ..speech.recognizer import SpeechRecognizer


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle states of an assessment session."""
    IDLE = "idle"
    LISTENING = "listening"
    SCORING = "scoring"
    FEEDBACK = "feedback"
    ENDED = "ended"


@dataclass(frozen=True)
class SessionEvent:
    """Observable state published to subscribers."""
    state: SessionState
    feedback: str = ""
    report: Optional[ScoreReport] = None
    level: Optional[LevelSample] = None
    error: Optional[ProcessingError] = None


SessionListener = Callable[[SessionEvent], None]


class AssessmentSession:
    """
    Drives attempts for one learner and one deck.

    Only one AudioSession is live at a time; a new attempt can only start
    from IDLE or FEEDBACK, after the previous one has been torn down.
    """

    def __init__(self, recognizer: SpeechRecognizer,
                 source_factory: Callable[[], AudioLevelSource],
                 scheduler: FrameScheduler,
                 config: Optional[AssessmentConfig] = None,
                 recorder: Optional[Any] = None,
                 learner_id: Optional[str] = None,
                 handler: Optional[ErrorHandler] = None):
        """
        Initialize the session.

        Args:
            recognizer: Speech recognition collaborator
            source_factory: Creates a fresh audio source for every attempt
            scheduler: Host frame scheduler and timers
            config: Assessment settings
            recorder: PerformanceRecorder that receives the final report
            learner_id: Learner the results belong to
            handler: Error handler collecting attempt failures
        """
        self.recognizer = recognizer
        self.source_factory = source_factory
        self.scheduler = scheduler
        self.config = config or default_assessment_config
        self.recorder = recorder
        self.learner_id = learner_id
        self.error_handler = handler or error_handler

        self._state = SessionState.IDLE
        self._listeners: List[SessionListener] = []
        self._stats = VoiceActivityStats()
        self._audio: Optional[AudioSession] = None
        self._attempt_id = 0
        self._expected: Optional[ExpectedUtterance] = None
        self._card_index = 0
        self._latest_report: Optional[ScoreReport] = None
        self._feedback = ""
        self._timeout_handle: Any = None
        self._grace_handle: Any = None
        self._timed_out = False
        self._last_voiced_ms: Optional[float] = None
        self._utterance_ended = False

    # Observable state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def latest_report(self) -> Optional[ScoreReport]:
        return self._latest_report

    @property
    def feedback(self) -> str:
        return self._feedback

    @property
    def stats(self) -> VoiceActivityStats:
        """Live statistics of the current attempt."""
        return self._stats

    @property
    def has_live_audio(self) -> bool:
        return self._audio is not None

    @property
    def can_start(self) -> bool:
        """True when a new attempt may begin."""
        return self._state in (SessionState.IDLE, SessionState.FEEDBACK) and self._audio is None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register an observer.

        Returns:
            Callable that removes the observer again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _transition(self, state: SessionState, feedback: str = "",
                    report: Optional[ScoreReport] = None,
                    error: Optional[ProcessingError] = None) -> None:
        logger.debug(f"Session {self._state.value} -> {state.value}")
        self._state = state
        self._feedback = feedback
        self._emit(SessionEvent(state=state, feedback=feedback, report=report, error=error))

    # Learner actions

    def start_attempt(self, expected: ExpectedUtterance, card_index: int = 0) -> None:
        """
        Start listening for a reading of the expected sentence.

        Args:
            expected: Sentence the learner must read
            card_index: Position of the card in the deck

        Raises:
            SessionStateError: If an attempt is live or the session has ended
        """
        if self._state in (SessionState.LISTENING, SessionState.SCORING, SessionState.ENDED):
            raise SessionStateError(f"Cannot start an attempt while {self._state.value}")
        if self._audio is not None:
            raise SessionStateError("Previous attempt has not been torn down")

        self._reset_attempt()
        self._attempt_id += 1
        attempt = self._attempt_id
        self._expected = expected
        self._card_index = card_index
        logger.info(f"Attempt {attempt} started for card {card_index}: '{expected.text}'")

        try:
            source = self.source_factory()
            self._audio = AudioSession.acquire(source, self.scheduler, self._stats, self.config)
        except MicrophoneAccessError as e:
            self._audio = None
            error = self.error_handler.handle_microphone_error(e, {'attempt': attempt})
            self._fail(error)
            return

        try:
            self._audio.tracker.add_listener(partial(self._on_level, attempt))
            self._timeout_handle = self.scheduler.call_later(
                self.config.recognition_timeout_s, partial(self._on_timeout, attempt)
            )
            self._transition(SessionState.LISTENING)
        except BaseException:
            logger.error(f"Attempt {attempt} setup failed, releasing audio")
            self._teardown()
            self._reset_attempt()
            self._state = SessionState.IDLE
            raise

        try:
            self.recognizer.start(
                self._audio.source,
                expected.language.tag,
                partial(self._on_recognition_result, attempt),
                partial(self._on_recognition_error, attempt)
            )
        except Exception as e:
            self._on_recognition_error(attempt, e)

    def finish_speaking(self) -> None:
        """Ask the recognizer to stop capturing and deliver its result."""
        if self._state != SessionState.LISTENING:
            logger.debug(f"finish_speaking ignored while {self._state.value}")
            return
        logger.info("Learner finished speaking")
        self.recognizer.stop()

    def change_card(self) -> None:
        """
        Abandon any live attempt and return to IDLE for the next card.

        Raises:
            SessionStateError: If the session has ended
        """
        if self._state == SessionState.ENDED:
            raise SessionStateError("Session has ended")
        self._teardown()
        self._reset_attempt()
        self._transition(SessionState.IDLE)

    def stop_attempt(self) -> Optional[ScoreReport]:
        """
        End the session from any state, persisting the latest report.

        Returns:
            The latest ScoreReport, or None if the last attempt produced none
        """
        self._teardown()
        if self._state != SessionState.ENDED:
            if self._latest_report is not None:
                self._persist(self._latest_report)
            self._transition(SessionState.ENDED, feedback=self._feedback, report=self._latest_report)
            logger.info("Assessment session ended")
        return self._latest_report

    # Collaborator callbacks

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._attempt_id and self._state == SessionState.LISTENING

    def _on_level(self, attempt: int, sample: LevelSample) -> None:
        if not self._is_current(attempt):
            return
        self._emit(SessionEvent(state=self._state, level=sample))

        if sample.voiced:
            self._last_voiced_ms = sample.timestamp_ms
            return
        if (self.config.end_of_utterance_ms > 0 and not self._utterance_ended
                and self._last_voiced_ms is not None
                and sample.timestamp_ms - self._last_voiced_ms >= self.config.end_of_utterance_ms):
            self._utterance_ended = True
            logger.info(f"End of utterance after {self.config.end_of_utterance_ms:.0f}ms of silence")
            self.recognizer.stop()

    def _on_timeout(self, attempt: int) -> None:
        self._timeout_handle = None
        if not self._is_current(attempt):
            return
        logger.warning(f"Recognition timed out after {self.config.recognition_timeout_s:.0f}s")
        self._timed_out = True
        self.recognizer.stop()
        if self._is_current(attempt):
            self._grace_handle = self.scheduler.call_later(
                self.config.recognition_grace_s, partial(self._on_grace_expired, attempt)
            )

    def _on_grace_expired(self, attempt: int) -> None:
        self._grace_handle = None
        if not self._is_current(attempt):
            return
        self._fail(self.error_handler.no_speech_detected(timed_out=True, context={'attempt': attempt}))

    def _on_recognition_result(self, attempt: int, result: Optional[TranscriptionResult]) -> None:
        if not self._is_current(attempt):
            logger.debug(f"Ignoring stale recognition result for attempt {attempt}")
            return

        language = self._expected.language
        if result is None or not normalize_text(result.text, language):
            self._fail(self.error_handler.no_speech_detected(
                timed_out=self._timed_out, context={'attempt': attempt}
            ))
            return

        audio = self._audio
        self._transition(SessionState.SCORING)
        try:
            snapshot = audio.freeze(self.scheduler.now_ms())
        finally:
            self._teardown()

        report = assess_attempt(self._expected, result, snapshot)
        if self._state != SessionState.SCORING:
            # a subscriber ended or reset the session while scoring
            logger.debug(f"Discarding report for attempt {attempt}")
            return
        self._latest_report = report
        self._transition(SessionState.FEEDBACK, feedback=report.remarks, report=report)

    def _on_recognition_error(self, attempt: int, error: Exception) -> None:
        if not self._is_current(attempt):
            logger.debug(f"Ignoring stale recognition error for attempt {attempt}: {error}")
            return
        self._fail(self.error_handler.handle_recognition_error(error, {'attempt': attempt}))

    # Internals

    def _fail(self, error: ProcessingError) -> None:
        """Move to FEEDBACK with a message and no report."""
        self._teardown()
        self.error_handler.add_error(error)
        self._transition(SessionState.FEEDBACK, feedback=error.message, error=error)

    def _teardown(self) -> None:
        """Release everything the current attempt holds. Safe to call repeatedly."""
        for attr in ('_timeout_handle', '_grace_handle'):
            handle = getattr(self, attr)
            if handle is not None:
                self.scheduler.cancel(handle)
                setattr(self, attr, None)
        if self.recognizer.is_active:
            self.recognizer.abort()
        audio, self._audio = self._audio, None
        if audio is not None:
            audio.close()

    def _reset_attempt(self) -> None:
        self._stats.reset()
        self._latest_report = None
        self._feedback = ""
        self._timed_out = False
        self._last_voiced_ms = None
        self._utterance_ended = False

    def _persist(self, report: ScoreReport) -> None:
        if self.recorder is None or self.learner_id is None or self._expected is None:
            return
        record = PerformanceRecord.from_report(
            learner_id=self.learner_id,
            card_index=self._card_index,
            expected_text=self._expected.text,
            report=report
        )
        self.recorder.record(record)
