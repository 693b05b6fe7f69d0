"""
Flashcard deck session.

Walks a learner through a deck: plays the prompt, records attempts through
the assessment session, and keeps per-card progress.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..errors import SessionStateError
from ..models import Flashcard, Language, PerformanceRecord
from ..progress import SessionProgressTracker
from ..speech.synthesizer import SpeechSynthesizer
from .state_machine import AssessmentSession, SessionEvent, SessionState


logger = logging.getLogger(__name__)


class FlashcardSession:
    """
    Deck navigation on top of an AssessmentSession.

    Moving to another card abandons any live attempt.
    """

    def __init__(self, cards: List[Flashcard], language: Language,
                 assessment: AssessmentSession,
                 synthesizer: Optional[SpeechSynthesizer] = None,
                 progress: Optional[SessionProgressTracker] = None,
                 recorder: Optional[Any] = None):
        """
        Initialize the deck session.

        Args:
            cards: Deck to practice
            language: Deck language
            assessment: State machine that runs each attempt
            synthesizer: Prompt playback engine
            progress: Per-card progress tracker
            recorder: PerformanceRecorder receiving every scored card
        """
        if not cards:
            raise ValueError("A flashcard session needs at least one card")
        self.cards = list(cards)
        self.language = language
        self.assessment = assessment
        self.synthesizer = synthesizer
        self.progress = progress or SessionProgressTracker()
        self.recorder = recorder
        self.current_index = 0
        self._attempt_index: Optional[int] = None
        self._unsubscribe = assessment.subscribe(self._on_event)
        self.progress.start_session()

    @property
    def current_card(self) -> Flashcard:
        return self.cards[self.current_index]

    @property
    def state(self) -> SessionState:
        return self.assessment.state

    def next_card(self) -> Flashcard:
        """Move to the next card; stays on the last one."""
        return self._go_to(min(len(self.cards) - 1, self.current_index + 1))

    def previous_card(self) -> Flashcard:
        """Move to the previous card; stays on the first one."""
        return self._go_to(max(0, self.current_index - 1))

    def _go_to(self, index: int) -> Flashcard:
        if index != self.current_index:
            self.assessment.change_card()
            self.current_index = index
            logger.info(f"Card {index + 1}/{len(self.cards)}: '{self.current_card.sentence}'")
        return self.current_card

    def play_prompt(self, on_done: Optional[Callable[[], None]] = None) -> None:
        """Read the current card aloud."""
        if self.synthesizer is None:
            logger.debug("No synthesizer configured; prompt playback skipped")
            if on_done is not None:
                on_done()
            return
        self.synthesizer.speak(self.current_card.sentence, self.language.tag, on_done)

    def record_attempt(self) -> None:
        """
        Start listening for the current card.

        Raises:
            SessionStateError: If an attempt is already live or the session ended
        """
        if not self.assessment.can_start:
            raise SessionStateError(f"Cannot record while {self.assessment.state.value}")
        card = self.current_card
        self._attempt_index = self.current_index
        self.progress.start_card(self.current_index, card.sentence)
        self.assessment.start_attempt(card.to_utterance(self.language), self.current_index)

    def finish_speaking(self) -> None:
        self.assessment.finish_speaking()

    def end(self) -> Dict[str, Any]:
        """
        Stop the session and return the progress summary.
        """
        self.assessment.stop_attempt()
        self._unsubscribe()
        return self.progress.complete_session()

    def _on_event(self, event: SessionEvent) -> None:
        if event.state != SessionState.FEEDBACK or self._attempt_index is None:
            return
        index, self._attempt_index = self._attempt_index, None
        card = self.cards[index]
        if event.report is None:
            self.progress.fail_card(index, card.sentence, event.feedback)
            return

        self.progress.complete_card(index, card.sentence, event.report)
        learner_id = self.assessment.learner_id
        if self.recorder is not None and learner_id is not None:
            self.recorder.record(PerformanceRecord.from_report(
                learner_id=learner_id,
                card_index=index,
                expected_text=card.sentence,
                report=event.report
            ))
