"""
Progress tracking and learner feedback for a flashcard session.

Keeps the latest result of every card a learner has read, and produces the
completion summary shown when the session ends.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any, Callable
from dataclasses import dataclass, field

from .models import ScoreReport
from .scoring.calculator import label_for_score


@dataclass
class CardProgress:
    """Progress information for one flashcard."""
    card_index: int
    sentence: str
    status: str = "pending"  # pending, in_progress, completed, failed
    attempts: int = 0
    latest_report: Optional[ScoreReport] = None
    feedback: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> Optional[timedelta]:
        """Time spent on the latest attempt."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        elif self.start_time:
            return datetime.now() - self.start_time
        return None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class SessionProgressTracker:
    """
    Tracks per-card results across one learner's flashcard session.

    Re-reading a card replaces its previous result.
    """

    def __init__(self, learner_name: str = "", enable_console_output: bool = False):
        """
        Initialize the progress tracker.

        Args:
            learner_name: Learner shown in the summary
            enable_console_output: Whether to print progress to console
        """
        self.logger = logging.getLogger(__name__)
        self.learner_name = learner_name
        self.enable_console_output = enable_console_output
        self.cards: Dict[int, CardProgress] = {}
        self.session_start_time: Optional[datetime] = None
        self.session_end_time: Optional[datetime] = None
        self.progress_callbacks: List[Callable[[CardProgress], None]] = []

    def add_progress_callback(self, callback: Callable[[CardProgress], None]) -> None:
        """Add a callback function to be called on progress updates."""
        self.progress_callbacks.append(callback)

    def _notify(self, card: CardProgress) -> None:
        for callback in self.progress_callbacks:
            callback(card)

    def _card(self, card_index: int, sentence: str) -> CardProgress:
        card = self.cards.get(card_index)
        if card is None:
            card = CardProgress(card_index=card_index, sentence=sentence)
            self.cards[card_index] = card
        return card

    def start_session(self) -> None:
        """Start tracking the session."""
        self.session_start_time = datetime.now()
        self.logger.info(f"Flashcard session started for {self.learner_name or 'learner'}")
        if self.enable_console_output:
            print(f"📚 Flashcard session: {self.learner_name or 'learner'}")
            print("=" * 50)

    def start_card(self, card_index: int, sentence: str) -> None:
        """Mark a card as being read."""
        card = self._card(card_index, sentence)
        card.status = "in_progress"
        card.attempts += 1
        card.start_time = datetime.now()
        card.end_time = None
        self.logger.debug(f"Card {card_index + 1} attempt {card.attempts}: '{sentence}'")
        self._notify(card)

    def complete_card(self, card_index: int, sentence: str, report: ScoreReport) -> None:
        """Record a scored attempt, replacing any earlier result for the card."""
        card = self._card(card_index, sentence)
        card.status = "completed"
        card.latest_report = report
        card.feedback = report.remarks
        card.end_time = datetime.now()
        self.logger.info(
            f"Card {card_index + 1} scored {report.average_score} ({report.average_label.value})"
        )
        if self.enable_console_output:
            print(f"   ✅ Card {card_index + 1}: {report.average_score} - {report.remarks}")
        self._notify(card)

    def fail_card(self, card_index: int, sentence: str, feedback: str) -> None:
        """Record an attempt that produced no report."""
        card = self._card(card_index, sentence)
        # a failed retry keeps the earlier score
        card.status = "failed" if card.latest_report is None else "completed"
        card.feedback = feedback
        card.end_time = datetime.now()
        self.logger.info(f"Card {card_index + 1} attempt failed: {feedback}")
        if self.enable_console_output:
            print(f"   ❌ Card {card_index + 1}: {feedback}")
        self._notify(card)

    def complete_session(self) -> Dict[str, Any]:
        """
        Finish the session and return its summary.

        Returns:
            Dictionary produced by generate_completion_summary()
        """
        self.session_end_time = datetime.now()
        summary = self.generate_completion_summary()
        self.logger.info(
            f"Session complete: {summary['cards_completed']} cards, "
            f"average {summary['average_score']}"
        )
        if self.enable_console_output:
            self._print_completion_summary(summary)
        return summary

    def generate_completion_summary(self) -> Dict[str, Any]:
        """
        Generate the session summary.

        Returns:
            Dictionary containing per-card results and session averages
        """
        total_duration = None
        if self.session_start_time and self.session_end_time:
            total_duration = self.session_end_time - self.session_start_time

        reports = [card.latest_report for card in self.cards.values() if card.latest_report is not None]
        average_score = None
        average_label = None
        if reports:
            average_score = round(sum(r.average_score for r in reports) / len(reports))
            average_label = label_for_score(average_score).value

        def mean(values: List[float]) -> Optional[float]:
            return round(sum(values) / len(values), 1) if values else None

        return {
            'learner': self.learner_name,
            'session_duration': total_duration.total_seconds() if total_duration is not None else None,
            'cards_attempted': len(self.cards),
            'cards_completed': len(reports),
            'cards_failed': sum(1 for card in self.cards.values() if card.status == "failed"),
            'total_attempts': sum(card.attempts for card in self.cards.values()),
            'average_score': average_score,
            'average_label': average_label,
            'average_pronunciation': mean([r.pronunciation_score for r in reports]),
            'average_fluency': mean([r.fluency_score for r in reports]),
            'average_wpm': mean([r.words_per_minute for r in reports]),
            'cards': {
                index: {
                    'sentence': card.sentence,
                    'status': card.status,
                    'attempts': card.attempts,
                    'average_score': card.latest_report.average_score if card.latest_report else None,
                    'feedback': card.feedback,
                }
                for index, card in sorted(self.cards.items())
            },
            'timestamp': datetime.now().isoformat()
        }

    def _print_completion_summary(self, summary: Dict[str, Any]) -> None:
        """Print a formatted completion summary to console."""
        print("\n" + "=" * 50)
        print("📊 SESSION SUMMARY")
        print("=" * 50)

        duration = summary.get('session_duration')
        if duration:
            print(f"⏱️  Total Duration: {duration:.1f} seconds")

        print(f"✅ Cards Completed: {summary['cards_completed']}/{summary['cards_attempted']}")
        if summary['average_score'] is not None:
            print(f"📈 Average Score: {summary['average_score']} ({summary['average_label']})")
            print(f"   🗣️  Pronunciation: {summary['average_pronunciation']}")
            print(f"   🌊 Fluency: {summary['average_fluency']}")
            print(f"   ⏩ Words per minute: {summary['average_wpm']}")

        print("=" * 50)
