"""
Main entry point for the Reading Fluency Assessor.

Scores a reading from text, replays a recorded attempt, or runs a live
microphone practice session over a flashcard deck.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .audio.scheduler import AsyncioFrameScheduler
from .audio.sources import FileAudioSource, MicrophoneAudioSource
from .config import AssessmentConfig, Config
from .content.store import ContentStore
from .errors import AudioValidationError, error_handler
from .models import (
    ExpectedUtterance,
    Language,
    ScoreReport,
    TranscriptionResult,
    VoiceActivitySnapshot,
)
from .persistence import JsonPerformanceStore
from .progress import SessionProgressTracker
from .scoring.calculator import assess_attempt
from .session.flashcards import FlashcardSession
from .session.state_machine import AssessmentSession, SessionEvent, SessionState
from .speech.recognizer import GoogleWebSpeechRecognizer, ReplayTranscriptRecognizer
from .speech.synthesizer import Pyttsx3Synthesizer


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def print_report(report: ScoreReport, as_json: bool = False) -> None:
    """Print a score report for the learner."""
    if as_json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        return

    print("\n" + "=" * 50)
    print(f"📊 {report.average_label.value.upper()}: {report.average_score}/100")
    print("=" * 50)
    print(f"🗣️  Pronunciation:  {report.pronunciation_score}")
    print(f"🌊 Fluency:        {report.fluency_score}")
    print(f"⏩ Words/minute:   {report.words_per_minute} ({report.reading_speed_label})")
    print(f"🎯 Word accuracy:  {report.word_accuracy:.1f}%")
    print(f"🔤 Phoneme match:  {report.phoneme_accuracy:.1f}%")
    print(f"✅ Completeness:   {report.completeness_score}%")
    if report.word_alignment:
        print("\n📋 WORDS:")
        for entry in report.word_alignment:
            heard = entry.matched_word or "-"
            print(f"   {entry.expected_word:<15} {heard:<15} {round(entry.similarity_percent):>3}%  {entry.error_type}")
    print(f"\n💬 {report.remarks}")
    print("=" * 50)


def run_score(args) -> int:
    """Score a transcript against an expected sentence from timing numbers."""
    language = Language.from_name(args.language)
    snapshot = VoiceActivitySnapshot(
        speech_start_ms=0.0,
        speech_end_ms=args.speech_ms,
        cumulative_silent_ms=args.silence_ms
    )
    transcription = TranscriptionResult.create(args.spoken, args.confidence)
    report = assess_attempt(ExpectedUtterance(args.expected, language), transcription, snapshot)
    print_report(report, args.json)
    return 0


async def replay_attempt(audio_file: Path, expected: ExpectedUtterance, transcript: str,
                         confidence: Optional[float], config: AssessmentConfig,
                         store: Optional[JsonPerformanceStore] = None,
                         learner_id: Optional[str] = None,
                         card_index: int = 0) -> SessionEvent:
    """
    Replay a recording through the assessment session.

    Returns:
        The FEEDBACK event of the attempt
    """
    loop = asyncio.get_running_loop()
    scheduler = AsyncioFrameScheduler(loop, config.frame_rate_hz)
    source = FileAudioSource.from_file(str(audio_file), scheduler.now_ms, buffer_size=config.fft_size)
    recognizer = ReplayTranscriptRecognizer(
        transcript, scheduler, confidence, config.default_confidence
    )
    session = AssessmentSession(
        recognizer, lambda: source, scheduler, config,
        recorder=store, learner_id=learner_id
    )

    feedback = loop.create_future()

    def on_event(event: SessionEvent) -> None:
        if event.state == SessionState.FEEDBACK and not feedback.done():
            feedback.set_result(event)

    session.subscribe(on_event)
    session.start_attempt(expected, card_index)
    event = await feedback
    session.stop_attempt()
    return event


def run_assess(args) -> int:
    """Replay a recorded attempt with a known transcript."""
    logger = logging.getLogger(__name__)
    language = Language.from_name(args.language)
    content = ContentStore(args.data_dir)

    if args.store and not args.learner:
        print("❌ --store needs --learner to know whose history to update")
        return 1

    if args.expected:
        expected_text = args.expected
    else:
        cards = content.load_cards(language)
        if not 0 <= args.card < len(cards):
            print(f"❌ Card index {args.card} out of range (deck has {len(cards)} cards)")
            return 1
        expected_text = cards[args.card].sentence

    store = None
    if args.store:
        store = JsonPerformanceStore(Path(args.data_dir) / Config.PERFORMANCE_FILE) \
            if args.data_dir else JsonPerformanceStore()

    config = AssessmentConfig()
    logger.info(f"Replaying {args.audio_file} against '{expected_text}'")
    try:
        event = asyncio.run(replay_attempt(
            args.audio_file,
            ExpectedUtterance(expected_text, language),
            args.transcript,
            args.confidence,
            config,
            store=store,
            learner_id=args.learner,
            card_index=args.card
        ))
    except AudioValidationError as e:
        error = error_handler.handle_audio_processing_error(e, {'file': str(args.audio_file)})
        error_handler.add_error(error)
        print(f"❌ {error.message}: {e}")
        for action in error.suggested_actions:
            print(f"   • {action}")
        return 1

    if event.report is None:
        print(f"❌ {event.feedback}")
        return 1
    print_report(event.report, args.json)
    return 0


async def practice_session(language: Language, learner_id: Optional[str], learner_name: str,
                           start_card: int, device: Optional[int], data_dir: Optional[str],
                           speak_prompts: bool) -> dict:
    """Run a live microphone practice session over the deck."""
    loop = asyncio.get_running_loop()
    config = AssessmentConfig()
    scheduler = AsyncioFrameScheduler(loop, config.frame_rate_hz)
    content = ContentStore(data_dir)
    cards = content.load_cards(language)
    store = JsonPerformanceStore(Path(data_dir) / Config.PERFORMANCE_FILE) if data_dir \
        else JsonPerformanceStore()

    assessment = AssessmentSession(
        GoogleWebSpeechRecognizer(scheduler, config.default_confidence),
        lambda: MicrophoneAudioSource(Config.SAMPLE_RATE, config.fft_size, device),
        scheduler,
        config,
        learner_id=learner_id
    )
    deck = FlashcardSession(
        cards, language, assessment,
        synthesizer=Pyttsx3Synthesizer(scheduler) if speak_prompts else None,
        progress=SessionProgressTracker(learner_name, enable_console_output=True),
        recorder=store
    )
    while deck.current_index < min(start_card, len(cards) - 1):
        deck.next_card()

    async def ask(prompt: str) -> str:
        return (await loop.run_in_executor(None, input, prompt)).strip().lower()

    while True:
        card = deck.current_card
        print(f"\n🎴 Card {deck.current_index + 1}/{len(cards)}: {card.sentence}")
        if card.highlights:
            print(f"   Focus words: {', '.join(card.highlights)}")

        if speak_prompts:
            played = loop.create_future()
            deck.play_prompt(lambda: played.done() or played.set_result(None))
            await played

        choice = await ask("[Enter] read  [n] next  [p] previous  [q] quit: ")
        if choice == "q":
            break
        if choice == "n":
            if deck.current_index == len(cards) - 1:
                break
            deck.next_card()
            continue
        if choice == "p":
            deck.previous_card()
            continue

        feedback = loop.create_future()

        def on_event(event: SessionEvent) -> None:
            if event.state == SessionState.FEEDBACK and not feedback.done():
                feedback.set_result(event)

        unsubscribe = assessment.subscribe(on_event)
        print("🎤 Listening... read the sentence, then pause.")
        deck.record_attempt()
        event = await feedback
        unsubscribe()

        if event.report is not None:
            print_report(event.report)
        else:
            print(f"❌ {event.feedback}")

    return deck.end()


def run_practice(args) -> int:
    """Live microphone practice."""
    language = Language.from_name(args.language)
    learner_name = ""
    learner_id = None
    if args.learner:
        learner = ContentStore(args.data_dir).find_learner(args.learner)
        if learner is None:
            print(f"❌ Learner not found: {args.learner}")
            return 1
        learner_id = learner.id
        learner_name = learner.name

    try:
        asyncio.run(practice_session(
            language, learner_id, learner_name, args.card, args.device,
            args.data_dir, not args.no_prompt
        ))
    except KeyboardInterrupt:
        print("\n⏹️  Practice stopped.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reading-fluency-assessor",
        description="Assess pronunciation and reading fluency on remedial reading flashcards",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s score --expected "The cat sat on the mat" --spoken "the cat sat on the map"
  %(prog)s assess reading.wav --transcript "the cat sat on the mat" --card 0
  %(prog)s practice --language filipino --learner FIL-2025-001

Scoring:
  The average combines pronunciation, fluency and words per minute.
  Labels: 90+ Excellent, 80+ Very Good, 70+ Good, 60+ Fair, below 60 Poor

Supported formats:
  Audio: WAV, MP3, M4A, FLAC, OGG (WAV recommended)
        """
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    score = subparsers.add_parser("score", help="Score a transcript without audio")
    score.add_argument("--expected", required=True, help="Sentence on the flashcard")
    score.add_argument("--spoken", required=True, help="Recognized transcript")
    score.add_argument("--language", default="english", help="english or filipino")
    score.add_argument("--speech-ms", type=float, default=2000.0,
                       help="Length of the speech span in milliseconds")
    score.add_argument("--silence-ms", type=float, default=0.0,
                       help="Silence charged inside the speech span in milliseconds")
    score.add_argument("--confidence", type=float, default=None,
                       help="Recognition confidence in [0, 1] (default 0.8)")
    score.add_argument("--json", action="store_true", help="Print the report as JSON")
    score.set_defaults(handler=run_score)

    assess = subparsers.add_parser("assess", help="Replay a recorded attempt")
    assess.add_argument("audio_file", type=Path, help="Recording of the learner reading")
    assess.add_argument("--transcript", required=True, help="What the learner said")
    assess.add_argument("--expected", default=None, help="Expected sentence (defaults to the deck card)")
    assess.add_argument("--card", type=int, default=0, help="Deck card index")
    assess.add_argument("--language", default="english", help="english or filipino")
    assess.add_argument("--confidence", type=float, default=None,
                        help="Recognition confidence in [0, 1] (default 0.8)")
    assess.add_argument("--learner", default=None, help="Learner id for the stored record")
    assess.add_argument("--store", action="store_true", help="Save the result to the performance history")
    assess.add_argument("--data-dir", default=None, help="Content and history directory")
    assess.add_argument("--json", action="store_true", help="Print the report as JSON")
    assess.set_defaults(handler=run_assess)

    practice = subparsers.add_parser("practice", help="Live microphone practice over the deck")
    practice.add_argument("--language", default="english", help="english or filipino")
    practice.add_argument("--learner", default=None, help="Learner id or learner code")
    practice.add_argument("--card", type=int, default=0, help="First card index")
    practice.add_argument("--device", type=int, default=None, help="Input device index")
    practice.add_argument("--no-prompt", action="store_true", help="Do not read cards aloud")
    practice.add_argument("--data-dir", default=None, help="Content and history directory")
    practice.set_defaults(handler=run_practice)

    return parser


def main(argv=None) -> int:
    """Command line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "handler", None):
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    try:
        return args.handler(args)
    except ValueError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
