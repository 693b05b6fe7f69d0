"""
Flashcard and learner roster storage.

Decks and the roster live in JSON files in the data directory. Anything
missing or malformed falls back to the built-in seeds with a warning; content
problems never stop a session.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import Config
from ..errors import ErrorHandler, MalformedContentError, error_handler
from ..models import Flashcard, Language, Learner
from .seeds import DEFAULT_DECKS, DEFAULT_LEARNERS


logger = logging.getLogger(__name__)


class ContentStore:
    """
    Loads flashcard decks and the learner roster.
    """

    def __init__(self, data_dir: str = None, handler: Optional[ErrorHandler] = None):
        """
        Initialize the ContentStore.

        Args:
            data_dir: Directory holding the content files. Defaults to Config.DATA_DIR
            handler: Error handler receiving content warnings
        """
        self.data_dir = Path(data_dir) if data_dir is not None else Config.DATA_DIR
        self.error_handler = handler or error_handler

    def deck_path(self, language: Language) -> Path:
        name = language.name.lower()
        return self.data_dir / Config.CONTENT_FILE_TEMPLATE.format(language=name)

    def roster_path(self) -> Path:
        return self.data_dir / Config.ROSTER_FILE

    def load_cards(self, language: Language = Language.ENGLISH) -> List[Flashcard]:
        """
        Load the deck for a language.

        Args:
            language: Deck language

        Returns:
            Stored cards, or the built-in deck when none are stored or they are invalid
        """
        path = self.deck_path(language)
        defaults = list(DEFAULT_DECKS[language])
        if not path.exists():
            logger.debug(f"No stored {language.name.lower()} deck at {path}; using built-in cards")
            return defaults

        try:
            data = self._read_json(path)
            cards = parse_cards(data)
        except (OSError, ValueError, MalformedContentError) as e:
            error = self.error_handler.handle_content_error(
                e, f"{language.name.lower()} flashcards", {'path': str(path)}
            )
            self.error_handler.add_error(error)
            return defaults

        logger.info(f"Loaded {len(cards)} {language.name.lower()} flashcards from {path}")
        return cards

    def save_cards(self, cards: List[Flashcard], language: Language = Language.ENGLISH) -> Path:
        """
        Save a deck for a language.

        Raises:
            MalformedContentError: If a card is invalid
        """
        parse_cards([card.to_dict() for card in cards])
        path = self.deck_path(language)
        self._write_json(path, [card.to_dict() for card in cards])
        logger.info(f"Saved {len(cards)} {language.name.lower()} flashcards to {path}")
        return path

    def load_learners(self) -> List[Learner]:
        """Load the learner roster, falling back to the built-in roster."""
        path = self.roster_path()
        if not path.exists():
            return list(DEFAULT_LEARNERS)

        try:
            learners = parse_learners(self._read_json(path))
        except (OSError, ValueError, MalformedContentError) as e:
            error = self.error_handler.handle_content_error(e, "learner roster", {'path': str(path)})
            self.error_handler.add_error(error)
            return list(DEFAULT_LEARNERS)

        logger.info(f"Loaded {len(learners)} learners from {path}")
        return learners

    def save_learners(self, learners: List[Learner]) -> Path:
        path = self.roster_path()
        self._write_json(path, [learner.to_dict() for learner in learners])
        return path

    def find_learner(self, key: str) -> Optional[Learner]:
        """Find a learner by id or learner code."""
        lowered = key.strip().lower()
        for learner in self.load_learners():
            if lowered in (learner.id.lower(), learner.learner_code.lower()):
                return learner
        return None

    def search_learners(self, query: str) -> List[Learner]:
        """Learners whose name, code, grade or section contains the query."""
        lowered = query.strip().lower()
        if not lowered:
            return self.load_learners()
        return [
            learner for learner in self.load_learners()
            if any(lowered in value.lower() for value in
                   (learner.name, learner.learner_code, learner.grade, learner.section))
        ]

    def _read_json(self, path: Path) -> Any:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write_json(self, path: Path, data: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)


def parse_cards(data: Any) -> List[Flashcard]:
    """
    Validate stored deck data.

    Accepts a list of {"sentence": str, "highlights": [str]} objects; a bare
    string is a card without highlights.

    Raises:
        MalformedContentError: If the data is not a non-empty list of valid cards
    """
    if not isinstance(data, list) or not data:
        raise MalformedContentError("Deck must be a non-empty list of cards")

    cards: List[Flashcard] = []
    for i, item in enumerate(data):
        if isinstance(item, str):
            item = {'sentence': item}
        if not isinstance(item, dict):
            raise MalformedContentError(f"Card {i} is not an object")
        sentence = item.get('sentence')
        if not isinstance(sentence, str) or not sentence.strip():
            raise MalformedContentError(f"Card {i} has no sentence")
        highlights = item.get('highlights', [])
        if not isinstance(highlights, list) or not all(isinstance(h, str) for h in highlights):
            raise MalformedContentError(f"Card {i} highlights must be a list of words")
        cards.append(Flashcard(sentence=sentence.strip(), highlights=tuple(highlights)))
    return cards


def parse_learners(data: Any) -> List[Learner]:
    """
    Validate stored roster data.

    Raises:
        MalformedContentError: If an entry lacks an id or name
    """
    if not isinstance(data, list):
        raise MalformedContentError("Roster must be a list of learners")

    learners: List[Learner] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedContentError(f"Learner {i} is not an object")
        fields: Dict[str, str] = {}
        for key in ('id', 'learner_code', 'name', 'grade', 'section'):
            value = item.get(key, "")
            fields[key] = "" if value is None else str(value)
        if not fields['id'] or not fields['name']:
            raise MalformedContentError(f"Learner {i} needs an id and a name")
        learners.append(Learner(**fields))
    return learners
