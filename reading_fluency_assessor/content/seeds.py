"""
Built-in flashcard decks and learner roster.

Used whenever stored content is missing or malformed.
"""

from typing import Dict, List

from ..models import Flashcard, Language, Learner


ENGLISH_CARDS: List[Flashcard] = [
    Flashcard("The cat sat on the mat.", ("cat", "sat", "mat")),
    Flashcard("A big dog ran in the park.", ("big", "dog", "ran")),
    Flashcard("She has a red ball and blue car.", ("red", "ball", "blue")),
    Flashcard("We go to the store for milk.", ("go", "store", "milk")),
    Flashcard("He can see the sun in the sky.", ("see", "sun", "sky")),
    Flashcard("I like to play with my friends.", ("like", "play", "friends")),
    Flashcard("The book is on the small table.", ("book", "small", "table")),
    Flashcard("They eat lunch at twelve o'clock.", ("eat", "lunch", "twelve")),
    Flashcard("My mother reads me a story.", ("mother", "reads", "story")),
    Flashcard("We live in a green house.", ("live", "green", "house")),
]

FILIPINO_CARDS: List[Flashcard] = [
    Flashcard("Ang bata ay naglalaro sa parke.", ("bata", "parke")),
    Flashcard("Kumakain ng masarap na pagkain ang pamilya.", ("masarap", "pamilya")),
    Flashcard("Maganda ang bulaklak sa hardin.", ("bulaklak", "hardin")),
    Flashcard("Mabilis tumakbo ang maliit na aso.", ("mabilis", "aso")),
    Flashcard("Malakas ang ulan kanina.", ("malakas", "ulan")),
    Flashcard("Nagluluto ang nanay ng hapunan.", ("nanay", "hapunan")),
    Flashcard("Mabait ang guro sa eskwelahan.", ("guro", "eskwelahan")),
    Flashcard("Maliwanag ang buwan ngayong gabi.", ("buwan", "gabi")),
    Flashcard("Matulungin ang batang lalaki.", ("matulungin", "batang")),
    Flashcard("Masaya ang mga bata sa party.", ("masaya", "party")),
]

DEFAULT_DECKS: Dict[Language, List[Flashcard]] = {
    Language.ENGLISH: ENGLISH_CARDS,
    Language.FILIPINO: FILIPINO_CARDS,
}

DEFAULT_LEARNERS: List[Learner] = [
    Learner("fil-001", "FIL-2025-001", "Juan Dela Cruz", "4", "A"),
    Learner("fil-002", "FIL-2025-002", "Maria Santos", "4", "B"),
    Learner("fil-003", "FIL-2025-003", "Josefa Reyes", "5", "A"),
    Learner("fil-004", "FIL-2025-004", "Andres Mercado", "5", "B"),
    Learner("fil-005", "FIL-2025-005", "Luisa Villanueva", "6", "C"),
]
