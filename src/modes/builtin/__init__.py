"""
Bundled learning modes.

Importing this package registers each mode in the builtin catalog.
"""

from . import examine, flashcard, phrase, quiz, review
from .examine import ExamineMode
from .flashcard import FlashcardMode
from .phrase import PhraseMode
from .quiz import QuizMode
from .review import ReviewMode

__all__ = [
    "FlashcardMode",
    "PhraseMode",
    "QuizMode",
    "ReviewMode",
    "ExamineMode",
    "examine",
    "flashcard",
    "phrase",
    "quiz",
    "review",
]
