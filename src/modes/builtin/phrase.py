"""
Phrase mode.

Flashcards built from example sentences instead of single words. Each card
shows the sentence that uses the item, falling back to the item's own text
when the corpus has no sentence for it. Revealing shows the word the
sentence is built around and its meaning; rating works as in flashcards.
"""

from __future__ import annotations

from src.lexicon.corpus import VocabularyItem

from ..registry import builtin_mode
from .flashcard import FlashcardMode


def phrase_text(item: VocabularyItem) -> str:
    return item.example or item.text


@builtin_mode(
    "phrase",
    label="Phrases",
    flag="PHRASES",
    description="Read each word inside a sentence and rate how well you understood it",
)
class PhraseMode(FlashcardMode):
    def card_lines(self, item: VocabularyItem, revealed: bool) -> list[str]:
        lines = [f"[bold]{phrase_text(item)}[/bold]"]
        if not revealed:
            return lines

        lines.append("")
        if item.example:
            word = item.text
            if item.pronunciation:
                word += f" [dim]/{item.pronunciation}/[/dim]"
            lines.append(word)
        lines.append(f"[cyan]{item.translation}[/cyan]")
        if item.gloss:
            lines.append(f"[dim]{item.gloss}[/dim]")
        return lines
