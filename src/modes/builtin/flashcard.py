"""
Flashcard mode.

Shows one card at a time: the word first, its meaning once revealed. The
learner rates each card hard / medium / easy, which schedules its review
and moves to the next card. The session ends after the last card.
"""

from __future__ import annotations

import random

from loguru import logger
from rich.panel import Panel
from rich.prompt import Prompt

from src.core.errors import InvalidArgument
from src.lexicon.corpus import VocabularyItem
from src.review.scheduler import Rating, ReviewRecord

from ..base import LearningMode
from ..registry import builtin_mode

RATING_STYLES = {
    Rating.HARD: "red",
    Rating.MEDIUM: "yellow",
    Rating.EASY: "green",
}


@builtin_mode(
    "flashcard",
    label="Flashcards",
    flag="FLASHCARDS",
    description="Reveal each word's meaning and rate how well you knew it",
)
class FlashcardMode(LearningMode):
    required_fields = ("words",)

    def __init__(self, context):
        super().__init__(context)
        self.cards: list[VocabularyItem] = []

    async def init(self) -> None:
        self.validate_data()
        self.cards = self.items
        if not self.cards:
            raise InvalidArgument(f"No words to study in mode '{self.mode_id}'")
        if self.options.get("shuffle"):
            random.Random(self.options.get("seed")).shuffle(self.cards)
        self.state.update(index=0, revealed=False, ratings={})
        logger.debug(f"{self.mode_id}: {len(self.cards)} cards ready")

    async def cleanup(self) -> None:
        logger.debug(f"{self.mode_id}: closed at card {self.state.get('index', 0) + 1}/{len(self.cards)}")

    @property
    def current_item(self) -> VocabularyItem | None:
        index = self.state.get("index", 0)
        if self.finished or index >= len(self.cards):
            return None
        return self.cards[index]

    def render(self) -> None:
        item = self.current_item
        if item is None:
            self._render_summary()
            return

        index = self.state.get("index", 0)
        self.surface.print(
            Panel(
                "\n".join(self.card_lines(item, bool(self.state.get("revealed")))),
                title=f"Card {index + 1}/{len(self.cards)}",
                subtitle=item.tier,
                border_style="blue",
            )
        )

    def card_lines(self, item: VocabularyItem, revealed: bool) -> list[str]:
        lines = [f"[bold]{item.text}[/bold]"]
        if item.pronunciation:
            lines.append(f"[dim]/{item.pronunciation}/[/dim]")
        if revealed:
            lines.append("")
            lines.append(f"[cyan]{item.translation}[/cyan]")
            if item.gloss:
                lines.append(f"[dim]{item.gloss}[/dim]")
        return lines

    def _render_summary(self) -> None:
        ratings = self.state.get("ratings", {})
        counts = {r: sum(1 for v in ratings.values() if v == r.value) for r in Rating}
        summary = "  ".join(
            f"[{RATING_STYLES[r]}]{r.value}: {n}[/{RATING_STYLES[r]}]" for r, n in counts.items()
        )
        self.surface.print(Panel(summary, title="Session complete", border_style="green"))

    def reveal(self) -> VocabularyItem | None:
        item = self.current_item
        if item is None:
            return None
        self.record_interaction()
        self.update_state(revealed=True)
        self.render()
        return item

    def rate(self, rating: Rating | str) -> ReviewRecord | None:
        """Rate the current card and advance to the next one."""
        item = self.current_item
        if item is None:
            raise InvalidArgument(f"No card left to rate in mode '{self.mode_id}'")
        rating = Rating.parse(rating)

        record = self.rate_item(item, rating)
        ratings = dict(self.state.get("ratings", {}))
        ratings[item.id] = rating.value
        self.update_state(index=self.state["index"] + 1, revealed=False, ratings=ratings)

        self.render()
        if self.state["index"] >= len(self.cards):
            self.end_session()
        return record

    async def interact(self) -> None:
        while self.current_item is not None:
            Prompt.ask("[dim]Press Enter to reveal[/dim]", default="", show_default=False, console=self.surface)
            self.reveal()
            answer = Prompt.ask(
                "How well did you know it?",
                choices=[r.value for r in Rating],
                default=Rating.MEDIUM.value,
                console=self.surface,
            )
            self.rate(answer)
