"""
Review mode.

Flashcards over the items the scheduler says are due. Callers can pass
words explicitly (a category review over completed sessions); otherwise
the due list is pulled from the scheduler, optionally filtered by
data["difficulty"] and capped by data["limit"].
"""

from __future__ import annotations

from loguru import logger
from rich.panel import Panel

from src.core.errors import DependencyUnmet

from ..manager import REVIEW_SCHEDULER
from ..registry import builtin_mode
from .flashcard import FlashcardMode


@builtin_mode(
    "review",
    label="Review",
    flag="REVIEW",
    dependencies=(REVIEW_SCHEDULER,),
    description="Go over the words that are due for review",
)
class ReviewMode(FlashcardMode):
    required_fields = ()

    async def init(self) -> None:
        if self.data.get("words") is not None:
            self.cards = self.items
        else:
            scheduler = self.context.scheduler
            if scheduler is None:
                raise DependencyUnmet(REVIEW_SCHEDULER, self.mode_id)
            self.cards = scheduler.due(
                self.data.get("difficulty", "all"),
                int(self.data.get("limit", 0)),
            )
        self.state.update(index=0, revealed=False, ratings={})
        logger.debug(f"{self.mode_id}: {len(self.cards)} items to review")

    def render(self) -> None:
        if not self.cards:
            self.surface.print(
                Panel("Nothing is due for review right now.", title="Review", border_style="green")
            )
            self.end_session()
            return
        super().render()
