"""
Learning mode contract.

A learning mode is instantiated by the lifecycle manager with a ModeContext
and driven through init() -> render() ... cleanup(). Each hook may be a
plain method or a coroutine; the manager awaits whichever it gets.

Subclasses implement init/render/cleanup and may override interact() to
run the mode in a terminal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from loguru import logger
from rich.console import Console

from src.core.errors import MissingData
from src.lexicon.corpus import VocabularyItem

from .events import SESSION_ENDED, STATE_CHANGED, EventBus

if TYPE_CHECKING:
    from src.review.scheduler import Rating, ReviewRecord, ReviewScheduler

    from .manager import ModeLifecycleManager


@dataclass
class ModeContext:
    """Everything a mode instance is handed at construction."""

    mode_id: str
    data: dict[str, Any] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)
    surface: Console | None = None
    events: EventBus = field(default_factory=EventBus)
    manager: ModeLifecycleManager | None = None

    @property
    def scheduler(self) -> ReviewScheduler | None:
        return self.manager.scheduler if self.manager is not None else None


@dataclass
class ModeUsage:
    """Per-instance interaction counters."""

    interactions: int = 0
    answered: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> float:
        if self.answered == 0:
            return 0.0
        return self.correct / self.answered

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "accuracy": self.accuracy}

    def merge(self, other: dict[str, Any]) -> None:
        self.interactions = int(other.get("interactions", self.interactions))
        self.answered = int(other.get("answered", self.answered))
        self.correct = int(other.get("correct", self.correct))


class LearningMode(ABC):
    """
    Base class for every learning mode.

    Provides state save/restore, event emission, interaction counting and
    rating hand-off to the review scheduler.
    """

    # Keys that must be present in data before init() proceeds
    required_fields: tuple[str, ...] = ()

    def __init__(self, context: ModeContext):
        self.context = context
        self.mode_id = context.mode_id
        self.data = context.data
        self.options = context.options
        self.events = context.events

        self.initialized = False
        self.active = False
        self.finished = False
        self.state: dict[str, Any] = {}
        self.started_at = datetime.now(timezone.utc)
        self.metrics = ModeUsage()

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def init(self) -> Any:
        """Prepare the mode. May be a coroutine."""

    @abstractmethod
    def render(self) -> Any:
        """Draw the mode onto its surface. May be a coroutine."""

    @abstractmethod
    def cleanup(self) -> Any:
        """Release resources. May be a coroutine."""

    async def interact(self) -> None:
        """Run the mode interactively on the surface until it ends."""

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    @property
    def surface(self) -> Console:
        if self.context.surface is None:
            self.context.surface = Console()
        return self.context.surface

    @property
    def items(self) -> list[VocabularyItem]:
        return [
            w if isinstance(w, VocabularyItem) else VocabularyItem.from_dict(w)
            for w in self.data.get("words") or []
        ]

    @property
    def session_id(self) -> str | None:
        info = self.data.get("session_info") or {}
        return info.get("session_id")

    def validate_data(self) -> None:
        missing = [name for name in self.required_fields if self.data.get(name) is None]
        if missing:
            raise MissingData(missing)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def save_state(self) -> dict[str, Any]:
        return {
            **self.state,
            "mode_id": self.mode_id,
            "metrics": self.metrics.to_dict(),
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }

    def restore_state(self, saved: dict[str, Any] | None) -> None:
        if not saved:
            return
        restored = {k: v for k, v in saved.items() if k not in ("mode_id", "metrics", "saved_at")}
        self.state.update(restored)
        self.metrics.merge(saved.get("metrics") or {})
        logger.debug(f"State restored for mode '{self.mode_id}'")

    def update_state(self, **changes: Any) -> None:
        self.state.update(changes)
        self.emit(STATE_CHANGED, state=dict(self.state))

    # -------------------------------------------------------------------------
    # Events and metrics
    # -------------------------------------------------------------------------

    def emit(self, name: str, **payload: Any):
        return self.events.emit(name, mode=self.mode_id, **payload)

    def record_interaction(self) -> None:
        self.metrics.interactions += 1

    def record_answer(self, correct: bool) -> None:
        self.metrics.interactions += 1
        self.metrics.answered += 1
        if correct:
            self.metrics.correct += 1

    def rate_item(self, item: VocabularyItem | str, rating: Rating | str) -> ReviewRecord | None:
        """Hand a rating to the review scheduler, if the manager has one."""
        self.record_interaction()
        scheduler = self.context.scheduler
        if scheduler is None:
            logger.debug(f"No review scheduler attached, rating of {item} not recorded")
            return None
        return scheduler.rate(item, rating, session_id=self.session_id)

    def end_session(self) -> None:
        """Mark the run as finished and announce it."""
        if self.finished:
            return
        self.finished = True
        self.emit(
            SESSION_ENDED,
            session_id=self.session_id,
            state=dict(self.state),
            metrics=self.metrics.to_dict(),
        )
