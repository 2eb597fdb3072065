"""
Difficulty-based session partitioning.

Splits a category's vocabulary into consecutive, bounded-size study
sessions. Items are ordered weakest tier first, then by display text under
a pluggable collator, so early sessions hold the easiest words.

Each session carries:
- its tier distribution (counts per tier, in tier order)
- the primary tier (most frequent; ties go to the weaker tier)
- a tier range label ("B1" or "A1-B2")
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from src.core.errors import InvalidArgument
from src.lexicon.collation import Collator, default_collator
from src.lexicon.corpus import VocabularyItem
from src.lexicon.tiers import DEFAULT_SCALE, TierScale

DEFAULT_PAGE_SIZE = 10

# Completed-session counts at which the recommended tier steps up
RECOMMENDATION_THRESHOLDS: tuple[int, ...] = (5, 15, 30, 50, 80)


def session_id_for(category_id: str, number: int) -> str:
    return f"{category_id}_session_{number}"


@dataclass(frozen=True)
class Session:
    """A contiguous slice of a category's ordered vocabulary."""

    category_id: str
    number: int
    items: tuple[VocabularyItem, ...]
    distribution: dict[str, int] = field(default_factory=dict, compare=False)
    primary_tier: str = ""
    tier_range: str = ""

    @property
    def id(self) -> str:
        return session_id_for(self.category_id, self.number)

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]

    @property
    def size(self) -> int:
        return len(self.items)

    def info(self, total_sessions: int | None = None) -> dict[str, Any]:
        """Session metadata handed to learning modes."""
        return {
            "session_id": self.id,
            "session_number": self.number,
            "category_id": self.category_id,
            "total_sessions": total_sessions,
            "total_words": self.size,
            "tier_range": self.tier_range,
            "primary_tier": self.primary_tier,
        }


class DifficultyPartitioner:
    """
    Orders items by (tier, collated text, id) and chunks them into sessions.

    Pure: no store access, deterministic for a given input.
    """

    def __init__(self, scale: TierScale = DEFAULT_SCALE, collator: Collator = default_collator):
        self.scale = scale
        self.collator = collator

    def sort_key(self, item: VocabularyItem) -> tuple:
        return (self.scale.rank(item.tier), self.collator(item.text), item.id)

    def partition(
        self,
        items: Sequence[VocabularyItem],
        page_size: int = DEFAULT_PAGE_SIZE,
        category_id: str = "",
    ) -> list[Session]:
        """
        Split items into sessions of page_size (the last holds the remainder).

        Raises:
            InvalidArgument: page_size is not a positive int, or an item has
                a tier outside the scale
        """
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
            raise InvalidArgument(f"page_size must be a positive integer, got {page_size!r}")
        if not items:
            return []

        ordered = sorted(items, key=self.sort_key)

        sessions = []
        for start in range(0, len(ordered), page_size):
            chunk = tuple(ordered[start : start + page_size])
            sessions.append(self._build_session(category_id, len(sessions) + 1, chunk))

        logger.debug(
            f"Partitioned {len(ordered)} items of '{category_id}' into {len(sessions)} sessions"
        )
        return sessions

    def _build_session(
        self, category_id: str, number: int, chunk: tuple[VocabularyItem, ...]
    ) -> Session:
        counts = Counter(item.tier for item in chunk)
        distribution = {tier: counts[tier] for tier in self.scale.ordered(counts)}

        # Scale order plus strict > keeps the weaker tier on ties
        primary = ""
        best = 0
        for tier, count in distribution.items():
            if count > best:
                primary, best = tier, count

        return Session(
            category_id=category_id,
            number=number,
            items=chunk,
            distribution=distribution,
            primary_tier=primary,
            tier_range=self.scale.range_label(list(distribution)),
        )

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    @staticmethod
    def summarize(sessions: Sequence[Session]) -> list[dict[str, Any]]:
        """Per-session progression: number, size, tier range, primary tier."""
        return [
            {
                "session": s.number,
                "words": s.size,
                "difficulty": s.tier_range,
                "primary": s.primary_tier,
            }
            for s in sessions
        ]

    def recommended_tier(self, completed_count: int) -> str:
        """
        Tier a learner should work at after completed_count sessions.

        Each threshold passed moves one tier up the scale, capped at the top.
        """
        steps = sum(1 for threshold in RECOMMENDATION_THRESHOLDS if completed_count >= threshold)
        return self.scale.tiers[min(steps, len(self.scale) - 1)]


def partition(
    items: Sequence[VocabularyItem],
    page_size: int = DEFAULT_PAGE_SIZE,
    category_id: str = "",
    scale: TierScale = DEFAULT_SCALE,
    collator: Collator = default_collator,
) -> list[Session]:
    """Partition with a throwaway DifficultyPartitioner."""
    return DifficultyPartitioner(scale, collator).partition(items, page_size, category_id)
