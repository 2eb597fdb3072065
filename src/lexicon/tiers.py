"""
Difficulty tiers.

A tier scale is an ordered list of tier labels, weakest first. The default
is the CEFR ladder A1 -> C2.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from src.core.errors import InvalidArgument

CEFR_TIERS: tuple[str, ...] = ("A1", "A2", "B1", "B2", "C1", "C2")


@dataclass(frozen=True)
class TierScale:
    """Ordered difficulty tiers (index 0 is the weakest)."""

    tiers: tuple[str, ...] = CEFR_TIERS

    def __post_init__(self):
        if not self.tiers:
            raise InvalidArgument("A tier scale needs at least one tier")
        if len(set(self.tiers)) != len(self.tiers):
            raise InvalidArgument(f"Duplicate tiers in scale: {self.tiers}")

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> TierScale:
        return cls(tuple(label.strip() for label in labels if label.strip()))

    @property
    def lowest(self) -> str:
        return self.tiers[0]

    @property
    def highest(self) -> str:
        return self.tiers[-1]

    def __contains__(self, tier: object) -> bool:
        return tier in self.tiers

    def __len__(self) -> int:
        return len(self.tiers)

    def rank(self, tier: str) -> int:
        """Position of tier in the scale. Unknown tiers are rejected."""
        try:
            return self.tiers.index(tier)
        except ValueError:
            raise InvalidArgument(
                f"Unknown tier '{tier}' (expected one of {', '.join(self.tiers)})"
            ) from None

    def ordered(self, tiers: Iterable[str]) -> list[str]:
        """Distinct tiers from the input, in scale order."""
        return sorted(set(tiers), key=self.rank)

    def range_label(self, tiers: Sequence[str]) -> str:
        """'B1' for a single tier, 'A1-B2' for the span of the tiers present."""
        present = self.ordered(tiers)
        if not present:
            return ""
        if len(present) == 1:
            return present[0]
        return f"{present[0]}-{present[-1]}"


DEFAULT_SCALE = TierScale()
