"""
Per-mode usage metrics, persisted under mode-metrics-<modeId>.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from loguru import logger

from src.storage import KeyValueStore, mode_metrics_key, read_value

from .base import ModeUsage


@dataclass
class ModeMetrics:
    total_sessions: int = 0
    total_time: float = 0.0  # seconds
    last_used: str | None = None  # ISO format
    interactions: int = 0
    average_accuracy: float = 0.0
    scored_sessions: int = 0  # runs that had at least one answer

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModeMetrics:
        """Read stored totals. Values that do not convert raise TypeError/ValueError."""
        last_used = data.get("last_used")
        return cls(
            total_sessions=int(data.get("total_sessions", 0)),
            total_time=float(data.get("total_time", 0.0)),
            last_used=str(last_used) if last_used is not None else None,
            interactions=int(data.get("interactions", 0)),
            average_accuracy=float(data.get("average_accuracy", 0.0)),
            scored_sessions=int(data.get("scored_sessions", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ModeMetricsStore:
    """Read-merge-write of mode metrics in the key-value store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, mode_id: str) -> ModeMetrics:
        raw = read_value(self.store, mode_metrics_key(mode_id), {}, expected=dict)
        try:
            return ModeMetrics.from_dict(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed metrics for mode '{mode_id}': {e}")
            return ModeMetrics()

    def record_run(
        self,
        mode_id: str,
        duration: float,
        usage: ModeUsage,
        ended_at: datetime,
    ) -> ModeMetrics:
        """Fold one finished run into the stored totals."""
        current = self.get(mode_id)
        runs = current.total_sessions + 1
        accuracy = current.average_accuracy
        scored = current.scored_sessions
        if usage.answered:
            scored += 1
            accuracy = accuracy + (usage.accuracy - accuracy) / scored

        updated = ModeMetrics(
            total_sessions=runs,
            total_time=round(current.total_time + max(duration, 0.0), 3),
            last_used=ended_at.isoformat(),
            interactions=current.interactions + usage.interactions,
            average_accuracy=round(accuracy, 4),
            scored_sessions=scored,
        )
        # Keep unknown stored keys when merging
        raw = read_value(self.store, mode_metrics_key(mode_id), {}, expected=dict)
        raw.update(updated.to_dict())
        self.store.set(mode_metrics_key(mode_id), raw)
        logger.debug(f"Metrics updated for mode '{mode_id}': {runs} sessions")
        return updated
