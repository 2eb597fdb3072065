"""
Session catalog: the partitioner applied to a whole corpus.

Sessions are recomputed on demand and cached per category. Since the
partitioner is deterministic, the cache never changes what a session id
refers to for a given corpus.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from src.core.errors import NotFound
from src.lexicon.corpus import VocabularyCorpus

from .partitioner import DEFAULT_PAGE_SIZE, DifficultyPartitioner, Session


class SessionCatalog:
    """Lookup of sessions by category and by session id."""

    def __init__(
        self,
        corpus: VocabularyCorpus,
        partitioner: DifficultyPartitioner | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.corpus = corpus
        self.partitioner = partitioner or DifficultyPartitioner(scale=corpus.scale)
        self.page_size = page_size
        self._cache: dict[str, list[Session]] = {}

    def sessions_for(self, category_id: str) -> list[Session]:
        """All sessions of a category, in order. NotFound for unknown categories."""
        if category_id not in self._cache:
            items = self.corpus.items_for(category_id)
            self._cache[category_id] = self.partitioner.partition(
                items, self.page_size, category_id
            )
            logger.debug(
                f"Built {len(self._cache[category_id])} sessions for category '{category_id}'"
            )
        return list(self._cache[category_id])

    def find(self, session_id: str) -> Session | None:
        category_id, sep, number = session_id.rpartition("_session_")
        if not sep or not number.isdigit() or not self.corpus.has_category(category_id):
            return None
        sessions = self.sessions_for(category_id)
        index = int(number) - 1
        if 0 <= index < len(sessions):
            return sessions[index]
        return None

    def get(self, session_id: str) -> Session:
        session = self.find(session_id)
        if session is None:
            raise NotFound(f"Unknown session: {session_id}")
        return session

    def total_sessions(self, category_id: str) -> int:
        return len(self.sessions_for(category_id))

    def all_sessions(self) -> dict[str, list[Session]]:
        return {cid: self.sessions_for(cid) for cid in self.corpus.category_ids()}

    def category_stats(self, category_id: str) -> dict[str, Any]:
        """Tier distribution of the whole category plus the per-session progression."""
        sessions = self.sessions_for(category_id)
        distribution: dict[str, int] = {}
        for session in sessions:
            for tier, count in session.distribution.items():
                distribution[tier] = distribution.get(tier, 0) + count
        ordered = {t: distribution[t] for t in self.partitioner.scale.ordered(distribution)}

        return {
            "category_id": category_id,
            "total_words": sum(ordered.values()),
            "total_sessions": len(sessions),
            "distribution": ordered,
            "progression": self.partitioner.summarize(sessions),
        }

    def invalidate(self, category_id: str | None = None) -> None:
        """Drop cached sessions (all categories when category_id is None)."""
        if category_id is None:
            self._cache.clear()
        else:
            self._cache.pop(category_id, None)
