"""
Session completion tracking.

Completion records are append-only and stored as a JSON list under the
completed_sessions key. Marking a session twice is a no-op that returns
the first record.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from loguru import logger

from src.core.errors import NotFound
from src.modes.events import PROGRESS_UPDATED, SESSION_COMPLETED
from src.storage import COMPLETED_SESSIONS_KEY, KeyValueStore, read_value

from .partitioner import Session, session_id_for

if TYPE_CHECKING:
    from src.modes.events import EventBus

    from .catalog import SessionCatalog


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CompletionRecord:
    """A finished session, with a snapshot of the item ids it held."""

    session_id: str
    category_id: str
    completed_at: datetime
    item_ids: list[str] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.item_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "category": self.category_id,
            "completed_at": self.completed_at.isoformat(),
            "item_ids": list(self.item_ids),
            "word_count": self.word_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompletionRecord:
        session_id = data["id"]
        category_id = data.get("category")
        if not category_id:
            category_id = session_id.rpartition("_session_")[0]
        item_ids = data.get("item_ids")
        if item_ids is None:
            item_ids = [w["id"] for w in data.get("words", []) if isinstance(w, dict) and "id" in w]
        completed_at = datetime.fromisoformat(data.get("completed_at") or data["completedDate"])
        if completed_at.tzinfo is None:
            completed_at = completed_at.replace(tzinfo=timezone.utc)
        return cls(
            session_id=str(session_id),
            category_id=str(category_id),
            completed_at=completed_at,
            item_ids=[str(i) for i in item_ids],
        )


@dataclass(frozen=True)
class CategoryProgress:
    category_id: str
    completed: int
    total: int

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 0.0
        return round(100.0 * self.completed / self.total, 1)


class SessionProgressStore:
    """
    Completed-session log backed by the key-value store.

    Reads are tolerant: a missing or corrupt value means no progress, and
    malformed entries are skipped. Writes raise StoreUnavailable.
    """

    def __init__(
        self,
        store: KeyValueStore,
        catalog: SessionCatalog | None = None,
        events: EventBus | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.catalog = catalog
        self.events = events
        self.clock = clock

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def records(self) -> list[CompletionRecord]:
        raw = read_value(self.store, COMPLETED_SESSIONS_KEY, [], expected=list)
        records = []
        for entry in raw:
            try:
                records.append(CompletionRecord.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed completion record: {e}")
        return records

    def _find(self, session_id: str) -> CompletionRecord | None:
        for record in self.records():
            if record.session_id == session_id:
                return record
        return None

    def is_completed(self, session_id: str) -> bool:
        return self._find(session_id) is not None

    def mark_completed(
        self,
        session_id: str,
        item_ids: list[str] | None = None,
        category_id: str | None = None,
    ) -> CompletionRecord:
        """Record a session as completed. Idempotent per session id."""
        existing = self._find(session_id)
        if existing is not None:
            logger.debug(f"Session {session_id} already completed")
            return existing

        if category_id is None:
            category_id = session_id.rpartition("_session_")[0]

        record = CompletionRecord(
            session_id=session_id,
            category_id=category_id,
            completed_at=self.clock(),
            item_ids=list(item_ids or []),
        )
        # Keep stored entries we could not parse rather than dropping them on write
        raw = read_value(self.store, COMPLETED_SESSIONS_KEY, [], expected=list)
        raw.append(record.to_dict())
        self.store.set(COMPLETED_SESSIONS_KEY, raw)
        logger.info(f"Session {session_id} marked as completed ({record.word_count} items)")

        if self.events is not None:
            completed = self.completed_session_ids()
            self.events.emit(
                PROGRESS_UPDATED,
                session_id=session_id,
                completed_sessions=len(completed),
                total_words=sum(r.word_count for r in self.records()),
            )
            self.events.emit(SESSION_COMPLETED, session_id=session_id, category_id=category_id)
        return record

    def completed_session_ids(self, category_id: str | None = None) -> list[str]:
        return [
            r.session_id
            for r in self.records()
            if category_id is None or r.category_id == category_id
        ]

    def clear(self) -> int:
        """Remove all completion records. Returns how many were removed."""
        count = len(read_value(self.store, COMPLETED_SESSIONS_KEY, [], expected=list))
        self.store.delete(COMPLETED_SESSIONS_KEY)
        return count

    # -------------------------------------------------------------------------
    # Progress (needs a catalog)
    # -------------------------------------------------------------------------

    def _require_catalog(self) -> SessionCatalog:
        if self.catalog is None:
            raise NotFound("SessionProgressStore needs a SessionCatalog for this query")
        return self.catalog

    def progress_for(self, category_id: str) -> CategoryProgress:
        total = self._require_catalog().total_sessions(category_id)
        valid = {s.id for s in self._require_catalog().sessions_for(category_id)}
        completed = len(set(self.completed_session_ids(category_id)) & valid)
        return CategoryProgress(category_id=category_id, completed=completed, total=total)

    def is_unlocked(self, session: Session) -> bool:
        """The first session is always open; later ones need their predecessor done."""
        if session.number <= 1:
            return True
        return self.is_completed(session_id_for(session.category_id, session.number - 1))

    def available_sessions(self, category_id: str) -> list[Session]:
        return [s for s in self._require_catalog().sessions_for(category_id) if self.is_unlocked(s)]

    def next_session(self, category_id: str) -> Session | None:
        """First unlocked, incomplete session; session 1 once everything is done."""
        sessions = self._require_catalog().sessions_for(category_id)
        if not sessions:
            return None
        completed = set(self.completed_session_ids(category_id))
        for session in sessions:
            if session.id not in completed and self.is_unlocked(session):
                return session
        return sessions[0]

    def overall(self) -> dict[str, Any]:
        """Completion summary across every category of the catalog."""
        catalog = self._require_catalog()
        categories = {}
        completed_total = 0
        sessions_total = 0
        for category_id in catalog.corpus.category_ids():
            progress = self.progress_for(category_id)
            categories[category_id] = progress
            completed_total += progress.completed
            sessions_total += progress.total

        records = self.records()
        return {
            "completed_sessions": completed_total,
            "total_sessions": sessions_total,
            "words_studied": sum(r.word_count for r in records),
            "percentage": round(100.0 * completed_total / sessions_total, 1) if sessions_total else 0.0,
            "categories": categories,
        }
