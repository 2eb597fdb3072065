"""
Difficulty-driven spaced repetition.

Every rating schedules the item's next review a fixed number of days out,
chosen by the learner's own difficulty rating:

    hard   -> 1 day   (most frequent)
    medium -> 3 days
    easy   -> 7 days

Ratings are upserts: rating an item that has never been seen creates its
record. Records live in the key-value store under word_reviews as
{item_id: record}.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger

from src.core.errors import InvalidArgument
from src.lexicon.corpus import VocabularyItem
from src.storage import COMPLETED_SESSIONS_KEY, REVIEWS_KEY, KeyValueStore, read_value

if TYPE_CHECKING:
    from src.lexicon.corpus import VocabularyCorpus
    from src.sessions.progress import SessionProgressStore


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Rating(str, Enum):
    """Learner's self-reported difficulty for an item."""

    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"

    @classmethod
    def parse(cls, value: Rating | str) -> Rating:
        if isinstance(value, Rating):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidArgument(
                f"Unknown rating '{value}' (expected hard, medium or easy)"
            ) from None


# =============================================================================
# Interval Policy
# =============================================================================


@dataclass(frozen=True)
class IntervalPolicy:
    """Review interval in days per rating. Must satisfy 0 < hard <= medium <= easy."""

    hard: float = 1
    medium: float = 3
    easy: float = 7

    def __post_init__(self):
        if not (0 < self.hard <= self.medium <= self.easy):
            raise InvalidArgument(
                f"Intervals must satisfy 0 < hard <= medium <= easy "
                f"(got hard={self.hard}, medium={self.medium}, easy={self.easy})"
            )

    def days(self, rating: Rating | str) -> float:
        return getattr(self, Rating.parse(rating).value)

    def interval(self, rating: Rating | str) -> timedelta:
        return timedelta(days=self.days(rating))


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class RatingEvent:
    rated_at: datetime
    rating: Rating
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rated_at": self.rated_at.isoformat(),
            "rating": self.rating.value,
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RatingEvent:
        return cls(
            rated_at=_parse_time(data.get("rated_at") or data["date"]),
            rating=Rating.parse(data.get("rating") or data["difficulty"]),
            session_id=data.get("session_id", data.get("sessionId")),
        )


@dataclass
class ReviewRecord:
    """Scheduling state of one rated item."""

    item_id: str
    rating: Rating
    last_reviewed: datetime
    next_due: datetime
    review_count: int = 1
    history: list[RatingEvent] = field(default_factory=list)
    session_id: str | None = None
    item: VocabularyItem | None = None

    def is_due(self, now: datetime) -> bool:
        return self.next_due <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "rating": self.rating.value,
            "last_reviewed": self.last_reviewed.isoformat(),
            "next_due": self.next_due.isoformat(),
            "review_count": self.review_count,
            "history": [event.to_dict() for event in self.history],
            "session_id": self.session_id,
            "item": self.item.to_dict() if self.item else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewRecord:
        item_data = data.get("item") or data.get("word")
        item = VocabularyItem.from_dict(item_data) if isinstance(item_data, dict) else None
        return cls(
            item_id=str(data["id"]),
            rating=Rating.parse(data.get("rating") or data["difficulty"]),
            last_reviewed=_parse_time(data.get("last_reviewed") or data["lastReviewed"]),
            next_due=_parse_time(data.get("next_due") or data["nextReview"]),
            review_count=int(data.get("review_count", data.get("reviewCount", 1))),
            history=[RatingEvent.from_dict(e) for e in data.get("history", [])],
            session_id=data.get("session_id", data.get("sessionId")),
            item=item,
        )


@dataclass(frozen=True)
class ReviewBucketStats:
    total: int = 0
    due: int = 0
    upcoming: int = 0


@dataclass(frozen=True)
class UserProgress:
    """Inputs to the mode recommendation heuristic."""

    struggling_items: list[str] = field(default_factory=list)
    total_items_learned: int = 0


# =============================================================================
# Scheduler
# =============================================================================


class ReviewScheduler:
    """
    Schedules reviews from difficulty ratings.

    Items returned by due() are resolved through the corpus when one is
    attached, else through the item snapshot stored with the record.
    """

    def __init__(
        self,
        store: KeyValueStore,
        corpus: VocabularyCorpus | None = None,
        policy: IntervalPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        upcoming_window: timedelta = timedelta(hours=24),
        progress: SessionProgressStore | None = None,
    ):
        self.store = store
        self.corpus = corpus
        self.policy = policy or IntervalPolicy()
        self.clock = clock
        self.upcoming_window = upcoming_window
        self.progress = progress

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> dict[str, ReviewRecord]:
        raw = read_value(self.store, REVIEWS_KEY, {}, expected=dict)
        records = {}
        for item_id, data in raw.items():
            try:
                records[item_id] = ReviewRecord.from_dict(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed review record '{item_id}': {e}")
        return records

    def _save(self, records: dict[str, ReviewRecord]) -> None:
        self.store.set(REVIEWS_KEY, {item_id: r.to_dict() for item_id, r in records.items()})

    # -------------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------------

    def rate(
        self,
        item: VocabularyItem | str,
        rating: Rating | str,
        session_id: str | None = None,
    ) -> ReviewRecord:
        """
        Record a rating and schedule the next review.

        Args:
            item: The rated item, or its id
            rating: hard / medium / easy
            session_id: Session the rating was given in, if any

        Returns:
            The updated ReviewRecord
        """
        rating = Rating.parse(rating)
        if isinstance(item, VocabularyItem):
            item_id, snapshot = item.id, item
        else:
            item_id = str(item)
            if not item_id:
                raise InvalidArgument("Cannot rate an item with an empty id")
            snapshot = self.corpus.find_item(item_id) if self.corpus else None

        records = self._load()
        previous = records.get(item_id)

        now = self.clock()
        # A clock that steps backwards must not schedule before the last review
        if previous is not None and now < previous.last_reviewed:
            now = previous.last_reviewed

        event = RatingEvent(rated_at=now, rating=rating, session_id=session_id)
        record = ReviewRecord(
            item_id=item_id,
            rating=rating,
            last_reviewed=now,
            next_due=now + self.policy.interval(rating),
            review_count=(previous.review_count if previous else 0) + 1,
            history=(list(previous.history) if previous else []) + [event],
            session_id=session_id,
            item=snapshot or (previous.item if previous else None),
        )
        records[item_id] = record
        self._save(records)

        logger.debug(
            f"Item '{item_id}' rated {rating.value}, next review in "
            f"{self.policy.days(rating)} days"
        )
        return record

    def record(self, item_id: str) -> ReviewRecord | None:
        return self._load().get(item_id)

    def records(self) -> list[ReviewRecord]:
        return list(self._load().values())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def due_records(self, difficulty: Rating | str = "all", limit: int = 0) -> list[ReviewRecord]:
        """Due records, most overdue first. limit <= 0 means no limit."""
        wanted = None if difficulty in (None, "all") else Rating.parse(difficulty)
        now = self.clock()

        due = [
            r for r in self._load().values()
            if r.is_due(now) and (wanted is None or r.rating == wanted)
        ]
        due.sort(key=lambda r: (r.next_due, r.item_id))
        if limit > 0:
            due = due[:limit]
        return due

    def due(self, difficulty: Rating | str = "all", limit: int = 0) -> list[VocabularyItem]:
        """Items due for review, most overdue first."""
        items = []
        # Unresolvable records must not count against the limit
        for record in self.due_records(difficulty):
            item = self.corpus.find_item(record.item_id) if self.corpus else None
            item = item or record.item
            if item is None:
                logger.warning(f"Due item '{record.item_id}' not found in corpus, skipping")
                continue
            items.append(item)
            if 0 < limit <= len(items):
                break
        logger.debug(f"Found {len(items)} items due for {difficulty} review")
        return items

    def stats(self) -> dict[Rating, ReviewBucketStats]:
        """
        Per-rating totals: all records, due now, and due within the upcoming
        window (excluding those already due).
        """
        now = self.clock()
        horizon = now + self.upcoming_window
        counts = {rating: [0, 0, 0] for rating in Rating}

        for record in self._load().values():
            bucket = counts[record.rating]
            bucket[0] += 1
            if record.is_due(now):
                bucket[1] += 1
            elif record.next_due <= horizon:
                bucket[2] += 1

        return {
            rating: ReviewBucketStats(total=c[0], due=c[1], upcoming=c[2])
            for rating, c in counts.items()
        }

    def struggling(self, min_hard: int = 1) -> list[str]:
        """Items whose latest rating is hard and that were rated hard at least min_hard times."""
        result = []
        for record in self._load().values():
            if record.rating != Rating.HARD:
                continue
            hard_count = sum(1 for e in record.history if e.rating == Rating.HARD)
            if hard_count >= min_hard:
                result.append(record.item_id)
        return sorted(result)

    def user_progress(self) -> UserProgress:
        records = self._load()
        return UserProgress(
            struggling_items=self.struggling(),
            total_items_learned=len(records),
        )

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset(self) -> dict[str, int]:
        """
        Delete every review record and every completion record.

        Irreversible. Returns how many of each were removed.
        """
        reviews = len(read_value(self.store, REVIEWS_KEY, {}, expected=dict))
        self.store.delete(REVIEWS_KEY)

        if self.progress is not None:
            sessions = self.progress.clear()
        else:
            sessions = len(read_value(self.store, COMPLETED_SESSIONS_KEY, [], expected=list))
            self.store.delete(COMPLETED_SESSIONS_KEY)

        logger.info(f"Review data reset: {reviews} reviews, {sessions} completed sessions removed")
        return {"word_reviews": reviews, "completed_sessions": sessions}
