"""
Spaced-repetition review scheduling.
"""

from .scheduler import (
    IntervalPolicy,
    Rating,
    RatingEvent,
    ReviewBucketStats,
    ReviewRecord,
    ReviewScheduler,
    UserProgress,
)

__all__ = [
    "Rating",
    "IntervalPolicy",
    "RatingEvent",
    "ReviewRecord",
    "ReviewBucketStats",
    "UserProgress",
    "ReviewScheduler",
]
