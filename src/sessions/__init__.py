"""
Study sessions: partitioning, catalog and completion progress.
"""

from .catalog import SessionCatalog
from .partitioner import (
    DEFAULT_PAGE_SIZE,
    DifficultyPartitioner,
    Session,
    partition,
    session_id_for,
)
from .progress import CategoryProgress, CompletionRecord, SessionProgressStore

__all__ = [
    "Session",
    "DifficultyPartitioner",
    "partition",
    "session_id_for",
    "DEFAULT_PAGE_SIZE",
    "SessionCatalog",
    "CompletionRecord",
    "CategoryProgress",
    "SessionProgressStore",
]
