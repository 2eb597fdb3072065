"""
Persistence for the vocabulary engine.

Components:
- KeyValueStore: the get/set port every component reads and writes through
- MemoryStore / JsonFileStore / SqlStore: backends
- build_store: pick a backend from Settings
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .kv_store import (
    DEFAULT_STORE_DIR,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    SqlStore,
    read_value,
)

if TYPE_CHECKING:
    from config import Settings

# Keys owned by the engine
REVIEWS_KEY = "word_reviews"
COMPLETED_SESSIONS_KEY = "completed_sessions"
MODE_METRICS_PREFIX = "mode-metrics-"


def mode_metrics_key(mode_id: str) -> str:
    return f"{MODE_METRICS_PREFIX}{mode_id}"


def build_store(settings: "Settings") -> KeyValueStore:
    """Create the configured store backend."""
    if settings.store_backend == "memory":
        return MemoryStore()
    if settings.store_backend == "sql":
        return SqlStore(settings.database_url)
    directory = Path(settings.store_dir) if settings.store_dir else DEFAULT_STORE_DIR
    return JsonFileStore(directory)


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "SqlStore",
    "read_value",
    "build_store",
    "mode_metrics_key",
    "REVIEWS_KEY",
    "COMPLETED_SESSIONS_KEY",
    "MODE_METRICS_PREFIX",
]
