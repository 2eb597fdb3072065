"""
Engine wiring.

Builds the store, corpus, session catalog, progress store, review scheduler
and mode lifecycle manager from Settings, with nothing held globally.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from loguru import logger
from rich.console import Console

from config import Settings, get_settings
from src.core.errors import NotFound
from src.core.feature_flags import FeatureFlags
from src.lexicon.corpus import VocabularyCorpus
from src.modes.events import EventBus
from src.modes.manager import ModeLifecycleManager
from src.modes.registry import ModeRegistry, register_builtin_modes
from src.review.scheduler import ReviewScheduler, utc_now
from src.sessions.catalog import SessionCatalog
from src.sessions.partitioner import DifficultyPartitioner
from src.sessions.progress import SessionProgressStore
from src.storage import KeyValueStore, build_store


@dataclass
class VocabEngine:
    settings: Settings
    store: KeyValueStore
    corpus: VocabularyCorpus | None
    catalog: SessionCatalog | None
    progress: SessionProgressStore
    scheduler: ReviewScheduler
    events: EventBus
    registry: ModeRegistry
    manager: ModeLifecycleManager
    flags: FeatureFlags

    def require_catalog(self) -> SessionCatalog:
        if self.catalog is None:
            raise NotFound("No vocabulary corpus configured (set VOCAB_CORPUS_PATH or VOCAB_CORPUS_URL)")
        return self.catalog


def load_corpus(settings: Settings, flags: FeatureFlags | None = None) -> VocabularyCorpus | None:
    """Load the corpus from the configured file, else the configured URL."""
    scale = settings.tier_scale()
    if settings.corpus_path:
        return VocabularyCorpus.load(Path(settings.corpus_path), scale=scale)
    if settings.corpus_url:
        if flags is not None and not flags.is_enabled("REMOTE_CORPUS"):
            logger.warning("Remote corpus disabled, not fetching")
            return None
        return VocabularyCorpus.fetch(settings.corpus_url, scale=scale, timeout=settings.request_timeout)
    return None


def build_engine(
    settings: Settings | None = None,
    store: KeyValueStore | None = None,
    corpus: VocabularyCorpus | None = None,
    flags: FeatureFlags | None = None,
    surface: Console | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> VocabEngine:
    settings = settings or get_settings()
    flags = flags or FeatureFlags()
    store = store or build_store(settings)
    if corpus is None:
        corpus = load_corpus(settings, flags)

    catalog = None
    if corpus is not None:
        partitioner = DifficultyPartitioner(scale=corpus.scale, collator=settings.collator())
        catalog = SessionCatalog(corpus, partitioner, page_size=settings.page_size)

    events = EventBus()
    progress = SessionProgressStore(store, catalog=catalog, events=events, clock=clock)
    scheduler = ReviewScheduler(
        store,
        corpus=corpus,
        policy=settings.interval_policy(),
        clock=clock,
        upcoming_window=timedelta(hours=settings.upcoming_window_hours),
        progress=progress,
    )

    registry = ModeRegistry(events)
    register_builtin_modes(registry, flags=flags, surface=surface)
    manager = ModeLifecycleManager(
        registry,
        store=store,
        scheduler=scheduler,
        catalog=catalog,
        progress=progress,
        flags=flags,
        surface=surface,
        recommend_threshold=settings.recommend_threshold,
        clock=clock,
    )
    logger.debug(f"Engine ready ({settings.store_backend} store, page size {settings.page_size})")
    return VocabEngine(
        settings=settings,
        store=store,
        corpus=corpus,
        catalog=catalog,
        progress=progress,
        scheduler=scheduler,
        events=events,
        registry=registry,
        manager=manager,
        flags=flags,
    )
