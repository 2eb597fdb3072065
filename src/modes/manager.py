"""
Mode lifecycle manager.

Runs at most one learning mode at a time:

    IDLE -> STARTING -> ACTIVE -> STOPPING -> IDLE

Starting a mode stops the active one first. A start that fails at any step
(unknown or disabled mode, unmet dependency, failing init/render) leaves the
manager IDLE, broadcasts modeError and re-raises.

Lifecycle calls are serialised with an asyncio.Lock. A lifecycle call made
from inside a running init()/cleanup() raises LifecycleError.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from loguru import logger
from rich.console import Console

from src.core.errors import (
    DependencyUnmet,
    Disabled,
    InvalidArgument,
    LifecycleError,
    NotFound,
)
from src.core.feature_flags import FeatureFlags

from .base import LearningMode, ModeContext
from .events import MODE_ERROR, MODE_STARTED, MODE_STOPPED, SESSION_ENDED, Event
from .metrics import ModeMetricsStore
from .registry import ModeDescriptor, ModeRegistry

if TYPE_CHECKING:
    from src.review.scheduler import ReviewScheduler, UserProgress
    from src.sessions.catalog import SessionCatalog
    from src.sessions.partitioner import Session
    from src.sessions.progress import SessionProgressStore
    from src.storage import KeyValueStore

REVIEW_SCHEDULER = "review_scheduler"
DEFAULT_RECOMMEND_THRESHOLD = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class LifecycleState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"


@dataclass
class ActiveMode:
    mode_id: str
    descriptor: ModeDescriptor
    instance: LearningMode
    started_at: datetime


class ModeLifecycleManager:
    """
    Starts, stops and switches learning modes.

    Collaborators are all optional except the registry:
    - store: persists per-mode metrics
    - scheduler: provided to modes as the review_scheduler capability
    - catalog: resolves session ids and category ids into items
    - progress: marks sessions completed when a session-based mode ends
    """

    def __init__(
        self,
        registry: ModeRegistry,
        store: KeyValueStore | None = None,
        scheduler: ReviewScheduler | None = None,
        catalog: SessionCatalog | None = None,
        progress: SessionProgressStore | None = None,
        flags: FeatureFlags | None = None,
        surface: Console | None = None,
        recommend_threshold: int = DEFAULT_RECOMMEND_THRESHOLD,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.events = registry.events
        self.scheduler = scheduler
        self.catalog = catalog
        self.progress = progress
        self.flags = flags or FeatureFlags()
        self.surface = surface
        self.recommend_threshold = recommend_threshold
        self.clock = clock
        self.metrics = ModeMetricsStore(store) if store is not None else None

        if scheduler is not None:
            self.flags.provide(REVIEW_SCHEDULER, scheduler)

        self._lock = asyncio.Lock()
        self._owner: asyncio.Task | None = None
        self._state = LifecycleState.IDLE
        self._active: ActiveMode | None = None

        registry.attach(self)
        self.events.on(SESSION_ENDED, self._on_session_ended)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._active is not None

    def current(self) -> ActiveMode | None:
        return self._active

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _check_reentrant(self, operation: str) -> None:
        if self._lock.locked() and self._owner is not None and self._owner is asyncio.current_task():
            raise LifecycleError(
                f"Cannot {operation} while the manager is {self._state.value}"
            )

    async def start(
        self,
        mode_id: str,
        data: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> LearningMode:
        """
        Start a mode, stopping the active one first.

        Raises:
            NotFound: no mode registered under mode_id
            Disabled: the mode is registered but disabled
            DependencyUnmet: a declared dependency does not resolve
            Any error raised by the mode's init() or render()
        """
        self._check_reentrant("start")
        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                return await self._start(mode_id, dict(data or {}), dict(options or {}))
            finally:
                self._owner = None

    async def stop(self) -> None:
        """Stop the active mode. No-op when idle."""
        self._check_reentrant("stop")
        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                await self._stop()
            finally:
                self._owner = None

    async def switch(
        self,
        mode_id: str,
        data: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> LearningMode:
        """Stop the active mode, carrying its saved state into the next start."""
        self._check_reentrant("switch")
        async with self._lock:
            self._owner = asyncio.current_task()
            try:
                options = dict(options or {})
                if self._active is not None:
                    try:
                        options["previous_state"] = await _maybe_await(
                            self._active.instance.save_state()
                        )
                    except Exception as e:
                        logger.warning(f"Could not save state of '{self._active.mode_id}': {e}")
                return await self._start(mode_id, dict(data or {}), options)
            finally:
                self._owner = None

    async def _start(self, mode_id: str, data: dict[str, Any], options: dict[str, Any]) -> LearningMode:
        if self._active is not None:
            await self._stop()

        self._state = LifecycleState.STARTING
        try:
            descriptor = self.registry.get(mode_id)
            if descriptor is None:
                raise NotFound(f"Learning mode '{mode_id}' not found")
            if not descriptor.enabled:
                raise Disabled(f"Learning mode '{mode_id}' is disabled")

            await self._check_dependencies(descriptor)

            mode_data = self._normalise(data)
            if mode_data.get("session_info"):
                options.setdefault("session_based", True)
                options.setdefault("session_id", mode_data["session_info"]["session_id"])

            context = ModeContext(
                mode_id=mode_id,
                data=mode_data,
                options=options,
                surface=options.get("surface") or descriptor.surface or self.surface,
                events=self.events,
                manager=self,
            )
            logger.info(
                f"Starting learning mode: {mode_id} "
                f"({len(mode_data.get('words') or [])} words)"
            )
            instance = descriptor.factory(context)
            await self._run_hooks(instance, options)
        except Exception as e:
            self._state = LifecycleState.IDLE
            logger.error(f"Failed to start learning mode '{mode_id}': {e}")
            self.events.emit(MODE_ERROR, mode_id=mode_id, error=e)
            raise

        now = self.clock()
        instance.active = True
        instance.started_at = now
        self._active = ActiveMode(mode_id=mode_id, descriptor=descriptor, instance=instance, started_at=now)
        self._state = LifecycleState.ACTIVE
        self.events.emit(MODE_STARTED, mode_id=mode_id, data=data, options=options)
        logger.info(f"Learning mode started: {mode_id}")
        return instance

    async def _run_hooks(self, instance: LearningMode, options: dict[str, Any]) -> None:
        try:
            await _maybe_await(instance.init())
            instance.initialized = True

            previous = options.get("previous_state")
            if previous and previous.get("mode_id") == instance.mode_id:
                await _maybe_await(instance.restore_state(previous))

            await _maybe_await(instance.render())
        except Exception:
            try:
                await _maybe_await(instance.cleanup())
            except Exception as cleanup_error:
                logger.warning(f"Cleanup after failed start of '{instance.mode_id}' failed: {cleanup_error}")
            raise

    async def _stop(self) -> None:
        active = self._active
        if active is None:
            return

        self._state = LifecycleState.STOPPING
        try:
            await _maybe_await(active.instance.cleanup())
        except Exception as e:
            logger.warning(f"Error stopping learning mode '{active.mode_id}': {e}")
        active.instance.active = False

        ended = self.clock()
        if self.metrics is not None:
            try:
                self.metrics.record_run(
                    active.mode_id,
                    (ended - active.started_at).total_seconds(),
                    active.instance.metrics,
                    ended,
                )
            except Exception as e:
                logger.warning(f"Could not save metrics for '{active.mode_id}': {e}")

        self._active = None
        self.events.emit(MODE_STOPPED, mode_id=active.mode_id)
        self._state = LifecycleState.IDLE
        logger.info(f"Learning mode stopped: {active.mode_id}")

    async def _check_dependencies(self, descriptor: ModeDescriptor) -> None:
        for dependency in descriptor.dependencies:
            if callable(dependency):
                name = getattr(dependency, "__name__", repr(dependency))
                try:
                    satisfied = await _maybe_await(dependency())
                except Exception as e:
                    raise DependencyUnmet(name, descriptor.id) from e
            else:
                name = dependency
                satisfied = self.flags.is_available(dependency)
            if not satisfied:
                raise DependencyUnmet(name, descriptor.id)

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    def _normalise(self, data: dict[str, Any]) -> dict[str, Any]:
        """Expand a session or category reference into the items a mode studies."""
        session = data.get("session")
        if session is not None:
            if isinstance(session, str):
                session = self._require_catalog().get(session)
            total = self.catalog.total_sessions(session.category_id) if self.catalog else None
            return {
                **data,
                "session": session.id,
                "words": list(session.items),
                "category": session.category_id,
                "session_info": session.info(total),
            }

        category_id = data.get("category")
        if category_id is not None and "words" not in data and self.catalog is not None:
            category = self.catalog.corpus.category(category_id)
            return {
                **data,
                "words": list(category.items),
                "category_info": {
                    "id": category.id,
                    "name": category.name,
                    "total_words": category.size,
                },
                "session_info": None,
            }
        return data

    def _require_catalog(self) -> SessionCatalog:
        if self.catalog is None:
            raise NotFound("No session catalog attached to the lifecycle manager")
        return self.catalog

    def _on_session_ended(self, event: Event) -> None:
        active = self._active
        if active is None or event.get("mode") != active.mode_id or self.progress is None:
            return
        info = active.instance.data.get("session_info")
        if not info:
            return
        self.progress.mark_completed(
            info["session_id"],
            [item.id for item in active.instance.items],
            category_id=info["category_id"],
        )

    # -------------------------------------------------------------------------
    # Session shortcuts
    # -------------------------------------------------------------------------

    async def start_session(
        self,
        mode_id: str,
        session_id: str,
        options: dict[str, Any] | None = None,
    ) -> LearningMode:
        """Start mode_id over the items of one session."""
        session: Session = self._require_catalog().get(session_id)
        return await self.start(
            mode_id,
            {"session": session},
            {**(options or {}), "session_based": True, "session_id": session_id},
        )

    async def start_category_review(
        self,
        category_id: str,
        session_ids: list[str] | None = None,
    ) -> LearningMode:
        """Start the review mode over the items of completed sessions of a category."""
        catalog = self._require_catalog()
        if session_ids is None:
            session_ids = self.progress.completed_session_ids(category_id) if self.progress else []

        words = []
        for session_id in session_ids:
            session = catalog.find(session_id)
            if session is not None:
                words.extend(session.items)

        if not words:
            raise InvalidArgument(f"No words available for review in '{category_id}'")

        return await self.start(
            "review",
            {
                "words": words,
                "category": category_id,
                "review_mode": True,
                "completed_sessions": list(session_ids),
            },
            {"review_mode": True, "category_id": category_id},
        )

    # -------------------------------------------------------------------------
    # Recommendation
    # -------------------------------------------------------------------------

    def recommend_next(self, progress: UserProgress | None = None) -> ModeDescriptor | None:
        """
        Pick a mode from learner progress.

        Struggling items -> review; fewer than the threshold learned ->
        flashcard; otherwise quiz. Falls back to the first enabled mode.
        """
        modes = self.registry.list()
        if not modes:
            return None
        if progress is None and self.scheduler is not None:
            progress = self.scheduler.user_progress()

        by_id = {m.id: m for m in modes}
        if progress is not None and progress.struggling_items:
            wanted = "review"
        elif progress is None or progress.total_items_learned < self.recommend_threshold:
            wanted = "flashcard"
        else:
            wanted = "quiz"
        return by_id.get(wanted, modes[0])
