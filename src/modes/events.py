"""
In-process event bus for mode lifecycle notifications.

Handlers are plain callables taking an Event. A handler that raises is
logged and skipped; it never breaks the emitter or the other handlers.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from loguru import logger

MODE_REGISTERED = "modeRegistered"
MODE_UNREGISTERED = "modeUnregistered"
MODE_STARTED = "modeStarted"
MODE_STOPPED = "modeStopped"
MODE_ERROR = "modeError"
SESSION_ENDED = "sessionEnded"
STATE_CHANGED = "stateChanged"
PROGRESS_UPDATED = "progressUpdated"
SESSION_COMPLETED = "sessionCompleted"

EVENT_NAMES = (
    MODE_REGISTERED,
    MODE_UNREGISTERED,
    MODE_STARTED,
    MODE_STOPPED,
    MODE_ERROR,
    SESSION_ENDED,
    STATE_CHANGED,
    PROGRESS_UPDATED,
    SESSION_COMPLETED,
)


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


Handler = Callable[[Event], Any]


class EventBus:
    """Named-event publish/subscribe."""

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, name: str, handler: Handler) -> Handler:
        if name not in EVENT_NAMES:
            logger.debug(f"Subscribing to non-standard event '{name}'")
        self._handlers[name].append(handler)
        return handler

    def off(self, name: str, handler: Handler) -> bool:
        try:
            self._handlers[name].remove(handler)
            return True
        except ValueError:
            return False

    def emit(self, name: str, **payload: Any) -> Event:
        event = Event(name=name, payload=payload)
        for handler in list(self._handlers.get(name, ())):
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Handler for '{name}' failed: {e}")
        return event

    def handlers(self, name: str) -> list[Handler]:
        return list(self._handlers.get(name, ()))
