"""
Engine error taxonomy.

Every error raised by the engine derives from EngineError so callers (the
CLI, a UI fallback handler) can catch the whole family in one place.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine errors."""


class NotFound(EngineError):
    """Unknown mode, session, category or item id."""


class Disabled(EngineError):
    """The mode exists but is registered as disabled."""


class DependencyUnmet(EngineError):
    """A mode's declared dependency could not be resolved at start time."""

    def __init__(self, dependency: str, mode_id: str | None = None):
        self.dependency = dependency
        self.mode_id = mode_id
        where = f" for mode '{mode_id}'" if mode_id else ""
        super().__init__(f"Missing dependency{where}: {dependency}")


class MissingData(EngineError):
    """A mode's init() found required input fields absent."""

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required data fields: {', '.join(self.fields)}")


class InvalidArgument(EngineError, ValueError):
    """An argument is outside its valid domain (e.g. page size <= 0)."""


class StoreUnavailable(EngineError):
    """The persistent key-value store could not be read or written."""


class LifecycleError(EngineError):
    """A lifecycle call was made while the manager was mid-transition."""
