"""
Feature Flags and runtime capabilities.

Mode dependencies are resolved here: a dependency name is satisfied either
by an enabled flag or by a capability provided at runtime (for example the
review scheduler, once one has been constructed).
"""
from dataclasses import dataclass, field
import os
from typing import Any

from loguru import logger


@dataclass
class FeatureFlags:
    # Stable features
    FLASHCARDS: bool = True
    PHRASES: bool = True
    QUIZ: bool = True
    REVIEW: bool = True
    EXAMINE: bool = True

    # Optional / infrastructure
    SPEECH: bool = False             # text-to-speech collaborator
    REMOTE_CORPUS: bool = True       # fetch vocabulary over HTTP

    _provided: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        for flag_name in self.flag_names():
            env_key = f"VOCAB_{flag_name}"
            env_val = os.environ.get(env_key)
            if env_val is not None:
                setattr(self, flag_name, env_val.lower() in ("1", "true", "yes", "on"))

    @classmethod
    def flag_names(cls) -> list[str]:
        return [name for name in cls.__dataclass_fields__ if not name.startswith("_")]

    def is_enabled(self, flag_name: str) -> bool:
        if flag_name not in self.flag_names():
            return False
        return bool(getattr(self, flag_name, False))

    def provide(self, name: str, capability: Any) -> None:
        """Make a named capability resolvable (e.g. 'review_scheduler')."""
        self._provided[name] = capability
        logger.debug(f"Capability provided: {name}")

    def withdraw(self, name: str) -> None:
        self._provided.pop(name, None)

    def get(self, name: str) -> Any | None:
        return self._provided.get(name)

    def is_available(self, name: str) -> bool:
        """A dependency name resolves if it is a provided capability or an enabled flag."""
        if self._provided.get(name) is not None:
            return True
        return self.is_enabled(name)
