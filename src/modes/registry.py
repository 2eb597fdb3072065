"""
Mode registry.

Holds the descriptors of the learning modes that can be started. The
bundled modes are collected by the @builtin_mode decorator into a static
catalog and copied into a registry with register_builtin_modes(); there is
no process-wide registry instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from loguru import logger
from rich.console import Console

from src.core.errors import InvalidArgument

from .events import MODE_REGISTERED, MODE_UNREGISTERED, EventBus

if TYPE_CHECKING:
    from src.core.feature_flags import FeatureFlags

    from .base import LearningMode, ModeContext
    from .manager import ModeLifecycleManager

ModeFactory = Callable[["ModeContext"], "LearningMode"]
# A capability name, or a zero-argument predicate (sync or async)
Dependency = Union[str, Callable[[], Any]]


@dataclass(frozen=True)
class ModeDescriptor:
    id: str
    label: str
    factory: ModeFactory
    dependencies: tuple[Dependency, ...] = ()
    surface: Console | None = None
    enabled: bool = True
    description: str = ""
    version: str = "1.0.0"


class ModeRegistry:
    """Registered learning modes, keyed by id."""

    def __init__(self, events: EventBus | None = None):
        self.events = events or EventBus()
        self.manager: ModeLifecycleManager | None = None
        self._modes: dict[str, ModeDescriptor] = {}

    def attach(self, manager: ModeLifecycleManager) -> None:
        self.manager = manager

    def register(
        self,
        mode_id: str,
        factory: ModeFactory,
        *,
        label: str | None = None,
        dependencies: tuple[Dependency, ...] | list[Dependency] = (),
        surface: Console | None = None,
        enabled: bool = True,
        description: str = "",
        version: str = "1.0.0",
    ) -> ModeDescriptor:
        """Register a mode. Registering an existing id replaces it."""
        if not mode_id:
            raise InvalidArgument("Mode id must be a non-empty string")
        if not callable(factory):
            raise InvalidArgument(f"Factory for mode '{mode_id}' is not callable")

        if mode_id in self._modes:
            logger.warning(f"Mode '{mode_id}' already registered, overriding")

        descriptor = ModeDescriptor(
            id=mode_id,
            label=label or mode_id.title(),
            factory=factory,
            dependencies=tuple(dependencies),
            surface=surface,
            enabled=enabled,
            description=description,
            version=version,
        )
        self._modes[mode_id] = descriptor
        logger.info(f"Mode registered: {mode_id}")
        self.events.emit(MODE_REGISTERED, mode_id=mode_id, descriptor=descriptor)
        return descriptor

    async def unregister(self, mode_id: str) -> bool:
        """Remove a mode, stopping it first if it is the active one."""
        if mode_id not in self._modes:
            return False

        if self.manager is not None:
            current = self.manager.current()
            if current is not None and current.mode_id == mode_id:
                await self.manager.stop()

        del self._modes[mode_id]
        logger.info(f"Mode unregistered: {mode_id}")
        self.events.emit(MODE_UNREGISTERED, mode_id=mode_id)
        return True

    def get(self, mode_id: str) -> ModeDescriptor | None:
        return self._modes.get(mode_id)

    def list(self) -> list[ModeDescriptor]:
        """Enabled modes, in registration order."""
        return [d for d in self._modes.values() if d.enabled]

    def list_all(self) -> list[ModeDescriptor]:
        return list(self._modes.values())

    def is_available(self, mode_id: str) -> bool:
        descriptor = self._modes.get(mode_id)
        return descriptor is not None and descriptor.enabled

    def __contains__(self, mode_id: object) -> bool:
        return mode_id in self._modes

    def __len__(self) -> int:
        return len(self._modes)


# =============================================================================
# Bundled modes
# =============================================================================


@dataclass(frozen=True)
class BuiltinMode:
    id: str
    label: str
    factory: ModeFactory
    flag: str
    dependencies: tuple[Dependency, ...] = ()
    description: str = ""


# Populated by @builtin_mode as the builtin package is imported
BUILTIN_MODES: dict[str, BuiltinMode] = {}


def builtin_mode(
    mode_id: str,
    *,
    label: str,
    flag: str,
    dependencies: tuple[Dependency, ...] = (),
    description: str = "",
):
    """Decorator to add a LearningMode subclass to the bundled catalog."""
    def decorator(cls):
        BUILTIN_MODES[mode_id] = BuiltinMode(
            id=mode_id,
            label=label,
            factory=cls,
            flag=flag,
            dependencies=dependencies,
            description=description,
        )
        return cls
    return decorator


def register_builtin_modes(
    registry: ModeRegistry,
    flags: FeatureFlags | None = None,
    surface: Console | None = None,
) -> list[ModeDescriptor]:
    """Register every bundled mode. Flags switch individual modes off."""
    # Importing the package runs the @builtin_mode decorators
    from . import builtin  # noqa: F401

    descriptors = []
    for mode in BUILTIN_MODES.values():
        descriptors.append(
            registry.register(
                mode.id,
                mode.factory,
                label=mode.label,
                dependencies=mode.dependencies,
                surface=surface,
                enabled=flags.is_enabled(mode.flag) if flags is not None else True,
                description=mode.description,
            )
        )
    return descriptors
