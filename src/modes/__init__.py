"""
Learning modes: registry, lifecycle manager, event bus and the bundled modes.
"""

from .base import LearningMode, ModeContext, ModeUsage
from .events import EVENT_NAMES, Event, EventBus
from .manager import ActiveMode, LifecycleState, ModeLifecycleManager
from .metrics import ModeMetrics, ModeMetricsStore
from .registry import (
    BUILTIN_MODES,
    ModeDescriptor,
    ModeRegistry,
    builtin_mode,
    register_builtin_modes,
)

__all__ = [
    "LearningMode",
    "ModeContext",
    "ModeUsage",
    "Event",
    "EventBus",
    "EVENT_NAMES",
    "ModeLifecycleManager",
    "LifecycleState",
    "ActiveMode",
    "ModeMetrics",
    "ModeMetricsStore",
    "ModeRegistry",
    "ModeDescriptor",
    "builtin_mode",
    "register_builtin_modes",
    "BUILTIN_MODES",
]
