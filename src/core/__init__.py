"""
Core Module - Shared error taxonomy, feature flags and engine wiring.

Components:
- errors: EngineError and its subclasses, raised across every package
- feature_flags: Mode flags and runtime capabilities for dependency checks
- engine: build_engine() assembles store, corpus, scheduler and modes

Design Principle:
Domain packages (src/lexicon/, src/sessions/, src/review/, src/modes/)
import their errors from src/core/ rather than defining their own.
The engine module is imported directly (src.core.engine) since it
depends on every domain package.
"""

from src.core.errors import (
    DependencyUnmet,
    Disabled,
    EngineError,
    InvalidArgument,
    LifecycleError,
    MissingData,
    NotFound,
    StoreUnavailable,
)
from src.core.feature_flags import FeatureFlags

__all__ = [
    # Errors
    "EngineError",
    "NotFound",
    "Disabled",
    "DependencyUnmet",
    "MissingData",
    "InvalidArgument",
    "StoreUnavailable",
    "LifecycleError",
    # Flags
    "FeatureFlags",
]
