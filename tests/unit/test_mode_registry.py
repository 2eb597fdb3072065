"""
Unit tests for the mode registry and the event bus.
"""

from unittest.mock import MagicMock

import pytest

from src.core.errors import InvalidArgument
from src.core.feature_flags import FeatureFlags
from src.modes.events import EventBus
from src.modes.manager import ModeLifecycleManager
from src.modes.registry import BUILTIN_MODES, ModeRegistry, register_builtin_modes


class TestEventBus:
    def test_emit_calls_handlers_in_order(self):
        bus = EventBus()
        calls = []
        bus.on("modeStarted", lambda e: calls.append(("first", e["mode_id"])))
        bus.on("modeStarted", lambda e: calls.append(("second", e["mode_id"])))

        event = bus.emit("modeStarted", mode_id="quiz")

        assert calls == [("first", "quiz"), ("second", "quiz")]
        assert event.name == "modeStarted"

    def test_failing_handler_does_not_reach_emitter(self):
        bus = EventBus()
        after = MagicMock()

        def boom(event):
            raise RuntimeError("handler bug")

        bus.on("modeStopped", boom)
        bus.on("modeStopped", after)
        bus.emit("modeStopped", mode_id="x")

        after.assert_called_once()

    def test_off(self):
        bus = EventBus()
        handler = MagicMock()
        bus.on("modeError", handler)

        assert bus.off("modeError", handler) is True
        assert bus.off("modeError", handler) is False
        bus.emit("modeError")
        handler.assert_not_called()


class TestModeRegistry:
    def test_register_and_get(self, recording_mode):
        registry = ModeRegistry()
        descriptor = registry.register("demo", recording_mode, label="Demo", description="d")

        assert registry.get("demo") is descriptor
        assert descriptor.label == "Demo"
        assert registry.is_available("demo")

    def test_register_emits_event(self, recording_mode):
        registry = ModeRegistry()
        seen = []
        registry.events.on("modeRegistered", lambda e: seen.append(e["mode_id"]))

        registry.register("demo", recording_mode)

        assert seen == ["demo"]

    def test_last_registration_wins(self, recording_mode):
        registry = ModeRegistry()
        registry.register("demo", recording_mode, label="Old")
        registry.register("demo", recording_mode, label="New")

        assert registry.get("demo").label == "New"
        assert len(registry) == 1

    def test_list_excludes_disabled(self, recording_mode):
        registry = ModeRegistry()
        registry.register("on", recording_mode)
        registry.register("off", recording_mode, enabled=False)

        assert [d.id for d in registry.list()] == ["on"]
        assert [d.id for d in registry.list_all()] == ["on", "off"]
        assert registry.is_available("off") is False

    def test_get_unknown(self):
        assert ModeRegistry().get("nope") is None

    def test_invalid_registration(self, recording_mode):
        registry = ModeRegistry()
        with pytest.raises(InvalidArgument):
            registry.register("", recording_mode)
        with pytest.raises(InvalidArgument):
            registry.register("x", "not callable")

    @pytest.mark.asyncio
    async def test_unregister_unknown_is_noop(self):
        assert await ModeRegistry().unregister("nope") is False

    @pytest.mark.asyncio
    async def test_unregister_emits_event(self, recording_mode):
        registry = ModeRegistry()
        registry.register("demo", recording_mode)
        seen = []
        registry.events.on("modeUnregistered", lambda e: seen.append(e["mode_id"]))

        assert await registry.unregister("demo") is True
        assert seen == ["demo"]
        assert registry.get("demo") is None

    @pytest.mark.asyncio
    async def test_unregister_active_mode_stops_it_first(self, recording_mode):
        registry = ModeRegistry()
        registry.register("demo", recording_mode)
        manager = ModeLifecycleManager(registry)
        names = []
        for name in ("modeStopped", "modeUnregistered"):
            registry.events.on(name, lambda e: names.append(e.name))

        instance = await manager.start("demo", {"words": []})
        await registry.unregister("demo")

        assert names == ["modeStopped", "modeUnregistered"]
        assert instance.calls[-1] == "cleanup"
        assert manager.current() is None


class TestBuiltinModes:
    def test_catalog_has_bundled_modes(self):
        registry = ModeRegistry()
        register_builtin_modes(registry)

        assert {"flashcard", "phrase", "quiz", "review", "examine"} <= set(BUILTIN_MODES)
        assert [d.id for d in registry.list()] == list(BUILTIN_MODES)
        assert registry.get("review").dependencies == ("review_scheduler",)

    def test_flags_disable_modes(self, monkeypatch):
        monkeypatch.setenv("VOCAB_QUIZ", "false")
        registry = ModeRegistry()
        register_builtin_modes(registry, flags=FeatureFlags())

        assert registry.get("quiz").enabled is False
        assert "quiz" not in [d.id for d in registry.list()]

    def test_registries_are_independent(self):
        first, second = ModeRegistry(), ModeRegistry()
        register_builtin_modes(first)

        assert len(first) == 5
        assert len(second) == 0
