"""
Shared fakes for the learning mode tests.
"""
import pytest

from src.modes.base import LearningMode


class RecordingMode(LearningMode):
    """
    Mode that records its hook calls.

    options["fail"] names a hook to raise from; options["on_init"] is an
    async callable run inside init().
    """

    instances: list = []

    def __init__(self, context):
        super().__init__(context)
        self.calls = []
        type(self).instances.append(self)

    def _maybe_fail(self, hook):
        if self.options.get("fail") == hook:
            raise RuntimeError(f"{hook} failed")

    async def init(self):
        self.calls.append("init")
        on_init = self.options.get("on_init")
        if on_init is not None:
            await on_init(self)
        self._maybe_fail("init")

    def render(self):
        self.calls.append("render")
        self._maybe_fail("render")

    async def cleanup(self):
        self.calls.append("cleanup")
        self._maybe_fail("cleanup")


@pytest.fixture
def recording_mode():
    """A fresh RecordingMode subclass with its own instance list."""

    class Mode(RecordingMode):
        instances = []

    return Mode
