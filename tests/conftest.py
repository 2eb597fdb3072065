"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import json
import sys
from datetime import datetime, timedelta, timezone
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.lexicon.corpus import VocabularyCorpus  # noqa: E402
from src.storage import MemoryStore  # noqa: E402

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Settable clock for scheduler and manager tests."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


SAMPLE_CORPUS = {
    "greetings": {
        "name": "Greetings",
        "items": [
            {"id": "g1", "text": "merhaba", "translation": "hello", "tier": "A1", "pronunciation": "mer-ha-ba",
             "example": "Merhaba, nasılsın?"},
            {"id": "g2", "text": "günaydın", "translation": "good morning", "tier": "A1"},
            {"id": "g3", "text": "iyi akşamlar", "translation": "good evening", "tier": "A2"},
            {"id": "g4", "text": "hoşça kal", "translation": "goodbye", "tier": "A1"},
            {"id": "g5", "text": "teşekkürler", "translation": "thanks", "tier": "A2"},
            {"id": "g6", "text": "rica ederim", "translation": "you're welcome", "tier": "B1"},
            {"id": "g7", "text": "nasılsınız", "translation": "how are you", "tier": "A2"},
        ],
    },
    "food": {
        "name": "Food",
        "items": [
            {"turkish": "ekmek", "arabic": "خبز", "english": "bread", "difficultyLevel": "A1",
             "turkishSentence": "Ekmek taze mi?"},
            {"turkish": "su", "arabic": "ماء", "english": "water", "difficultyLevel": "A1"},
            {"turkish": "çorba", "arabic": "حساء", "english": "soup", "difficultyLevel": "A2"},
        ],
    },
}


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def corpus_data():
    return json.loads(json.dumps(SAMPLE_CORPUS))


@pytest.fixture
def corpus(corpus_data):
    return VocabularyCorpus.from_mapping(corpus_data)


@pytest.fixture
def corpus_file(tmp_path, corpus_data):
    path = tmp_path / "vocabulary.json"
    path.write_text(json.dumps(corpus_data, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def surface():
    """Console that records output instead of writing to a terminal."""
    return Console(file=StringIO(), record=True, width=100)
