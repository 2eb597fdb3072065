"""
Unit tests for the session catalog and session completion progress.
"""

import pytest

from src.core.errors import EngineError, NotFound
from src.modes.events import PROGRESS_UPDATED, SESSION_COMPLETED, EventBus
from src.sessions.catalog import SessionCatalog
from src.sessions.progress import SessionProgressStore
from src.storage import COMPLETED_SESSIONS_KEY, MemoryStore


@pytest.fixture
def catalog(corpus):
    return SessionCatalog(corpus, page_size=3)


@pytest.fixture
def progress(store, catalog, clock):
    return SessionProgressStore(store, catalog=catalog, clock=clock)


class TestSessionCatalog:
    def test_sessions_for_category(self, catalog):
        sessions = catalog.sessions_for("greetings")

        assert [s.size for s in sessions] == [3, 3, 1]
        assert sessions[0].item_ids == ["g2", "g4", "g1"]
        assert sessions[2].tier_range == "B1"

    def test_unknown_category(self, catalog):
        with pytest.raises(NotFound):
            catalog.sessions_for("nope")

    def test_get_and_find(self, catalog):
        assert catalog.get("greetings_session_2").number == 2
        assert catalog.find("greetings_session_9") is None
        assert catalog.find("nope_session_1") is None
        assert catalog.find("garbage") is None
        with pytest.raises(NotFound):
            catalog.get("greetings_session_9")

    def test_category_with_underscores(self, corpus_data):
        from src.lexicon.corpus import VocabularyCorpus

        corpus_data["daily_life"] = corpus_data.pop("food")
        catalog = SessionCatalog(VocabularyCorpus.from_mapping(corpus_data), page_size=2)

        assert catalog.get("daily_life_session_2").category_id == "daily_life"

    def test_category_stats(self, catalog):
        stats = catalog.category_stats("greetings")

        assert stats["total_words"] == 7
        assert stats["total_sessions"] == 3
        assert stats["distribution"] == {"A1": 3, "A2": 3, "B1": 1}
        assert stats["progression"][0] == {"session": 1, "words": 3, "difficulty": "A1", "primary": "A1"}

    def test_all_sessions(self, catalog):
        assert set(catalog.all_sessions()) == {"greetings", "food"}


class TestCompletion:
    def test_nothing_completed_initially(self, progress):
        assert progress.is_completed("greetings_session_1") is False
        assert progress.completed_session_ids() == []

    def test_mark_completed(self, progress, store, clock):
        record = progress.mark_completed("greetings_session_1", ["g2", "g4", "g1"])

        assert record.category_id == "greetings"
        assert record.completed_at == clock.now
        assert record.word_count == 3
        assert progress.is_completed("greetings_session_1")
        assert store.get(COMPLETED_SESSIONS_KEY)[0]["id"] == "greetings_session_1"

    def test_mark_completed_is_idempotent(self, progress, clock):
        first = progress.mark_completed("greetings_session_1", ["g2"])
        clock.advance(hours=2)
        second = progress.mark_completed("greetings_session_1", ["g2", "g4"])

        assert second.completed_at == first.completed_at
        assert len(progress.records()) == 1

    def test_completed_ids_filtered_by_category(self, progress):
        progress.mark_completed("greetings_session_1")
        progress.mark_completed("food_session_1")

        assert progress.completed_session_ids("food") == ["food_session_1"]

    def test_prefix_categories_not_confused(self, store, clock):
        progress = SessionProgressStore(store, clock=clock)
        progress.mark_completed("food_session_1", category_id="food")
        progress.mark_completed("food_extra_session_1", category_id="food_extra")

        assert progress.completed_session_ids("food") == ["food_session_1"]

    def test_corrupt_value_means_no_progress(self, clock):
        store = MemoryStore()
        store.set_raw(COMPLETED_SESSIONS_KEY, "[[[")
        progress = SessionProgressStore(store, clock=clock)

        assert progress.records() == []
        assert progress.is_completed("x_session_1") is False

    def test_malformed_entries_skipped(self, clock):
        store = MemoryStore({COMPLETED_SESSIONS_KEY: [{"no": "id"}, "junk"]})
        progress = SessionProgressStore(store, clock=clock)
        progress.mark_completed("food_session_1")

        assert progress.completed_session_ids() == ["food_session_1"]

    def test_events_emitted(self, store, catalog, clock):
        events = EventBus()
        seen = []
        events.on(PROGRESS_UPDATED, lambda e: seen.append((e.name, e["completed_sessions"])))
        events.on(SESSION_COMPLETED, lambda e: seen.append((e.name, e["session_id"])))
        progress = SessionProgressStore(store, catalog=catalog, events=events, clock=clock)

        progress.mark_completed("greetings_session_1", ["g2"])
        progress.mark_completed("greetings_session_1", ["g2"])

        assert seen == [("progressUpdated", 1), ("sessionCompleted", "greetings_session_1")]


class TestUnlocking:
    def test_first_session_always_unlocked(self, progress, catalog):
        assert progress.is_unlocked(catalog.get("greetings_session_1"))
        assert not progress.is_unlocked(catalog.get("greetings_session_2"))

    def test_completing_previous_unlocks_next(self, progress, catalog):
        progress.mark_completed("greetings_session_1")
        assert progress.is_unlocked(catalog.get("greetings_session_2"))
        assert not progress.is_unlocked(catalog.get("greetings_session_3"))

    def test_next_session(self, progress):
        assert progress.next_session("greetings").number == 1
        progress.mark_completed("greetings_session_1")
        assert progress.next_session("greetings").number == 2

    def test_next_session_returns_first_when_all_done(self, progress):
        for n in (1, 2, 3):
            progress.mark_completed(f"greetings_session_{n}")
        assert progress.next_session("greetings").number == 1

    def test_available_sessions(self, progress):
        progress.mark_completed("greetings_session_1")
        assert [s.number for s in progress.available_sessions("greetings")] == [1, 2]

    def test_progress_for(self, progress):
        progress.mark_completed("greetings_session_1")
        result = progress.progress_for("greetings")

        assert (result.completed, result.total) == (1, 3)
        assert result.percentage == pytest.approx(33.3)

    def test_overall(self, progress):
        progress.mark_completed("greetings_session_1", ["g2", "g4", "g1"])
        progress.mark_completed("food_session_1", ["ekmek", "su", "çorba"])
        overall = progress.overall()

        assert overall["completed_sessions"] == 2
        assert overall["total_sessions"] == 4
        assert overall["words_studied"] == 6
        assert overall["percentage"] == 50.0

    def test_catalog_queries_need_a_catalog(self, store, clock):
        progress = SessionProgressStore(store, clock=clock)

        with pytest.raises(NotFound) as exc:
            progress.progress_for("greetings")
        assert isinstance(exc.value, EngineError)
        with pytest.raises(NotFound):
            progress.next_session("greetings")
