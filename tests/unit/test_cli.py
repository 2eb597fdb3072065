"""
Unit tests for the vocab CLI, run in-process with typer's CliRunner.
"""

import pytest
from typer.testing import CliRunner

from config import get_settings
from src.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_settings(monkeypatch, corpus_file, tmp_path):
    monkeypatch.setenv("VOCAB_CORPUS_PATH", str(corpus_file))
    monkeypatch.setenv("VOCAB_STORE_BACKEND", "json")
    monkeypatch.setenv("VOCAB_STORE_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("VOCAB_PAGE_SIZE", "3")
    monkeypatch.delenv("VOCAB_CORPUS_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def invoke(*args):
    return runner.invoke(app, list(args))


class TestSessionCommands:
    def test_sessions_lists_pages(self):
        result = invoke("sessions", "greetings")

        assert result.exit_code == 0, result.output
        for number in (1, 2, 3):
            assert f"greetings_session_{number}" in result.output
        assert "next" in result.output
        assert "locked" in result.output

    def test_sessions_unknown_category(self):
        result = invoke("sessions", "nowhere")

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_progress_all_categories(self):
        result = invoke("progress")

        assert result.exit_code == 0, result.output
        assert "greetings" in result.output
        assert "food" in result.output
        assert "Recommended level: A1" in result.output

    def test_progress_one_category(self):
        result = invoke("progress", "food")

        assert result.exit_code == 0, result.output
        assert "greetings" not in result.output

    def test_no_corpus_configured(self, monkeypatch):
        monkeypatch.delenv("VOCAB_CORPUS_PATH")
        get_settings.cache_clear()

        result = invoke("sessions", "greetings")

        assert result.exit_code == 1
        assert "VOCAB_CORPUS_PATH" in result.output


class TestReviewCommands:
    def test_rate_then_stats(self):
        result = invoke("rate", "g1", "hard")
        assert result.exit_code == 0, result.output
        assert "review #1" in result.output

        result = invoke("stats")
        assert result.exit_code == 0, result.output
        assert "hard" in result.output

    def test_rate_persists_between_runs(self, tmp_path):
        invoke("rate", "g1", "easy")
        invoke("rate", "g1", "easy")

        assert (tmp_path / "store" / "word_reviews.json").exists()
        assert "review #3" in invoke("rate", "g1", "easy").output

    def test_rate_invalid_rating(self):
        result = invoke("rate", "g1", "impossible")

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_due_when_nothing_due(self):
        invoke("rate", "g1", "hard")

        result = invoke("due")

        assert result.exit_code == 0, result.output
        assert "Nothing due" in result.output

    def test_due_invalid_difficulty(self):
        result = invoke("due", "--difficulty", "sideways")

        assert result.exit_code == 1

    def test_reset_with_yes(self):
        invoke("rate", "g1", "hard")
        invoke("rate", "g2", "easy")

        result = invoke("reset", "--yes")

        assert result.exit_code == 0, result.output
        assert "Reset 2 reviews and 0 completed sessions" in result.output

    def test_reset_declined(self):
        invoke("rate", "g1", "hard")

        result = runner.invoke(app, ["reset"], input="n\n")

        assert result.exit_code == 0
        assert "reviews and" not in result.output
        assert "review #2" in invoke("rate", "g1", "hard").output


class TestModeCommands:
    def test_modes_marks_recommendation(self):
        result = invoke("modes")

        assert result.exit_code == 0, result.output
        for mode_id in ("flashcard", "phrase", "quiz", "review", "examine"):
            assert mode_id in result.output
        assert "recommended" in result.output

    def test_study_examine_session(self):
        result = invoke("study", "examine", "--session", "greetings_session_1")

        assert result.exit_code == 0, result.output
        assert "merhaba" in result.output
        assert "günaydın" in result.output

    def test_study_examine_category(self):
        result = invoke("study", "examine", "--category", "food")

        assert result.exit_code == 0, result.output
        assert "ekmek" in result.output

    def test_study_unknown_mode(self):
        result = invoke("study", "dance")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_study_session_and_category_conflict(self):
        result = invoke("study", "examine", "-s", "greetings_session_1", "-c", "food")

        assert result.exit_code == 1
