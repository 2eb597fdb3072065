"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli_env(corpus_file):
    """Environment pointing the CLI at a sample corpus and an in-memory store."""
    env = dict(os.environ)
    env.update(
        VOCAB_CORPUS_PATH=str(corpus_file),
        VOCAB_STORE_BACKEND="memory",
        VOCAB_PAGE_SIZE="3",
    )
    env.pop("VOCAB_CORPUS_URL", None)
    return env


def run_cli_command(command: str, env: dict | None = None, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m src.cli.main')
        env: Environment for the subprocess
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m src.cli.main {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "vocab" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize("command", ["sessions", "progress", "rate", "due", "stats", "modes", "study", "reset"])
    def test_command_help(self, command):
        """Every command has help."""
        code, stdout, stderr = run_cli_command(f"{command} --help")

        assert code == 0, f"{command} help failed: {stderr}"


class TestCLICommands:
    """Commands run against the sample corpus."""

    def test_sessions_runs(self, cli_env):
        code, stdout, stderr = run_cli_command("sessions greetings", cli_env)

        assert code == 0, f"Sessions failed with: {stderr}"
        assert "greetings_session_1" in stdout

    def test_progress_runs(self, cli_env):
        code, stdout, stderr = run_cli_command("progress", cli_env)

        assert code == 0, f"Progress failed with: {stderr}"
        assert "Recommended level" in stdout

    def test_modes_runs(self, cli_env):
        code, stdout, stderr = run_cli_command("modes", cli_env)

        assert code == 0, f"Modes failed with: {stderr}"
        assert "flashcard" in stdout

    def test_unknown_category_fails_gracefully(self, cli_env):
        code, stdout, stderr = run_cli_command("sessions nowhere", cli_env)

        assert code == 1
        assert "Error" in stdout
