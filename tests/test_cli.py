"""Tests for CLI commands."""

import json
import logging
from pathlib import Path

import pytest

from recollect.cli.app import app


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def write_journal(db_path: Path, key: str, record: dict) -> None:
    sessions = db_path / "sessions"
    sessions.mkdir(parents=True, exist_ok=True)
    (sessions / f"{key}.json").write_text(json.dumps(record))


@pytest.fixture
def populated_db(tmp_path: Path) -> Path:
    db_path = tmp_path / "memory"
    write_journal(
        db_path,
        "agent_main",
        {
            "processedIndex": 1,
            "cleanContext": [
                {"role": "user", "text": "I prefer TypeScript"},
                {"role": "assistant", "text": "Noted, TypeScript it is."},
            ],
            "memoryLogs": [
                {
                    "deltaIndex": 1,
                    "action": "store",
                    "memoryId": "f3a1c2d4-0000-4000-8000-000000000000",
                    "text": "I prefer TypeScript",
                    "timestamp": 1700000000000,
                }
            ],
        },
    )
    write_journal(
        db_path,
        "other",
        {"processedIndex": 0, "cleanContext": [], "memoryLogs": []},
    )
    return db_path


class TestJournalList:
    """Tests for 'recollect journal list'."""

    def test_lists_sessions(self, cli_runner, populated_db):
        result = cli_runner.invoke(
            app, ["journal", "list", "--db-path", str(populated_db)]
        )
        assert result.exit_code == 0
        assert "agent_main" in result.stdout
        assert "other" in result.stdout

    def test_empty(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["journal", "list", "--db-path", str(tmp_path / "empty")]
        )
        assert result.exit_code == 0
        assert "No journals" in result.stdout

    def test_reports_quarantined_files(self, cli_runner, populated_db):
        (populated_db / "sessions" / "x.corrupt-1.json").write_text("{")
        result = cli_runner.invoke(
            app, ["journal", "list", "--db-path", str(populated_db)]
        )
        assert result.exit_code == 0
        assert "quarantined" in result.stdout

    def test_uses_configured_db_path(self, cli_runner, populated_db, tmp_path):
        config = tmp_path / "config.toml"
        config.write_text(f'db_path = "{populated_db}"\n')
        result = cli_runner.invoke(app, ["--config", str(config), "journal", "list"])
        assert result.exit_code == 0
        assert "agent_main" in result.stdout

    def test_missing_config_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["--config", str(tmp_path / "missing.toml"), "journal", "list"]
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestJournalShow:
    """Tests for 'recollect journal show'."""

    def test_shows_context_and_pending(self, cli_runner, populated_db):
        result = cli_runner.invoke(
            app, ["journal", "show", "agent:main", "--db-path", str(populated_db)]
        )
        assert result.exit_code == 0
        assert "I prefer TypeScript" in result.stdout
        assert "pending" in result.stdout
        assert "Memory operations" not in result.stdout

    def test_shows_logs(self, cli_runner, populated_db):
        result = cli_runner.invoke(
            app,
            ["journal", "show", "agent_main", "--logs", "--db-path", str(populated_db)],
        )
        assert result.exit_code == 0
        assert "Memory operations" in result.stdout
        assert "f3a1c2d4" in result.stdout

    def test_no_operations(self, cli_runner, populated_db):
        result = cli_runner.invoke(
            app, ["journal", "show", "other", "-l", "--db-path", str(populated_db)]
        )
        assert result.exit_code == 0
        assert "No memory operations recorded" in result.stdout

    def test_unknown_session(self, cli_runner, populated_db):
        result = cli_runner.invoke(
            app, ["journal", "show", "nope", "--db-path", str(populated_db)]
        )
        assert result.exit_code == 1
        assert "No journal for session" in result.stdout
