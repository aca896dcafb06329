"""Tests for orchestrix logging module."""
import json
import pytest
import time_machine
from orchestrix.logging import HookLogger


class TestHookLogger:
    """Test suite for HookLogger class."""

    def test_log_directory_creation(self, tmp_path):
        """Test that the log file's directory is created if it doesn't exist."""
        log_file = tmp_path / "subdir" / "logs" / "hook.log"
        assert not log_file.parent.exists()

        logger = HookLogger(log_file=log_file)
        logger.log_event("stop-hook", "test message", {})

        assert log_file.exists()

    def test_defaults_to_configured_log_file(self, isolated_config):
        logger = HookLogger()
        assert str(logger.log_file) == isolated_config['hook_log_file']

    @time_machine.travel("2025-11-10 15:30:45", tick=False)
    def test_hybrid_format_structure(self, hook_logger, hook_log):
        """Test that log entries follow hybrid format: readable | JSON."""
        hook_logger.log_event("stop-hook", "Captured output from window dev", {
            "session": "u1-bp-a",
            "window": "dev",
            "chars": 1204,
        })

        log_line = hook_log.read_text().strip()

        # Check format: YYYY-MM-DD HH:MM:SS LEVEL [command] message | {json}
        assert log_line.startswith("2025-11-10 15:30:45 INFO")
        assert "[stop-hook]" in log_line
        assert "Captured output from window dev" in log_line

        json_part = log_line.split(" | ", 1)[1]
        data = json.loads(json_part)
        assert data["window"] == "dev"
        assert data["chars"] == 1204

    def test_entries_are_appended(self, hook_logger, hook_log):
        hook_logger.log_event("stop-hook", "first")
        hook_logger.log_event("stop-hook", "second")

        lines = hook_log.read_text().splitlines()
        assert len(lines) == 2
        assert "first" in lines[0]
        assert "second" in lines[1]

    def test_log_command_start(self, hook_logger, hook_log):
        hook_logger.log_command_start("stop-hook", {"project_root": "/p"})
        assert "========== triggered ==========" in hook_log.read_text()

    def test_log_command_complete_with_outcome(self, hook_logger):
        hook_logger.log_command_complete("stop-hook", 42, {"outcome": "SENT"})

        entry = hook_logger.read_logs()[0]
        assert entry["message"] == "========== complete: SENT (42ms) =========="
        assert entry["data"]["duration_ms"] == 42

    def test_log_warning_level(self, hook_logger):
        hook_logger.log_warning("stop-hook", "falling back")
        assert hook_logger.read_logs()[0]["level"] == "WARN"

    def test_log_error_appends_reason(self, hook_logger):
        hook_logger.log_error("stop-hook", "Webhook failed (HTTP 500)", {"reason": "boom"})

        entry = hook_logger.read_logs()[0]
        assert entry["level"] == "ERROR"
        assert entry["message"] == "Webhook failed (HTTP 500): boom"

    def test_non_serializable_data_is_stringified(self, hook_logger, tmp_path):
        hook_logger.log_event("start", "paths", {"root": tmp_path})
        assert hook_logger.read_logs()[0]["data"]["root"] == str(tmp_path)

    def test_message_containing_separator(self, hook_logger):
        hook_logger.log_event("stop-hook", "a | b", {"k": 1})
        entry = hook_logger.read_logs()[0]
        assert entry["message"] == "a | b"
        assert entry["data"] == {"k": 1}


class TestReadLogs:
    @pytest.fixture
    def populated(self, hook_logger):
        hook_logger.log_event("start", "bootstrap begun")
        hook_logger.log_event("stop-hook", "context")
        hook_logger.log_warning("stop-hook", "fallback used")
        hook_logger.log_error("stop-hook", "send failed")
        return hook_logger

    def test_missing_file(self, tmp_path):
        assert HookLogger(log_file=tmp_path / "missing" / "x.log").read_logs() == []

    def test_newest_first(self, populated):
        messages = [e["message"] for e in populated.read_logs()]
        assert messages == ["send failed", "fallback used", "context", "bootstrap begun"]

    def test_limit(self, populated):
        assert len(populated.read_logs(limit=2)) == 2

    def test_command_filter(self, populated):
        entries = populated.read_logs(command_filter="start")
        assert [e["message"] for e in entries] == ["bootstrap begun"]

    def test_level_filter(self, populated):
        entries = populated.read_logs(level_filter="ERROR")
        assert [e["message"] for e in entries] == ["send failed"]

    def test_skips_unparseable_lines(self, populated, hook_log):
        with open(hook_log, "a") as f:
            f.write("not a log line\n")
        assert len(populated.read_logs()) == 4
