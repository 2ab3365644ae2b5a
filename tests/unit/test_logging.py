"""Unit tests for structured logging setup."""

import json

import pytest
import structlog

from blocknote.utils.logging import bind_command, configure_logging, get_logger, resolve_log_level


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestResolveLogLevel:
    """Test level selection."""

    def test_default_is_info(self, monkeypatch):
        monkeypatch.delenv("BLOCKNOTE_LOG_LEVEL", raising=False)

        assert resolve_log_level() == "INFO"

    def test_env_var_is_used(self, monkeypatch):
        monkeypatch.setenv("BLOCKNOTE_LOG_LEVEL", "debug")

        assert resolve_log_level() == "DEBUG"

    def test_explicit_level_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("BLOCKNOTE_LOG_LEVEL", "DEBUG")

        assert resolve_log_level("error") == "ERROR"

    def test_unknown_level_falls_back_to_info(self):
        assert resolve_log_level("chatty") == "INFO"


class TestConfigureLogging:
    """Test the JSON log file."""

    def test_writes_json_lines_with_command_context(self, tmp_path):
        log_file = configure_logging(log_dir=tmp_path / "logs", level="DEBUG")
        bind_command("sync", offline=True)

        get_logger("blocknote.test").debug("sync_scheduled", delay=0.5)

        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert log_file == tmp_path / "logs" / "blocknote.log"
        assert entry["event"] == "sync_scheduled"
        assert entry["level"] == "debug"
        assert entry["command"] == "sync"
        assert entry["offline"] is True
        assert "timestamp" in entry

    def test_events_below_level_are_dropped(self, tmp_path):
        log_file = configure_logging(log_dir=tmp_path, level="WARNING")

        logger = get_logger("blocknote.test")
        logger.info("sync_completed", upserted=1)
        logger.warning("remote_unreachable")

        events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
        assert events == ["remote_unreachable"]
