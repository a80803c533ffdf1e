"""Tests for JSON logging setup."""

import json
import logging

from snapinspect.logging_config import (
    QUIET_LOGGERS,
    JSONFormatter,
    build_logging_config,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="snapinspect.graph.builder",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=12,
        msg="Synthesized ghost node %s",
        args=("task:gone",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_fields(self):
        """Test the rendered message and record metadata."""
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["message"] == "Synthesized ghost node task:gone"
        assert entry["level"] == "DEBUG"
        assert entry["logger"] == "snapinspect.graph.builder"
        assert entry["line"] == 12
        assert "context" not in entry

    def test_context_copied(self):
        """Test that the extra context mapping is carried through."""
        entry = json.loads(
            JSONFormatter().format(_record(context={"missing_id": "task:gone", "side": "dst"}))
        )

        assert entry["context"] == {"missing_id": "task:gone", "side": "dst"}


class TestBuildLoggingConfig:
    """Tests for build_logging_config."""

    def test_console_only_without_file(self):
        """Test that no file handler is configured without a path."""
        config = build_logging_config("debug", None)

        assert list(config["handlers"]) == ["console"]
        assert config["root"] == {"level": "DEBUG", "handlers": ["console"]}

    def test_file_handler(self, tmp_path):
        """Test the rotating file handler."""
        log_file = str(tmp_path / "app.log")
        config = build_logging_config("INFO", log_file)

        assert config["handlers"]["file"]["filename"] == log_file
        assert config["root"]["handlers"] == ["console", "file"]

    def test_library_loggers_quieted(self):
        """Test that chatty library loggers are raised to WARNING."""
        config = build_logging_config("DEBUG", None)

        for name in QUIET_LOGGERS:
            assert config["loggers"][name] == {"level": "WARNING"}
