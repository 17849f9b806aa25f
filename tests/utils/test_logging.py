"""Tests for the logging utility module."""

import json
import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_default(self):
        """Test configure_logging with defaults."""
        from ui_inspector.utils.logging import configure_logging

        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_debug_level(self):
        """Test configure_logging with DEBUG level."""
        from ui_inspector.utils.logging import configure_logging

        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_json_format(self, capsys):
        """Test configure_logging with JSON output."""
        from ui_inspector.utils.logging import configure_logging, get_logger

        configure_logging(json_format=True)
        get_logger("json_test").info("Snapshot captured", viewport="mobile")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Snapshot captured"
        assert event["viewport"] == "mobile"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_configure_logging_no_timestamp(self, capsys):
        """Test configure_logging without timestamps."""
        from ui_inspector.utils.logging import configure_logging, get_logger

        configure_logging(json_format=True, include_timestamp=False)
        get_logger("no_ts").info("Report saved")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert "timestamp" not in event

    def test_level_filters_messages(self, capsys):
        """Test that messages below the configured level are dropped."""
        from ui_inspector.utils.logging import configure_logging, get_logger

        configure_logging(level="WARNING", json_format=True)
        logger = get_logger("filtered")
        logger.info("hidden")
        logger.warning("shown")

        output = capsys.readouterr().out
        assert "hidden" not in output
        assert "shown" in output


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_with_context(self, capsys):
        """Test get_logger binds context."""
        from ui_inspector.utils.logging import configure_logging, get_logger

        configure_logging(json_format=True)
        get_logger("ctx", component="issue_detector").info("Snapshot analyzed")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert event["component"] == "issue_detector"


class TestContextVars:
    """Tests for contextvars merged into log events."""

    def test_bound_contextvars_merged(self, capsys):
        """Test scoped contextvars appear only inside the block."""
        from ui_inspector.utils.logging import configure_logging, get_logger

        configure_logging(json_format=True)
        logger = get_logger("scoped")

        with structlog.contextvars.bound_contextvars(viewport="tablet"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = [
            json.loads(line) for line in capsys.readouterr().out.strip().splitlines()[-2:]
        ]
        assert inside["viewport"] == "tablet"
        assert "viewport" not in outside

class TestLogOperation:
    """Tests for log_operation context manager."""

    def test_log_operation_success(self):
        """Test log_operation on success."""
        from ui_inspector.utils.logging import configure_logging, log_operation

        configure_logging()

        with log_operation("inspect_app", url="http://localhost:8888") as op:
            op["issues"] = 3

        assert op["success"] is True
        assert op["error"] is None
        assert op["issues"] == 3

    def test_log_operation_with_logger(self):
        """Test log_operation with custom logger."""
        from ui_inspector.utils.logging import configure_logging, get_logger, log_operation

        configure_logging()
        logger = get_logger("custom")

        with log_operation("inspect_app", logger=logger) as op:
            pass

        assert op["success"] is True

    def test_log_operation_failure(self):
        """Test log_operation on failure."""
        from ui_inspector.utils.logging import configure_logging, log_operation

        configure_logging()

        with pytest.raises(RuntimeError):
            with log_operation("inspect_app") as op:
                raise RuntimeError("Browser crashed")

        assert op["success"] is False
        assert op["error"] == "Browser crashed"
