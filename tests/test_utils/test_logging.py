"""Tests for logging setup and formatters."""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest

from audiophash.utils.errors import ConfigurationError
from audiophash.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    get_logger,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop handlers installed by setup_logging() and restore the root level."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def make_record(message="hello", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="audiophash.test",
        level=level,
        pathname=__file__,
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
        func="make_record",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_fields(self):
        data = json.loads(JSONFormatter().format(make_record("fingerprint ready")))

        assert data["message"] == "fingerprint ready"
        assert data["level"] == "INFO"
        assert data["logger"] == "audiophash.test"
        assert data["line"] == 42
        assert "timestamp" in data
        assert "stats" not in data

    def test_stage_stats_included(self):
        record = make_record("[phash] frame: frames=85", stats={"stage": "frame", "frames": 85})
        data = json.loads(JSONFormatter().format(record))

        assert data["stats"] == {"stage": "frame", "frames": 85}

    def test_exception_included(self):
        try:
            raise ValueError("bad frame")
        except ValueError:
            record = make_record("failed", level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad frame" in data["exception"]

    def test_non_serializable_stats(self):
        record = make_record("x", stats={"path": object()})
        data = json.loads(JSONFormatter().format(record))
        assert isinstance(data["stats"]["path"], str)


class TestColoredFormatter:
    def test_colors_level_name(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s")
        output = formatter.format(make_record("hi", level=logging.WARNING))

        assert output.startswith("\033[33mWARNING\033[0m")
        assert output.endswith("hi")

    def test_record_is_left_unchanged(self):
        record = make_record("hi")
        ColoredFormatter("%(levelname)s").format(record)
        assert record.levelname == "INFO"


class TestResolveLevel:
    @pytest.mark.parametrize("name, expected", [("debug", 10), ("INFO", 20), (" warning ", 30), (40, 40)])
    def test_known_levels(self, name, expected):
        assert resolve_level(name) == expected

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_level("chatty")
        assert exc_info.value.config_key == "logging.level"


class TestSetupLogging:
    def test_console_handler_on_stderr(self):
        setup_logging(level="DEBUG", log_format="text", colored=False)
        root = logging.getLogger()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr

    def test_json_console(self):
        setup_logging(level="info", log_format="json")
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_colored_text(self):
        setup_logging(log_format="text", colored=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, ColoredFormatter)

    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "phash.log"
        setup_logging(level="INFO", log_format="text", log_file=str(log_file), console_enabled=False)

        get_logger("audiophash.test").info("to file", extra={"stats": {"frames": 3}})
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "to file"
        assert data["stats"] == {"frames": 3}

    def test_unknown_format(self):
        with pytest.raises(ConfigurationError) as exc_info:
            setup_logging(log_format="xml")
        assert exc_info.value.config_key == "logging.format"

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError):
            setup_logging(level="LOUD")

    def test_no_console(self):
        setup_logging(console_enabled=False)
        assert logging.getLogger().handlers == []

    def test_get_logger(self):
        assert get_logger("audiophash.core") is logging.getLogger("audiophash.core")
