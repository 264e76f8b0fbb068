"""
Logging setup for audiophash.

Library modules only emit records through their module loggers. The CLI,
or an application embedding the library, decides where records go by
calling setup_logging() once at startup.

Pipeline stage statistics travel on records as extra={"stats": {...}}; the
JSON formatter writes them out as a nested object.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Union

from audiophash.utils.errors import ConfigurationError

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Record attribute -> JSON key
_JSON_FIELDS = (
    ("levelname", "level"),
    ("name", "logger"),
    ("module", "module"),
    ("funcName", "function"),
    ("lineno", "line"),
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, suitable for log files and collectors."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "message": record.getMessage(),
        }
        for attr, key in _JSON_FIELDS:
            entry[key] = getattr(record, attr)

        stats = getattr(record, "stats", None)
        if stats:
            entry["stats"] = stats
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter that colors the level name with ANSI escapes."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # The record is shared with other handlers; put the name back
        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def resolve_level(level: Union[str, int]) -> int:
    """
    Numeric log level for a name such as "debug" or an int level.

    Raises:
        ConfigurationError: If the name is not a standard level
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ConfigurationError(f"Unknown log level: {level}", config_key="logging.level")
    return value


def _console_formatter(log_format: str, colored: bool) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    if log_format != "text":
        raise ConfigurationError(
            f"Unknown log format: {log_format} (expected json or text)",
            config_key="logging.format",
        )
    if colored:
        return ColoredFormatter(TEXT_FORMAT, TEXT_DATEFMT)
    return logging.Formatter(TEXT_FORMAT, TEXT_DATEFMT)


def setup_logging(
    level: Union[str, int] = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger, replacing any handlers it already has.

    Console output goes to stderr; stdout carries fingerprints and
    comparison results only. The optional rotating log file is always JSON.

    Args:
        level: Level name or number
        log_format: Console format, "json" or "text"
        log_file: Path of a rotating log file
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
        console_enabled: Log to stderr
        colored: Color level names in text output

    Raises:
        ConfigurationError: On an unknown level or format
    """
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_console_formatter(log_format, colored))
        root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
        rotating.setFormatter(JSONFormatter())
        root.addHandler(rotating)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module or component."""
    return logging.getLogger(name)
