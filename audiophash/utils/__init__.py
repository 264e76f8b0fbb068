"""
Utility modules for configuration, logging, and error handling.
"""

from audiophash.utils.errors import (
    AudioHashError,
    ConfigurationError,
    DecodeError,
    FormatError,
    InputError,
    InvalidParameterError,
    UnsupportedFormatError,
)
from audiophash.utils.logging import get_logger, setup_logging, JSONFormatter
from audiophash.utils.config import ConfigManager, load_config

__all__ = [
    "AudioHashError",
    "ConfigurationError",
    "DecodeError",
    "FormatError",
    "InputError",
    "InvalidParameterError",
    "UnsupportedFormatError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
]
