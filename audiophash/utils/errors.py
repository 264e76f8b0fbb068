"""
Custom exceptions for the audio perceptual hash library.

Every failure the pipeline can produce is one of these types, so callers
can tell a bad configuration from a malformed file from an input that is
simply too short to fingerprint.
"""

from typing import Any, Optional


class AudioHashError(Exception):
    """Base exception for all audiophash errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(AudioHashError):
    """Raised when pipeline configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message, details={"config_key": config_key})
        self.config_key = config_key


class FormatError(AudioHashError):
    """Raised when an audio container is malformed or unsupported."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field})
        self.field = field


class UnsupportedFormatError(FormatError):
    """Raised when no decoder is registered for the requested format."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message, field="format")
        self.format = format
        self.details = {"format": format}


class InputError(AudioHashError):
    """
    Raised when input is well-formed but unusable.

    Covers empty byte buffers, empty sample sequences and audio shorter
    than a single analysis frame.
    """

    def __init__(self, message: str, size: Optional[int] = None):
        super().__init__(message, details={"size": size})
        self.size = size


class InvalidParameterError(AudioHashError):
    """Raised when a processing stage receives an invalid argument."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message, details={"parameter": parameter})
        self.parameter = parameter


class DecodeError(AudioHashError):
    """Raised when a hexadecimal fingerprint cannot be decoded."""

    def __init__(self, message: str, value: Optional[str] = None):
        super().__init__(message, details={"value": value})
        self.value = value
