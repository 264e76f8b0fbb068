"""
Core data models for audiophash.

Immutable value types passed between pipeline stages, plus the pipeline
configuration and the fixed-width fingerprint codec.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import numpy as np

from audiophash.utils.errors import ConfigurationError, DecodeError, InvalidParameterError

FINGERPRINT_BITS: int = 64
HEX_LENGTH: int = FINGERPRINT_BITS // 4
MAX_FINGERPRINT: int = (1 << FINGERPRINT_BITS) - 1

DEFAULT_SAMPLE_RATE: int = 44100
DEFAULT_FRAME_SIZE: int = 2048
DEFAULT_NUM_BINS: int = 64

AGGREGATION_METHODS = ("median", "mean")

INT_FIELDS = ("target_sample_rate", "frame_size", "hop", "num_bins", "max_workers")

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{%d}" % HEX_LENGTH)


class AudioFormat(str, Enum):
    """Decode strategy tag."""

    RAW_PCM16_LE = "raw-pcm16-le"
    WAVE_PCM = "wave-pcm"
    SOUNDFILE = "soundfile"


@dataclass(frozen=True)
class AudioFormatDescriptor:
    """Format tag plus the parameters a container declared."""

    tag: AudioFormat
    channels: int = 1
    bits_per_sample: int = 16
    sample_rate: int = 0  # 0 = not declared by the container

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'tag': self.tag.value,
            'channels': self.channels,
            'bits_per_sample': self.bits_per_sample,
            'sample_rate': self.sample_rate,
        }


@dataclass(frozen=True)
class DecodedAudio:
    """Mono samples produced by a decoder."""

    samples: np.ndarray  # Shape: (n_samples,), float64
    sample_rate: int  # 0 means "already at the target rate"
    descriptor: AudioFormatDescriptor

    @property
    def duration(self) -> Optional[float]:
        """Duration in seconds, or None when the rate is unknown."""
        if self.sample_rate <= 0:
            return None
        return len(self.samples) / self.sample_rate


@dataclass
class PipelineConfig:
    """
    Parameters of the fingerprint pipeline.

    Zero-valued numeric fields mean "use the default"; validated() fills
    them in and rejects everything else that is out of range.
    """

    target_sample_rate: int = DEFAULT_SAMPLE_RATE
    frame_size: int = DEFAULT_FRAME_SIZE
    hop: int = 0  # 0 means frame_size // 2
    num_bins: int = DEFAULT_NUM_BINS
    aggregation: str = "median"
    log_compress: bool = True
    max_workers: int = 1

    def validated(self) -> PipelineConfig:
        """
        Return a copy with defaults filled in, after checking constraints.

        Returns:
            PipelineConfig: Fully populated configuration

        Raises:
            ConfigurationError: If any value is out of range or not an integer
        """
        for name in INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(
                    f"{name} must be an integer (got {value!r})", config_key=name
                )

        target_sample_rate = self.target_sample_rate or DEFAULT_SAMPLE_RATE
        frame_size = self.frame_size or DEFAULT_FRAME_SIZE
        hop = self.hop or frame_size // 2
        num_bins = self.num_bins or DEFAULT_NUM_BINS
        max_workers = self.max_workers or 1

        if target_sample_rate < 0:
            raise ConfigurationError(
                f"target_sample_rate must be > 0 (got {target_sample_rate})",
                config_key="target_sample_rate",
            )
        if not is_power_of_two(frame_size):
            raise ConfigurationError(
                f"frame_size must be a power of two (got {frame_size})",
                config_key="frame_size",
            )
        if hop < 1 or hop > frame_size:
            raise ConfigurationError(
                f"hop must be in 1..{frame_size} (got {hop})",
                config_key="hop",
            )
        if num_bins < 1 or num_bins > frame_size // 2:
            raise ConfigurationError(
                f"num_bins must be in 1..{frame_size // 2} (got {num_bins})",
                config_key="num_bins",
            )
        if self.aggregation not in AGGREGATION_METHODS:
            raise ConfigurationError(
                f"aggregation must be one of {', '.join(AGGREGATION_METHODS)} "
                f"(got {self.aggregation!r})",
                config_key="aggregation",
            )
        if max_workers < 1:
            raise ConfigurationError(
                f"max_workers must be >= 1 (got {max_workers})",
                config_key="max_workers",
            )

        return replace(
            self,
            target_sample_rate=target_sample_rate,
            frame_size=frame_size,
            hop=hop,
            num_bins=num_bins,
            max_workers=max_workers,
        )

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> PipelineConfig:
        """
        Build a config from a "pipeline" configuration section.

        Numeric values may arrive as strings after environment variable
        interpolation and are converted here.

        Raises:
            ConfigurationError: On unknown keys or unconvertible values
        """
        if not config:
            return cls()

        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in config.items():
            if key not in known:
                raise ConfigurationError(
                    f"Unknown pipeline setting: {key}", config_key=key
                )
            kwargs[key] = _coerce(key, value, known[key].type)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def _coerce(key: str, value: Any, type_name: Any) -> Any:
    # Annotations are strings under postponed evaluation
    try:
        if type_name == "int":
            if isinstance(value, bool):
                raise ValueError("booleans are not integers")
            return int(value)
        if type_name == "bool":
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in ("1", "true", "yes", "on"):
                    return True
                if lowered in ("0", "false", "no", "off"):
                    return False
                raise ValueError(f"not a boolean: {value!r}")
            return bool(value)
        return str(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for {key}: {value!r} ({e})", config_key=key
        )


def is_power_of_two(value: int) -> bool:
    """Return True if value is a positive power of two."""
    return value > 0 and (value & (value - 1)) == 0


@dataclass(frozen=True)
class Fingerprint:
    """64-bit perceptual hash, most significant bit first."""

    value: int

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_fingerprint_value(self.value)

    @property
    def hex(self) -> str:
        """16-character lowercase hexadecimal rendering."""
        return encode_hex(self.value)

    @classmethod
    def from_hex(cls, text: str) -> Fingerprint:
        """Strictly decode a 16-character hexadecimal fingerprint."""
        return cls(decode_hex(text))

    @classmethod
    def from_features(cls, features: Sequence[float]) -> Fingerprint:
        """
        Binarize a feature vector against its median.

        Raises:
            InputError: If the feature vector is empty
        """
        from audiophash.core.fingerprint import fingerprint_bits
        return cls(fingerprint_bits(features))

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True)
class HammingResult:
    """Bit distance between two fingerprints."""

    distance: int  # [0, 64]
    percent: float  # [0.0, 100.0]

    @classmethod
    def from_distance(cls, distance: int) -> HammingResult:
        return cls(distance=distance, percent=distance / FINGERPRINT_BITS * 100.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {'distance': self.distance, 'percent': self.percent}


@dataclass(frozen=True)
class StageEvent:
    """Statistics emitted after a pipeline stage completes."""

    stage: str
    stats: Dict[str, Any] = field(default_factory=dict)


def validate_fingerprint_value(value: int) -> None:
    """
    Check a fingerprint fits in 64 unsigned bits.

    Raises:
        InvalidParameterError: If value is not an int in [0, 2**64 - 1]
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(
            f"Fingerprint must be an int, got {type(value).__name__}",
            parameter="value",
        )
    if value < 0 or value > MAX_FINGERPRINT:
        raise InvalidParameterError(
            f"Fingerprint out of 64-bit range: {value}", parameter="value"
        )


def encode_hex(value: int) -> str:
    """Render a 64-bit value as 16 lowercase, zero-padded hex digits."""
    validate_fingerprint_value(value)
    return format(value, "0%dx" % HEX_LENGTH)


def decode_hex(text: str) -> int:
    """
    Decode exactly 16 hexadecimal digits into a 64-bit value.

    No prefixes, signs, separators or whitespace are accepted.

    Raises:
        DecodeError: On wrong length or invalid digits
    """
    if not isinstance(text, str):
        raise DecodeError(
            f"Fingerprint must be a string, got {type(text).__name__}"
        )
    if len(text) != HEX_LENGTH:
        raise DecodeError(
            f"Fingerprint must be {HEX_LENGTH} hex characters (got {len(text)})",
            value=text,
        )
    if not _HEX_PATTERN.fullmatch(text):
        raise DecodeError("Fingerprint contains invalid hex digits", value=text)
    return int(text, 16)
