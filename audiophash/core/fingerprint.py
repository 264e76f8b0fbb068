"""
Fingerprint generation and comparison.

A feature vector becomes 64 bits by thresholding each entry against the
vector's own median. Two fingerprints are compared by Hamming distance.
"""

from typing import Sequence, Union

import numpy as np

from audiophash.core.aggregate import median
from audiophash.core.models import (
    FINGERPRINT_BITS,
    Fingerprint,
    HammingResult,
    decode_hex,
    encode_hex,
    validate_fingerprint_value,
)
from audiophash.utils.errors import DecodeError, InputError

FingerprintLike = Union[Fingerprint, int, str]


def pad_features(features: Sequence[float]) -> np.ndarray:
    """Zero-pad or truncate a feature vector to exactly 64 entries."""
    values = np.asarray(features, dtype=np.float64).ravel()[:FINGERPRINT_BITS]
    padded = np.zeros(FINGERPRINT_BITS, dtype=np.float64)
    padded[: values.size] = values
    return padded


def fingerprint_bits(features: Sequence[float]) -> int:
    """
    Binarize a feature vector into a 64-bit integer.

    Bit i (0 = most significant) is set iff padded[i] is strictly greater
    than the median of the padded vector. Values equal to the median map
    to 0.

    Raises:
        InputError: If the feature vector is empty
    """
    if np.asarray(features).size == 0:
        raise InputError("Cannot fingerprint an empty feature vector", size=0)

    padded = pad_features(features)
    threshold = median(padded)

    value = 0
    for above in padded > threshold:
        value = (value << 1) | int(above)
    return value


def features_to_hex(features: Sequence[float]) -> str:
    """
    Hex fingerprint of a feature vector.

    Returns an empty string when features is empty; callers must treat
    that as "no fingerprint", never as the all-zero fingerprint.
    """
    if np.asarray(features).size == 0:
        return ""
    return encode_hex(fingerprint_bits(features))


def to_value(fingerprint: FingerprintLike) -> int:
    """
    Integer value of a Fingerprint, int or 16-digit hex string.

    Raises:
        DecodeError: If a string is not exactly 16 hex digits
    """
    if isinstance(fingerprint, Fingerprint):
        return fingerprint.value
    if isinstance(fingerprint, str):
        return decode_hex(fingerprint)
    if isinstance(fingerprint, int) and not isinstance(fingerprint, bool):
        validate_fingerprint_value(fingerprint)
        return fingerprint
    raise DecodeError(f"Unsupported fingerprint type: {type(fingerprint).__name__}")


def hamming_distance(a: int, b: int) -> int:
    """Number of differing bits between two 64-bit values."""
    return bin(a ^ b).count("1")


def compare_fingerprints(a: FingerprintLike, b: FingerprintLike) -> HammingResult:
    """
    Hamming distance and percentage between two fingerprints.

    Args:
        a: First fingerprint (Fingerprint, int, or 16-digit hex)
        b: Second fingerprint

    Returns:
        HammingResult: distance in [0, 64], percent in [0, 100]

    Raises:
        DecodeError: If either hex string is malformed
    """
    return HammingResult.from_distance(hamming_distance(to_value(a), to_value(b)))
