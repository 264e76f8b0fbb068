"""
Cross-frame feature aggregation.

Reduces the per-frame magnitude spectra to one global feature vector over
the lowest num_bins frequency bins.
"""

from typing import Sequence, Union

import numpy as np

from audiophash.utils.errors import InvalidParameterError

SpectraLike = Union[np.ndarray, Sequence[Sequence[float]]]


def median(values: Sequence[float]) -> float:
    """
    Median of values; the even-count median averages the two central values.

    Returns 0.0 for empty input.
    """
    ordered = np.sort(np.asarray(values, dtype=np.float64))
    n = ordered.size
    if n == 0:
        return 0.0
    if n % 2 == 0:
        return float((ordered[n // 2 - 1] + ordered[n // 2]) / 2)
    return float(ordered[n // 2])


def _as_spectra(spectra: SpectraLike) -> np.ndarray:
    try:
        array = np.asarray(spectra, dtype=np.float64)
    except ValueError as e:
        raise InvalidParameterError(
            f"Spectra must all have the same length: {e}", parameter="spectra"
        )
    if array.size == 0:
        return array.reshape(0, 0)
    if array.ndim != 2:
        raise InvalidParameterError(
            f"Spectra must be a 2-D (frames x bins) array, got shape {array.shape}",
            parameter="spectra",
        )
    return array


def aggregate_mean(spectra: SpectraLike, num_bins: int) -> np.ndarray:
    """Per-bin arithmetic mean across frames."""
    return aggregate_features(spectra, num_bins, method="mean")


def aggregate_median(spectra: SpectraLike, num_bins: int) -> np.ndarray:
    """Per-bin median across frames; robust to transient frames."""
    return aggregate_features(spectra, num_bins, method="median")


def aggregate_features(
    spectra: SpectraLike, num_bins: int, method: str = "median"
) -> np.ndarray:
    """
    Collapse frames x bins spectra into a single feature vector.

    Args:
        spectra: Magnitude spectra, one row per frame
        num_bins: Number of low-frequency bins to keep; clamped to the
            spectrum length
        method: "median" or "mean"

    Returns:
        np.ndarray: min(num_bins, spectrum_length) values; empty when there
        are no frames or num_bins <= 0

    Raises:
        InvalidParameterError: For an unknown method or ragged spectra
    """
    if method not in ("median", "mean"):
        raise InvalidParameterError(
            f"Unknown aggregation method: {method!r}", parameter="method"
        )

    array = _as_spectra(spectra)
    if array.shape[0] == 0 or num_bins <= 0:
        return np.empty(0, dtype=np.float64)

    bins = array[:, : min(num_bins, array.shape[1])]
    if method == "mean":
        return bins.mean(axis=0)

    # Sorted per bin so the even-count median is the mean of the two middle values
    ordered = np.sort(bins, axis=0)
    n = ordered.shape[0]
    if n % 2 == 0:
        return (ordered[n // 2 - 1] + ordered[n // 2]) / 2
    return ordered[n // 2].copy()


def log_compress(features: np.ndarray) -> np.ndarray:
    """Return ln(1 + v) for every feature value."""
    return np.log1p(np.asarray(features, dtype=np.float64))
