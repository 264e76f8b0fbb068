"""
Time-domain processing: resampling, peak normalization and framing.

All functions are pure. They return new arrays and never modify their
input.
"""

import numpy as np

from audiophash.utils.errors import InvalidParameterError


def resample(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """
    Linearly resample audio from source_rate to target_rate.

    Output sample i is read from the fractional source position
    i / (target_rate / source_rate), interpolating between the two
    bracketing input samples. Where the upper bracket falls past the end,
    the last input sample is held.

    Args:
        samples: Mono input samples
        source_rate: Sample rate of the input in Hz
        target_rate: Desired output sample rate in Hz

    Returns:
        np.ndarray: Resampled audio of floor(len * ratio) samples

    Raises:
        InvalidParameterError: If a rate is <= 0 or samples is empty
    """
    if source_rate <= 0 or target_rate <= 0:
        raise InvalidParameterError(
            f"Invalid sample rate: {source_rate} -> {target_rate}",
            parameter="sample_rate",
        )
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size == 0:
        raise InvalidParameterError("No samples to resample", parameter="samples")

    if source_rate == target_rate:
        return samples.copy()

    ratio = target_rate / source_rate
    new_len = int(np.floor(samples.size * ratio))

    positions = np.arange(new_len, dtype=np.float64) / ratio
    idx = positions.astype(np.int64)
    frac = positions - idx

    out = np.empty(new_len, dtype=np.float64)
    inside = idx + 1 < samples.size
    lo = idx[inside]
    out[inside] = samples[lo] * (1.0 - frac[inside]) + samples[lo + 1] * frac[inside]
    out[~inside] = samples[-1]
    return out


def normalize(samples: np.ndarray) -> np.ndarray:
    """
    Scale samples so the peak absolute amplitude is exactly 1.0.

    The peak sample maps to exactly +/-1.0, so normalizing twice gives
    the same result. Empty and all-zero input is returned unchanged.
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size == 0:
        return samples.copy()

    peak = np.max(np.abs(samples))
    if peak == 0:
        return samples.copy()
    return samples / peak


def hann_window(size: int) -> np.ndarray:
    """
    Symmetric Hann window: w[k] = 0.5 * (1 - cos(2*pi*k / (size - 1))).

    A single-sample window is [1.0].
    """
    if size <= 0:
        raise InvalidParameterError(
            f"Window size must be > 0 (got {size})", parameter="frame_size"
        )
    if size == 1:
        return np.ones(1, dtype=np.float64)
    k = np.arange(size, dtype=np.float64)
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * k / (size - 1)))


def frame_count(num_samples: int, frame_size: int, hop: int) -> int:
    """Number of full frames: max(0, 1 + floor((num_samples - frame_size) / hop))."""
    return max(0, 1 + (num_samples - frame_size) // hop)


def frame_signal(samples: np.ndarray, frame_size: int, hop: int) -> np.ndarray:
    """
    Slice samples into overlapping Hann-windowed frames.

    Input shorter than one frame yields zero frames; it is never padded.

    Args:
        samples: Mono samples
        frame_size: Samples per frame
        hop: Samples to advance between frames (1 <= hop <= frame_size)

    Returns:
        np.ndarray: Shape (n_frames, frame_size)

    Raises:
        InvalidParameterError: If frame_size or hop is out of range
    """
    if frame_size <= 0:
        raise InvalidParameterError(
            f"frame_size must be > 0 (got {frame_size})", parameter="frame_size"
        )
    if hop < 1 or hop > frame_size:
        raise InvalidParameterError(
            f"hop must be in 1..{frame_size} (got {hop})", parameter="hop"
        )

    samples = np.asarray(samples, dtype=np.float64)
    n_frames = frame_count(samples.size, frame_size, hop)
    if n_frames == 0:
        return np.empty((0, frame_size), dtype=np.float64)

    windows = np.lib.stride_tricks.sliding_window_view(samples, frame_size)[::hop]
    return windows[:n_frames] * hann_window(frame_size)
