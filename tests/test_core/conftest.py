"""Shared fixtures for fingerprint pipeline tests."""

import struct
from typing import Iterable, Tuple

import numpy as np
import pytest

from audiophash.core.observer import RecordingObserver

SAMPLE_RATE = 44100

_FULL_SCALE = {8: 127, 16: 32767, 24: 8388607, 32: 2147483647}


# ---------------------------------------------------------------------------
# WAV construction
# ---------------------------------------------------------------------------


def encode_pcm(samples: np.ndarray, bits: int = 16) -> bytes:
    """Quantize float samples in [-1, 1] (interleaved) to little-endian PCM bytes."""
    ints = np.round(np.clip(samples, -1.0, 1.0) * _FULL_SCALE[bits]).astype(np.int64).ravel()
    if bits == 8:
        return (ints + 128).astype(np.uint8).tobytes()
    if bits == 16:
        return ints.astype("<i2").tobytes()
    if bits == 32:
        return ints.astype("<i4").tobytes()
    unsigned = ints & 0xFFFFFF
    triplets = np.stack([unsigned & 0xFF, (unsigned >> 8) & 0xFF, (unsigned >> 16) & 0xFF], axis=1)
    return triplets.astype(np.uint8).tobytes()


def make_wav(
    samples: np.ndarray,
    sample_rate: int = SAMPLE_RATE,
    bits: int = 16,
    audio_format: int = 1,
    fmt_extra: bytes = b"",
    chunks_before_fmt: Iterable[Tuple[bytes, bytes]] = (),
    chunks_before_data: Iterable[Tuple[bytes, bytes]] = (),
    data: bytes = None,
) -> bytes:
    """
    Build a WAV file in memory.

    samples is (n,) for mono or (n, channels) for interleaved multi-channel.
    """
    samples = np.asarray(samples, dtype=np.float64)
    channels = 1 if samples.ndim == 1 else samples.shape[1]
    payload = encode_pcm(samples, bits) if data is None else data

    block_align = channels * (bits // 8)
    byte_rate = sample_rate * block_align
    fmt_body = struct.pack("<HHIIHH", audio_format, channels, sample_rate, byte_rate, block_align, bits)
    fmt_body += fmt_extra

    def chunk(tag: bytes, body: bytes) -> bytes:
        return tag + struct.pack("<I", len(body)) + body

    body = b"".join(chunk(tag, b) for tag, b in chunks_before_fmt)
    body += chunk(b"fmt ", fmt_body)
    body += b"".join(chunk(tag, b) for tag, b in chunks_before_data)
    body += chunk(b"data", payload)
    return b"RIFF" + struct.pack("<I", 4 + len(body)) + b"WAVE" + body


# ---------------------------------------------------------------------------
# Test signals
# ---------------------------------------------------------------------------


def sine(freq: float, duration: float = 2.0, sample_rate: int = SAMPLE_RATE, amplitude: float = 0.8) -> np.ndarray:
    t = np.arange(int(duration * sample_rate)) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def harmonic_comb(duration: float = 2.0, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """
    31 partials at multiples of 44100/1024 Hz with spread-out amplitudes.

    Partials land on every even FFT bin below 64, so the feature vector
    has distinct, well-separated values on both sides of its median.
    """
    n = int(duration * sample_rate)
    t = np.arange(n) / sample_rate
    fundamental = SAMPLE_RATE / 1024
    signal = np.zeros(n)
    for k in range(1, 32):
        amplitude = 0.1 + 0.9 * ((k * 13) % 31) / 30
        signal += amplitude * np.sin(2 * np.pi * k * fundamental * t + 0.7 * k * k)
    return 0.9 * signal / np.max(np.abs(signal))


def brown_noise(duration: float = 2.0, sample_rate: int = SAMPLE_RATE, seed: int = 1234) -> np.ndarray:
    """Integrated white noise; energy falls off steeply with frequency."""
    rng = np.random.default_rng(seed)
    walk = np.cumsum(rng.standard_normal(int(duration * sample_rate)))
    walk -= walk.mean()
    return 0.9 * walk / np.max(np.abs(walk))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sine_wav():
    """2-second 440 Hz mono 16-bit WAV at 44.1 kHz."""
    return make_wav(sine(440.0))


@pytest.fixture
def comb_signal():
    return harmonic_comb()


@pytest.fixture
def comb_wav(comb_signal):
    return make_wav(comb_signal)


@pytest.fixture
def recorder():
    """RecordingObserver collecting stage events."""
    return RecordingObserver()
