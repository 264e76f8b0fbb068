"""
audiophash

Perceptual hashing for audio: a 64-bit fingerprint that stays close for
re-encoded, re-levelled or trimmed copies of a recording, and a Hamming
distance to compare two fingerprints.
"""

__version__ = "1.0.0"

from audiophash.core.models import Fingerprint, HammingResult, PipelineConfig

__all__ = [
    "Fingerprint",
    "HammingResult",
    "PipelineConfig",
    "compute_fingerprint",
    "compare_fingerprints",
    "FingerprintPipeline",
]


def __getattr__(name: str):
    if name in ("compute_fingerprint", "compare_fingerprints", "FingerprintPipeline"):
        from audiophash.core import pipeline
        return getattr(pipeline, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
