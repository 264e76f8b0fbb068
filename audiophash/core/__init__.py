"""
Core module containing data models, signal stages, and the fingerprint pipeline.

Uses lazy imports for modules that pull in soundfile.
"""

# Models are lightweight - import directly
from audiophash.core.models import (
    AudioFormat,
    AudioFormatDescriptor,
    DecodedAudio,
    Fingerprint,
    HammingResult,
    PipelineConfig,
    StageEvent,
    decode_hex,
    encode_hex,
)

__all__ = [
    # Models (always available)
    "AudioFormat",
    "AudioFormatDescriptor",
    "DecodedAudio",
    "Fingerprint",
    "HammingResult",
    "PipelineConfig",
    "StageEvent",
    "decode_hex",
    "encode_hex",
    # Lazy loaded
    "FingerprintPipeline",
    "compute_fingerprint",
    "compare_fingerprints",
    "create_pipeline",
    "get_decoder",
    "register_decoder",
]


def __getattr__(name: str):
    """Lazy load modules that depend on soundfile."""
    if name in ("FingerprintPipeline", "compute_fingerprint", "compare_fingerprints", "create_pipeline"):
        from audiophash.core import pipeline
        return getattr(pipeline, name)
    elif name in ("get_decoder", "register_decoder"):
        from audiophash.core import decoders
        return getattr(decoders, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
