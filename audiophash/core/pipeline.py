"""
Fingerprint pipeline for audiophash.

Wires the stages together: decode -> resample -> normalize -> frame ->
spectrum -> aggregate -> log compress -> fingerprint.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from audiophash.core.aggregate import aggregate_features, log_compress
from audiophash.core.decoders import format_for_path, get_decoder
from audiophash.core.fingerprint import FingerprintLike, compare_fingerprints as _compare
from audiophash.core.models import Fingerprint, HammingResult, PipelineConfig, StageEvent
from audiophash.core.observer import (
    STAGE_AGGREGATE,
    STAGE_DECODE,
    STAGE_FINGERPRINT,
    STAGE_FRAME,
    STAGE_LOG_COMPRESS,
    STAGE_NORMALIZE,
    STAGE_RESAMPLE,
    STAGE_SPECTRUM,
    NullObserver,
    PipelineObserver,
    summarize,
)
from audiophash.core.signal import frame_signal, normalize, resample
from audiophash.core.spectrum import magnitude_spectra
from audiophash.utils.errors import InputError


class FingerprintPipeline:
    """
    Computes perceptual fingerprints from audio bytes.

    Design:
    - Configuration is validated once, at construction
    - Every stage is a pure function; the pipeline holds no per-call state
    - Stage statistics go to an injected observer
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        observer: Optional[PipelineObserver] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline parameters (defaults used if None)
            observer: Receives a StageEvent after each stage

        Raises:
            ConfigurationError: If config is invalid
        """
        self.config = (config or PipelineConfig()).validated()
        self.observer = observer or NullObserver()
        self.logger = logging.getLogger(__name__)
        self._executor: Optional[ThreadPoolExecutor] = None
        if self.config.max_workers > 1:
            self._executor = ThreadPoolExecutor(max_workers=self.config.max_workers)

    def fingerprint(self, data: bytes, format: str) -> Fingerprint:
        """
        Fingerprint an encoded audio buffer.

        Args:
            data: Complete audio file contents
            format: Format name ("wav", "pcm16le", "flac", ...)

        Returns:
            Fingerprint: 64-bit perceptual hash

        Raises:
            InputError: Empty input or audio shorter than one frame
            FormatError: Malformed or unsupported container
        """
        if len(data) == 0:
            raise InputError("Input bytes are empty", size=0)

        decoder = get_decoder(format)
        decoded = decoder.decode(data)
        self._emit(
            STAGE_DECODE,
            bytes=len(data),
            format=decoded.descriptor.tag.value,
            channels=decoded.descriptor.channels,
            bits_per_sample=decoded.descriptor.bits_per_sample,
            sample_rate=decoded.sample_rate,
            samples=int(decoded.samples.size),
        )
        return self.fingerprint_samples(decoded.samples, decoded.sample_rate)

    def fingerprint_samples(self, samples: np.ndarray, sample_rate: int = 0) -> Fingerprint:
        """
        Fingerprint already-decoded mono samples.

        Args:
            samples: Mono samples
            sample_rate: Rate of samples in Hz; 0 means it already matches
                the configured target rate

        Raises:
            InputError: If there are no samples or fewer than one frame
        """
        start = time.time()
        config = self.config
        samples = np.asarray(samples, dtype=np.float64)
        if samples.size == 0:
            raise InputError("No samples to fingerprint", size=0)

        if sample_rate and sample_rate != config.target_sample_rate:
            self.logger.debug(
                f"Resampling {sample_rate} Hz -> {config.target_sample_rate} Hz"
            )
            samples = resample(samples, sample_rate, config.target_sample_rate)
            self._emit(
                STAGE_RESAMPLE,
                source_rate=sample_rate,
                target_rate=config.target_sample_rate,
                samples=int(samples.size),
            )

        samples = normalize(samples)
        self._emit(STAGE_NORMALIZE, **summarize(samples))

        frames = frame_signal(samples, config.frame_size, config.hop)
        if frames.shape[0] == 0:
            raise InputError(
                f"No frames produced: {samples.size} samples is shorter than "
                f"one frame of {config.frame_size}",
                size=int(samples.size),
            )
        self._emit(
            STAGE_FRAME,
            frames=int(frames.shape[0]),
            frame_size=config.frame_size,
            hop=config.hop,
        )

        spectra = magnitude_spectra(frames, config.max_workers, self._executor)
        self._emit(
            STAGE_SPECTRUM,
            frames=int(spectra.shape[0]),
            bins=int(spectra.shape[1]),
        )

        features = aggregate_features(spectra, config.num_bins, config.aggregation)
        if features.size == 0:
            raise InputError("No global feature produced", size=0)
        self._emit(STAGE_AGGREGATE, method=config.aggregation, **summarize(features))

        if config.log_compress:
            features = log_compress(features)
            self._emit(STAGE_LOG_COMPRESS, **summarize(features))

        fingerprint = Fingerprint.from_features(features)
        self._emit(STAGE_FINGERPRINT, hex=fingerprint.hex)

        self.logger.info(
            f"Fingerprint {fingerprint.hex} computed in {time.time() - start:.3f}s"
        )
        return fingerprint

    def fingerprint_file(
        self, file_path: Union[str, Path], format: Optional[str] = None
    ) -> Fingerprint:
        """
        Read and fingerprint a file.

        Args:
            file_path: Path to the audio file
            format: Format name; inferred from the extension if None
        """
        file_path = Path(file_path)
        data = file_path.read_bytes()
        fmt = format or format_for_path(file_path)
        self.logger.debug(f"Fingerprinting {file_path} as {fmt}")
        return self.fingerprint(data, fmt)

    def shutdown(self) -> None:
        """Release the transform thread pool, if any."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "FingerprintPipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def _emit(self, stage: str, **stats: Any) -> None:
        self.observer.on_stage(StageEvent(stage=stage, stats=stats))


def compute_fingerprint(
    data: bytes,
    format: str,
    config: Optional[PipelineConfig] = None,
    observer: Optional[PipelineObserver] = None,
) -> str:
    """
    Compute the 16-character hex fingerprint of an audio buffer.

    Args:
        data: Audio file contents
        format: "pcm16le", "wav", or any other registered format name
        config: Pipeline parameters; defaults if None
        observer: Optional stage observer

    Returns:
        str: 16 lowercase hex digits

    Raises:
        ConfigurationError, FormatError, InputError
    """
    with FingerprintPipeline(config, observer) as pipeline:
        return pipeline.fingerprint(data, format).hex


def compare_fingerprints(a: FingerprintLike, b: FingerprintLike) -> HammingResult:
    """
    Compare two fingerprints.

    Raises:
        DecodeError: If a hex fingerprint is malformed
    """
    return _compare(a, b)


def create_pipeline(
    config: Optional[Dict[str, Any]] = None,
    observer: Optional[PipelineObserver] = None,
) -> FingerprintPipeline:
    """
    Factory function to create a pipeline from loaded configuration.

    Args:
        config: Full configuration dict; its "pipeline" section is used

    Returns:
        FingerprintPipeline: Configured pipeline
    """
    section = (config or {}).get("pipeline", {})
    return FingerprintPipeline(PipelineConfig.from_dict(section), observer)
