"""
Pipeline observers.

The pipeline reports each completed stage to an observer supplied by the
caller. Nothing is printed or logged unless an observer asks for it.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from audiophash.core.models import StageEvent

# Stage names, in pipeline order
STAGE_DECODE = "decode"
STAGE_RESAMPLE = "resample"
STAGE_NORMALIZE = "normalize"
STAGE_FRAME = "frame"
STAGE_SPECTRUM = "spectrum"
STAGE_AGGREGATE = "aggregate"
STAGE_LOG_COMPRESS = "log_compress"
STAGE_FINGERPRINT = "fingerprint"


@runtime_checkable
class PipelineObserver(Protocol):
    """Receives one StageEvent per completed pipeline stage."""

    def on_stage(self, event: StageEvent) -> None:
        ...


class NullObserver:
    """Discards all events."""

    def on_stage(self, event: StageEvent) -> None:
        pass


class LoggingObserver:
    """Writes stage statistics to a logger at DEBUG level."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("audiophash.trace")
        self.level = level

    def on_stage(self, event: StageEvent) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        details = " ".join(f"{k}={_fmt(v)}" for k, v in event.stats.items())
        self.logger.log(
            self.level,
            f"[phash] {event.stage}: {details}",
            extra={"stats": dict(event.stats, stage=event.stage)},
        )


class RecordingObserver:
    """Keeps every event in memory, in order."""

    def __init__(self):
        self.events: List[StageEvent] = []

    def on_stage(self, event: StageEvent) -> None:
        self.events.append(event)

    @property
    def stages(self) -> List[str]:
        return [event.stage for event in self.events]

    def get(self, stage: str) -> StageEvent:
        """Last event recorded for a stage."""
        for event in reversed(self.events):
            if event.stage == stage:
                return event
        raise KeyError(stage)


def summarize(values: Sequence[float]) -> Dict[str, Any]:
    """Count, min, max, mean and median of a 1-D sequence."""
    array = np.asarray(values, dtype=np.float64).ravel()
    if array.size == 0:
        return {"count": 0, "min": 0.0, "max": 0.0, "mean": 0.0, "median": 0.0}
    return {
        "count": int(array.size),
        "min": float(array.min()),
        "max": float(array.max()),
        "mean": float(array.mean()),
        "median": float(np.median(array)),
    }


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6f}"
    return str(value)
