"""
Robustness manifests.

A manifest is a JSON list of base/variant file pairs, each with a bound on
the Hamming percentage between their fingerprints:

    [
      {"id": "minus6dB", "base": "base/a.wav", "variant": "variants/a_-6dB.wav",
       "expectOp": "<=", "percent": 9.4},
      {"id": "unrelated", "base": "base/a.wav", "variant": "base/b.wav",
       "expectOp": ">=", "percent": 40}
    ]

Relative paths are resolved against the manifest's directory.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from audiophash.core.fingerprint import compare_fingerprints
from audiophash.core.pipeline import FingerprintPipeline
from audiophash.utils.errors import AudioHashError, ConfigurationError

EXPECT_OPS = ("<=", ">=")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RobustnessCase:
    """One base/variant pair and its expected distance bound."""

    id: str
    base: Path
    variant: Path
    expect_op: str  # "<=" or ">="
    percent: float

    def accepts(self, percent: float) -> bool:
        """Whether a measured Hamming percentage satisfies the bound."""
        if self.expect_op == "<=":
            return percent <= self.percent
        return percent >= self.percent


@dataclass
class CaseOutcome:
    """Result of evaluating one RobustnessCase."""

    case: RobustnessCase
    passed: bool
    distance: Optional[int] = None
    percent: Optional[float] = None
    base_hash: Optional[str] = None
    variant_hash: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.case.id,
            'passed': self.passed,
            'expect_op': self.case.expect_op,
            'bound': self.case.percent,
            'distance': self.distance,
            'percent': self.percent,
            'base_hash': self.base_hash,
            'variant_hash': self.variant_hash,
            'error': self.error,
        }


def _parse_case(entry: Any, index: int, root: Path) -> RobustnessCase:
    if not isinstance(entry, dict):
        raise ConfigurationError(
            f"Manifest entry {index} must be an object", config_key=f"[{index}]"
        )

    missing = [k for k in ("id", "base", "variant", "expectOp", "percent") if k not in entry]
    if missing:
        raise ConfigurationError(
            f"Manifest entry {index} is missing {', '.join(missing)}",
            config_key=f"[{index}]",
        )

    op = entry["expectOp"]
    if op not in EXPECT_OPS:
        raise ConfigurationError(
            f"Invalid expectOp {op!r} for test {entry['id']}",
            config_key=f"[{index}].expectOp",
        )

    try:
        percent = float(entry["percent"])
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid percent {entry['percent']!r} for test {entry['id']}",
            config_key=f"[{index}].percent",
        )

    return RobustnessCase(
        id=str(entry["id"]),
        base=root / entry["base"],
        variant=root / entry["variant"],
        expect_op=op,
        percent=percent,
    )


def load_manifest(manifest_path: Path) -> List[RobustnessCase]:
    """
    Parse a manifest file.

    Raises:
        ConfigurationError: If the file is missing, not JSON, empty, or has
            malformed entries
    """
    manifest_path = Path(manifest_path)
    try:
        entries = json.loads(manifest_path.read_text())
    except FileNotFoundError:
        raise ConfigurationError(
            f"Manifest not found: {manifest_path}", config_key=str(manifest_path)
        )
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Failed to parse manifest: {e}", config_key=str(manifest_path)
        )

    if not isinstance(entries, list) or not entries:
        raise ConfigurationError(
            "Manifest must be a non-empty list of test cases",
            config_key=str(manifest_path),
        )

    root = manifest_path.parent
    return [_parse_case(entry, i, root) for i, entry in enumerate(entries)]


def evaluate_case(case: RobustnessCase, pipeline: FingerprintPipeline) -> CaseOutcome:
    """
    Fingerprint both files of a case and check the bound.

    Pipeline errors are captured in the outcome rather than raised, so one
    bad fixture does not stop a whole manifest run.
    """
    try:
        base = pipeline.fingerprint_file(case.base)
        variant = pipeline.fingerprint_file(case.variant)
    except (AudioHashError, OSError) as e:
        logger.error(f"{case.id}: {e}")
        return CaseOutcome(case=case, passed=False, error=str(e))

    result = compare_fingerprints(base, variant)
    passed = case.accepts(result.percent)
    logger.info(
        f"{case.id}: {case.base.name} vs {case.variant.name} -> "
        f"Hamming={result.distance} ({result.percent:.2f}%) "
        f"{'ok' if passed else 'FAILED'}"
    )
    return CaseOutcome(
        case=case,
        passed=passed,
        distance=result.distance,
        percent=result.percent,
        base_hash=base.hex,
        variant_hash=variant.hex,
    )


def run_manifest(manifest_path: Path, pipeline: FingerprintPipeline) -> List[CaseOutcome]:
    """Evaluate every case in a manifest, in order."""
    return [evaluate_case(case, pipeline) for case in load_manifest(manifest_path)]
