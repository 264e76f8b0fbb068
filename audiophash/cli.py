"""
audiophash - Audio Perceptual Hash CLI

Installed as the 'audiophash' console script.

Example usage:
    # Fingerprint one or more files
    audiophash hash song.wav
    audiophash hash --format pcm16le capture.bin
    audiophash hash --json a.wav b.flac

    # Compare two fingerprints
    audiophash compare 8f3a0c11e4d27b90 8f3a0c11e4d27b98

    # Run a robustness manifest
    audiophash check tests.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from audiophash import __version__
from audiophash.core.manifest import run_manifest
from audiophash.core.observer import LoggingObserver
from audiophash.core.pipeline import compare_fingerprints, create_pipeline
from audiophash.utils.config import load_config
from audiophash.utils.errors import AudioHashError
from audiophash.utils.logging import setup_logging


def hash_files(
    files: List[Path],
    config: dict,
    format: Optional[str] = None,
    as_json: bool = False,
    verbose: bool = False,
) -> int:
    """
    Fingerprint each file and print one line per file.

    Returns:
        Exit code (0 if every file hashed, 1 otherwise)
    """
    observer = LoggingObserver() if verbose else None
    failures = 0
    results: Dict[str, Optional[str]] = {}

    with create_pipeline(config, observer=observer) as pipeline:
        for file_path in files:
            try:
                fingerprint = pipeline.fingerprint_file(file_path, format)
            except (AudioHashError, OSError) as e:
                print(f"Error: {file_path}: {e}", file=sys.stderr)
                results[str(file_path)] = None
                failures += 1
                continue

            results[str(file_path)] = fingerprint.hex
            if not as_json:
                print(f"{fingerprint.hex}  {file_path}")

    if as_json:
        print(json.dumps(results, indent=2))
    return 0 if failures == 0 else 1


def compare_hashes(hash_a: str, hash_b: str, as_json: bool = False) -> int:
    """Print the Hamming distance between two hex fingerprints."""
    try:
        result = compare_fingerprints(hash_a, hash_b)
    except AudioHashError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(result.to_dict()))
    else:
        print(f"Hamming distance: {result.distance}/64 ({result.percent:.2f}%)")
    return 0


def check_manifest(manifest: Path, config: dict, verbose: bool = False) -> int:
    """
    Run every case of a robustness manifest and print a summary table.

    Returns:
        Exit code (0 if all cases pass, 1 otherwise)
    """
    observer = LoggingObserver() if verbose else None
    try:
        with create_pipeline(config, observer=observer) as pipeline:
            outcomes = run_manifest(manifest, pipeline)
    except AudioHashError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("=" * 70)
    print(f"{'ID':<24} {'Bound':<10} {'Distance':<10} {'Percent':<10} {'Result':<8}")
    print("-" * 70)
    for outcome in outcomes:
        bound = f"{outcome.case.expect_op}{outcome.case.percent:g}"
        if outcome.error:
            print(f"{outcome.case.id:<24} {bound:<10} {'-':<10} {'-':<10} {'ERROR':<8}")
            print(f"  {outcome.error}")
            continue
        status = "ok" if outcome.passed else "FAILED"
        print(
            f"{outcome.case.id:<24} {bound:<10} {outcome.distance:<10} "
            f"{outcome.percent:<10.2f} {status:<8}"
        )
    print("-" * 70)

    passed = sum(1 for o in outcomes if o.passed)
    print(f"{passed}/{len(outcomes)} case(s) passed")
    return 0 if passed == len(outcomes) else 1


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the audiophash command."""
    parser = argparse.ArgumentParser(
        prog="audiophash",
        description="Compute and compare perceptual hashes of audio files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  audiophash hash song.wav
  audiophash hash --format pcm16le capture.raw
  audiophash compare 8f3a0c11e4d27b90 8f3a0c11e4d27b98
  audiophash check tests.json
        """
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Trace every pipeline stage"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"audiophash {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    hash_parser = subparsers.add_parser("hash", help="Fingerprint audio files")
    hash_parser.add_argument("files", type=Path, nargs="+", help="Audio file(s)")
    hash_parser.add_argument(
        "--format",
        "-f",
        default=None,
        help="Input format (wav, pcm16le, flac, mp3, ...); inferred from extension if omitted"
    )
    hash_parser.add_argument("--json", action="store_true", help="Print results as JSON")

    compare_parser = subparsers.add_parser("compare", help="Compare two fingerprints")
    compare_parser.add_argument("hash_a", help="16-digit hex fingerprint")
    compare_parser.add_argument("hash_b", help="16-digit hex fingerprint")
    compare_parser.add_argument("--json", action="store_true", help="Print result as JSON")

    check_parser = subparsers.add_parser("check", help="Run a robustness manifest")
    check_parser.add_argument("manifest", type=Path, help="Path to manifest JSON")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the audiophash command."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
        logging_config = config.get("logging", {})
        setup_logging(
            level="DEBUG" if args.verbose else logging_config.get("level", "INFO"),
            log_format=logging_config.get("format", "text"),
            log_file=logging_config.get("file"),
            colored=sys.stderr.isatty(),
            console_enabled=True,
        )
    except AudioHashError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "hash":
            return hash_files(args.files, config, args.format, args.json, args.verbose)
        if args.command == "compare":
            return compare_hashes(args.hash_a, args.hash_b, args.json)
        return check_manifest(args.manifest, config, args.verbose)
    except AudioHashError as e:
        # Invalid pipeline settings surface here, before any file is read
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
