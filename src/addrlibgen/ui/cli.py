from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from addrlibgen.app import generate_version_bins
from addrlibgen.config import (
    ConfigurationError,
    configure_logging,
    get_generator_config,
    get_root_dir,
)
from addrlibgen.domain.model import VersionStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from addrlibgen.app import RunSummary
    from addrlibgen.domain.propagation import VersionOutcome

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="addrlibgen",
        description="Propagate stable entity IDs across program versions and write version bins",
    )
    parser.add_argument(
        "root_dir",
        nargs="?",
        help="Folder holding export directories, diff reports and bins "
        "(defaults to $ADDRLIBGEN_ROOT_DIR)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Size of the worker pool (defaults to $ADDRLIBGEN_WORKERS or 4)",
    )
    parser.add_argument(
        "--modified-min-confidence",
        type=float,
        help="Minimum confidence for a 'modified' match to pass its ID on (default: 0.0)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve every version but do not write any bin",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output, including every ambiguity diagnostic",
    )
    return parser.parse_args(list(argv))


def _describe_outcome(outcome: VersionOutcome) -> str:
    match outcome.status:
        case VersionStatus.RESOLVED:
            neighbours = ", ".join(str(version) for version in outcome.neighbours) or "bootstrap"
            return (
                f"resolved at depth {outcome.depth} from {neighbours}: "
                f"inherited={outcome.inherited}, fresh={outcome.fresh}"
            )
        case VersionStatus.FAILED:
            return f"failed: {outcome.error}"
        case _:
            return str(outcome.status)


def _log_summary(summary: RunSummary) -> None:
    report = summary.report
    for version, outcome in sorted(report.outcomes.items()):
        log.info("Version %s %s", version, _describe_outcome(outcome))
    if report.bootstrap is not None:
        log.info("No bins found; version %s was bootstrapped with fresh IDs", report.bootstrap)
    for path in summary.written:
        log.info("Wrote %s", path)
    for warning in summary.warnings:
        log.warning("%s", warning)
    for version, failure in sorted(summary.output_failures.items()):
        log.error("No bin for %s: %s", version, failure)
    for diagnostic in report.diagnostics:
        log.debug("Ambiguity: %s", diagnostic.describe())
    log.info(
        "%s ambiguity diagnostic(s); %s version(s) unreachable",
        len(report.diagnostics),
        len(report.versions_with(VersionStatus.UNREACHABLE)),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.verbose:
            configure_logging(level=logging.DEBUG, force=True)
        root_dir = get_root_dir(parsed_args.root_dir)
        config = get_generator_config(
            workers=parsed_args.workers,
            modified_min_confidence=parsed_args.modified_min_confidence,
        )
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        summary = generate_version_bins(root_dir, config=config, dry_run=parsed_args.dry_run)
    except Exception:
        log.exception("Fatal error during bin generation")
        sys.exit(1)

    _log_summary(summary)
    if not summary.succeeded:
        log.error("No version was resolved and written")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
