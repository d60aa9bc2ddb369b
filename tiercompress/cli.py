"""CLI entrypoint for the rule tier compression pipeline.

Usage:
    python -m tiercompress
    python -m tiercompress --report-only --data-dir ./data
    python -m tiercompress --regenerate
    python -m tiercompress --regenerate --context-level abstract
    python -m tiercompress --regenerate --tier summary --dry-run
    python -m tiercompress --force --claude-cmd /usr/local/bin/claude
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import shutil
import sys
import time
from pathlib import Path

from . import __version__
from .models import ContextLevel, Tier

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SETUP = 2


def _setup_logging(
    *,
    verbose: bool,
    quiet: bool,
    detailed_logging: bool,
    log_file: Path | None,
) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    if verbose:
        root_level = logging.DEBUG
    elif quiet:
        root_level = logging.WARNING
    else:
        root_level = logging.INFO
    root_logger.setLevel(logging.DEBUG if log_file is not None else root_level)

    console_fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    detailed_fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)s | "
        "%(filename)s:%(lineno)d | %(message)s"
    )
    formatter = logging.Formatter(
        detailed_fmt if detailed_logging else console_fmt,
        "%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_fmt, "%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value!r}")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    from .utils import DEFAULT_CLAUDE_CMD, DEFAULT_MAX_ATTEMPTS, DEFAULT_STANDARD_NAME

    parser = argparse.ArgumentParser(
        prog="tiercompress",
        description=(
            "Derive .summary.md and .abstract.md files from .complete.md rules "
            "with an external compression service"
        ),
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--report-only",
        dest="mode",
        action="store_const",
        const="report-only",
        help="Report oversized files only (default)",
    )
    mode.add_argument(
        "--regenerate",
        dest="mode",
        action="store_const",
        const="regenerate",
        help="Regenerate derived files whose timestamps differ from their source",
    )
    mode.add_argument(
        "--force",
        dest="mode",
        action="store_const",
        const="force",
        help="Regenerate every derived file, even when in sync",
    )
    parser.set_defaults(mode="report-only")

    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help="Root of the rule tree (default: data/)",
    )
    parser.add_argument(
        "--context-dir",
        type=Path,
        default=None,
        help="Directory holding the assembled standard (default: parent of --data-dir)",
    )
    parser.add_argument(
        "--standard-name",
        default=DEFAULT_STANDARD_NAME,
        help=f"Base name of the assembled standard files (default: {DEFAULT_STANDARD_NAME})",
    )
    parser.add_argument(
        "--tier",
        choices=[Tier.SUMMARY.value, Tier.ABSTRACT.value],
        default=None,
        help="Process one tier only (default: both)",
    )
    parser.add_argument(
        "--context-level",
        choices=[level.value for level in ContextLevel],
        default=ContextLevel.NONE.value,
        help=(
            "Whole-standard context sent with each rule: none (fastest), toc, "
            "abstract, summary, complete (largest) (default: none)"
        ),
    )
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Run everything but do not write any files",
    )
    parser.add_argument(
        "--summary-limit",
        type=_positive_int,
        default=None,
        help="Summary file size limit in bytes (default: 10000)",
    )
    parser.add_argument(
        "--abstract-limit",
        type=_positive_int,
        default=None,
        help="Abstract file size limit in bytes (default: 1500)",
    )
    parser.add_argument(
        "--claude-cmd",
        default=DEFAULT_CLAUDE_CMD,
        help=f"Compression service command (default: {DEFAULT_CLAUDE_CMD})",
    )
    parser.add_argument(
        "--max-attempts",
        type=_positive_int,
        default=DEFAULT_MAX_ATTEMPTS,
        help=f"Compression attempts per file before giving up (default: {DEFAULT_MAX_ATTEMPTS})",
    )
    parser.add_argument(
        "--discard-oversized",
        action="store_true",
        help="Do not write a file that is still oversized after the last attempt",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        help="Seconds to wait for each service call (default: no timeout)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    verbosity.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log warnings and errors",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Include file/line in log records",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a rotating DEBUG log to this file",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def _service_available(command: str) -> bool:
    return shutil.which(command) is not None


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline and return the process exit code."""
    from .config import PipelineConfig, RunMode
    from .errors import DiscoveryError
    from .report import log_size_report, report_sizes
    from .runner import run_pipeline
    from .sources import discover_sources

    args = parse_args(argv)
    _setup_logging(
        verbose=args.verbose,
        quiet=args.quiet,
        detailed_logging=args.detailed_logging,
        log_file=args.log_file,
    )
    config = PipelineConfig.from_args(args)

    overall_t0 = time.perf_counter()
    log.info("Data directory: %s", config.data_dir)
    log.info("Mode: %s", config.mode.value)
    log.info("Tiers: %s", ", ".join(t.value for t in config.tiers))
    log.info("Context level: %s", config.context_level.value)

    if config.mode is RunMode.REPORT:
        tiers = (Tier.COMPLETE, *config.tiers)
        try:
            reports = report_sizes(config.data_dir, config.limits, tiers)
        except DiscoveryError as exc:
            log.error("%s", exc)
            return EXIT_SETUP
        log_size_report(reports, config.data_dir)
        return EXIT_OK

    if not _service_available(config.service.command):
        log.error("Compression service not found: %s", config.service.command)
        return EXIT_SETUP
    log.info("Compression service: %s", config.service.command)

    try:
        sources = discover_sources(config.data_dir)
    except DiscoveryError as exc:
        log.error("%s", exc)
        return EXIT_SETUP

    log.info("Found %s .complete.md files", len(sources))
    if not sources:
        return EXIT_OK

    stats = run_pipeline(config, sources)

    log.info("=" * 60)
    stats.log_summary(log)
    log.info("Total runtime: %.1fs", time.perf_counter() - overall_t0)
    if config.dry_run:
        log.info("Dry-run complete; run without --dry-run to write files")
    return stats.exit_code()


if __name__ == "__main__":
    sys.exit(main())
