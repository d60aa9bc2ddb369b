"""Per-tier outcome counters and the end-of-run report."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .models import DERIVED_TIERS, JobResult, Outcome, Tier


@dataclass
class TierCounts:
    succeeded: int = 0
    oversized: int = 0
    failed: int = 0


@dataclass
class RunStats:
    """Accumulates job outcomes for one run.

    Owned by the run loop and passed along explicitly.
    """

    processed: int = 0
    skipped: int = 0
    written: int = 0
    tiers: dict[Tier, TierCounts] = field(
        default_factory=lambda: {tier: TierCounts() for tier in DERIVED_TIERS}
    )
    oversized_files: list[tuple[Path, int]] = field(default_factory=list)
    failed_files: list[tuple[Path, str]] = field(default_factory=list)
    unwritten_files: list[Path] = field(default_factory=list)

    def record(self, result: JobResult) -> None:
        counts = self.tiers.setdefault(result.tier, TierCounts())
        if result.committed:
            self.written += 1
        if result.outcome is Outcome.SUCCESS:
            counts.succeeded += 1
        elif result.outcome is Outcome.OVERSIZED:
            counts.oversized += 1
            self.oversized_files.append((result.target, result.size))
            if not result.committed:
                self.unwritten_files.append(result.target)
        else:
            counts.failed += 1
            self.failed_files.append((result.target, result.error or "unknown error"))

    @property
    def total_failed(self) -> int:
        return sum(c.failed for c in self.tiers.values())

    @property
    def total_oversized(self) -> int:
        return sum(c.oversized for c in self.tiers.values())

    def exit_code(self) -> int:
        """0 unless some job failed; oversized results never fail the run."""
        return 1 if self.total_failed else 0

    def summary_lines(self) -> list[str]:
        lines = [
            "Compression Statistics",
            "=" * 50,
            f"Files processed: {self.processed} (skipped in sync: {self.skipped})",
            f"Files written: {self.written}",
        ]
        for tier, counts in self.tiers.items():
            lines.extend(
                [
                    f"{tier.value.capitalize()} files (.{tier.value}.md):",
                    f"  Within limit: {counts.succeeded}",
                    f"  Oversized:    {counts.oversized}",
                    f"  Failed:       {counts.failed}",
                ]
            )
        return lines

    def log_summary(self, log: logging.Logger) -> None:
        for line in self.summary_lines():
            log.info(line)
        if self.oversized_files:
            log.warning("Oversized files (manual compression recommended):")
            unwritten = set(self.unwritten_files)
            for path, size in self.oversized_files:
                if path in unwritten:
                    log.warning("  - %s (%s bytes, not written)", path, size)
                else:
                    log.warning("  - %s (%s bytes)", path, size)
        if self.failed_files:
            log.error("Failed files (check the compression service):")
            for path, error in self.failed_files:
                log.error("  - %s: %s", path, error[:200])
