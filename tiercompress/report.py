"""Report-only mode: list tier files that are over their byte budget."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .errors import DiscoveryError
from .models import Tier, TierLimits
from .utils import HEADER_PREFIX, stat_artifact

log = logging.getLogger(__name__)


@dataclass
class TierSizeReport:
    tier: Tier
    limit: int
    file_count: int = 0
    oversized: list[tuple[Path, int]] = field(default_factory=list)


def report_sizes(
    root: Path,
    limits: TierLimits,
    tiers: Iterable[Tier] = tuple(Tier),
) -> list[TierSizeReport]:
    """Count ``*.TIER.md`` files per tier and collect those over budget.

    ``00-header.*`` files are assembly headers and are left out. Oversized
    entries are sorted largest first.
    """
    root = Path(root)
    if not root.is_dir():
        raise DiscoveryError(f"Data directory not found: {root}")

    reports: list[TierSizeReport] = []
    for tier in tiers:
        tier = Tier(tier)
        report = TierSizeReport(tier=tier, limit=limits.limit_for(tier))
        for path in sorted(root.rglob(f"*.{tier.value}.md")):
            if path.name.startswith(HEADER_PREFIX) or not path.is_file():
                continue
            artifact = stat_artifact(path, tier, limits)
            if artifact is None:
                continue
            report.file_count += 1
            if artifact.oversized:
                report.oversized.append((path, artifact.size))
        report.oversized.sort(key=lambda item: (-item[1], str(item[0])))
        reports.append(report)
    return reports


def log_size_report(reports: list[TierSizeReport], root: Path) -> int:
    """Log *reports* and return the total number of oversized files."""
    total = 0
    for report in reports:
        log.info("%s: %s files", report.tier.value, report.file_count)
        log.info("Over %s bytes:", report.limit)
        for path, size in report.oversized:
            try:
                shown = path.relative_to(root)
            except ValueError:
                shown = path
            log.warning("  %6d bytes  %s", size, shown)
        log.info("---")
        total += len(report.oversized)

    if total:
        log.warning("%s oversized file(s) found; run with --regenerate to compress", total)
    else:
        log.info("All files within size limits")
    return total
