"""Run loop: discover, classify, compress, commit, count."""

from __future__ import annotations

import logging
import time
from typing import Optional

from .commit import commit_artifact
from .config import PipelineConfig
from .context import assemble_context
from .errors import CommitError
from .models import JobResult, Outcome, SourceDocument, Staleness, Tier
from .retry import CompressFn, run_job
from .stats import RunStats
from .utils import classify_staleness

log = logging.getLogger(__name__)


def process_tier(
    source: SourceDocument,
    tier: Tier,
    config: PipelineConfig,
    context: str,
    compress: Optional[CompressFn] = None,
) -> JobResult:
    """Run one job to its terminal state and commit what it produced."""
    log.debug("  -> generating .%s.md", tier.value)
    result, candidate = run_job(
        source,
        tier,
        context=context,
        limits=config.limits,
        service=config.service,
        policy=config.policy,
        compress=compress,
    )
    if candidate is None:
        return result

    try:
        commit_artifact(source, result.target, candidate, dry_run=config.dry_run)
    except CommitError as exc:
        log.error("  FAILED: %s", exc)
        result.outcome = Outcome.FAILED
        result.error = str(exc)
        return result

    result.committed = not config.dry_run
    if result.outcome is Outcome.SUCCESS:
        log.info("  generated (%s bytes): %s", result.size, result.target)
    return result


def process_source(
    source: SourceDocument,
    config: PipelineConfig,
    context: str,
    stats: RunStats,
    compress: Optional[CompressFn] = None,
) -> list[JobResult]:
    """Process every configured tier of *source*, unless it is already in sync."""
    if config.skip_in_sync and classify_staleness(source) is Staleness.IN_SYNC:
        log.debug("SKIP (timestamps match): %s", source.relative_path)
        stats.skipped += 1
        return []

    log.info("Processing: %s", source.relative_path)
    stats.processed += 1

    results: list[JobResult] = []
    for tier in config.tiers:
        result = process_tier(source, tier, config, context, compress=compress)
        stats.record(result)
        results.append(result)
    return results


def run_pipeline(
    config: PipelineConfig,
    sources: list[SourceDocument],
    compress: Optional[CompressFn] = None,
    stats: Optional[RunStats] = None,
) -> RunStats:
    """Process *sources* one at a time and return the accumulated statistics."""
    from tqdm import tqdm

    stats = stats if stats is not None else RunStats()
    if config.dry_run:
        log.warning("DRY-RUN mode: no files will be modified")

    context = assemble_context(
        config.context_level, config.context_dir, config.standard_name
    )

    t0 = time.perf_counter()
    for source in tqdm(sources, desc="Compressing rules", disable=None):
        process_source(source, config, context, stats, compress=compress)

    log.info(
        "Processed %s of %s rules in %.2fs",
        stats.processed,
        len(sources),
        time.perf_counter() - t0,
    )
    return stats
