"""Retry controller for a single (source, tier) compression job.

States: ``Attempt(1..max_attempts)`` then exactly one of ``SUCCESS``,
``OVERSIZED`` (budget still exceeded on the last attempt) or ``FAILED``
(the service itself errored). Convergence is not guaranteed, so
``OVERSIZED`` is an ordinary outcome.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .compression import CompressionService, compress_once
from .errors import BudgetExceeded, ExternalServiceInvocationError
from .models import (
    CompressionJob,
    JobResult,
    Outcome,
    RetryPolicy,
    SourceDocument,
    Tier,
    TierLimits,
)
from .utils import fits_budget

log = logging.getLogger(__name__)

CompressFn = Callable[[CompressionJob, CompressionService], bytes]


def check_budget(candidate: bytes, limit: int) -> None:
    """Raise ``BudgetExceeded`` when *candidate* is over *limit*."""
    if not fits_budget(candidate, limit):
        raise BudgetExceeded(len(candidate), limit)


def run_job(
    source: SourceDocument,
    tier: Tier,
    *,
    context: str,
    limits: TierLimits,
    service: CompressionService,
    policy: RetryPolicy = RetryPolicy(),
    compress: Optional[CompressFn] = None,
) -> tuple[JobResult, Optional[bytes]]:
    """Drive attempts until success, exhaustion or a service failure.

    Returns the terminal ``JobResult`` and the candidate to commit, which is
    ``None`` for failures and for oversized results when
    ``policy.keep_oversized`` is off.
    """
    compress = compress or compress_once
    tier = Tier(tier)
    job = CompressionJob(
        source=source,
        tier=tier,
        context=context,
        limit=limits.limit_for(tier),
    )
    result = JobResult(
        source=source,
        tier=tier,
        outcome=Outcome.FAILED,
        target=source.artifact_path(tier),
    )

    try:
        source.content
    except OSError as exc:
        result.error = f"Could not read source: {exc}"
        log.error("  FAILED: %s (.%s.md): %s", source.relative_path, tier.value, result.error)
        return result, None

    while True:
        result.attempts = job.attempt
        if job.strict:
            log.warning(
                "  retry %s/%s for .%s.md with stricter compression (previous %s bytes)",
                job.attempt,
                policy.max_attempts,
                tier.value,
                job.previous_size,
            )

        try:
            candidate = compress(job, service)
        except ExternalServiceInvocationError as exc:
            result.outcome = Outcome.FAILED
            result.error = str(exc)
            if exc.stderr:
                result.error += f": {exc.stderr[:200]}"
            log.error(
                "  FAILED: %s (.%s.md): %s",
                source.relative_path,
                tier.value,
                result.error,
            )
            return result, None

        result.size = len(candidate)
        try:
            check_budget(candidate, job.limit)
        except BudgetExceeded as exc:
            if job.attempt < policy.max_attempts:
                log.warning(
                    "  OVERSIZED (%s bytes > %s) for .%s.md - retrying",
                    exc.size,
                    exc.limit,
                    tier.value,
                )
                job.previous_size = exc.size
                job.attempt += 1
                continue

            result.outcome = Outcome.OVERSIZED
            log.warning(
                "  OVERSIZED (%s bytes > %s) after %s attempts: %s",
                exc.size,
                exc.limit,
                job.attempt,
                result.target,
            )
            return result, candidate if policy.keep_oversized else None

        result.outcome = Outcome.SUCCESS
        log.debug(
            "  .%s.md within budget (%s <= %s) on attempt %s",
            tier.value,
            result.size,
            job.limit,
            job.attempt,
        )
        return result, candidate
