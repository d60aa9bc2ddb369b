"""Exception hierarchy for the tier pipeline.

Only ``DiscoveryError`` aborts a run. Everything else is caught at the job
boundary and turned into a ``JobResult``.
"""

from __future__ import annotations

from typing import Optional


class TierPipelineError(Exception):
    """Base exception for all pipeline errors."""


class DiscoveryError(TierPipelineError):
    """The manifest root is missing or unreadable."""


class ExternalServiceInvocationError(TierPipelineError):
    """The compression subprocess could not be run or exited non-zero."""

    def __init__(
        self,
        message: str,
        *,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class BudgetExceeded(TierPipelineError):
    """A candidate came back larger than its tier allows."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"{size} bytes > {limit} byte limit")
        self.size = size
        self.limit = limit


class CommitError(TierPipelineError):
    """Writing, renaming or stamping an accepted artifact failed."""
