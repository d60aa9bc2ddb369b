"""Shared data models for the tier pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional


class Tier(str, Enum):
    COMPLETE = "complete"
    SUMMARY = "summary"
    ABSTRACT = "abstract"


DERIVED_TIERS = (Tier.SUMMARY, Tier.ABSTRACT)


class ContextLevel(str, Enum):
    """How much of the whole corpus is sent along with each rule.

    Members are declared in increasing order of size and cost.
    """

    NONE = "none"
    TOC = "toc"
    ABSTRACT = "abstract"
    SUMMARY = "summary"
    COMPLETE = "complete"

    @property
    def rank(self) -> int:
        return list(ContextLevel).index(self)

    # Ordered by declaration, not alphabetically.
    def __lt__(self, other: "ContextLevel") -> bool:
        if not isinstance(other, ContextLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "ContextLevel") -> bool:
        if not isinstance(other, ContextLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: "ContextLevel") -> bool:
        if not isinstance(other, ContextLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: "ContextLevel") -> bool:
        if not isinstance(other, ContextLevel):
            return NotImplemented
        return self.rank >= other.rank


class Staleness(str, Enum):
    IN_SYNC = "in_sync"
    STALE = "stale"


class Outcome(str, Enum):
    SUCCESS = "success"
    OVERSIZED = "oversized"
    FAILED = "failed"


@dataclass(frozen=True)
class TierLimits:
    """Byte budget per tier. The complete budget is informational only."""

    complete: int = 20_000
    summary: int = 10_000
    abstract: int = 1_500

    def limit_for(self, tier: Tier) -> int:
        return getattr(self, Tier(tier).value)

    def with_overrides(
        self,
        *,
        summary: Optional[int] = None,
        abstract: Optional[int] = None,
    ) -> "TierLimits":
        return replace(
            self,
            summary=self.summary if summary is None else summary,
            abstract=self.abstract if abstract is None else abstract,
        )


@dataclass(frozen=True)
class RetryPolicy:
    """How hard a job tries before settling for an oversized candidate."""

    max_attempts: int = 3
    keep_oversized: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


@dataclass
class SourceDocument:
    """A canonical ``NN-name.complete.md`` rule file. Read-only to the pipeline."""

    path: Path
    root: Path
    mtime_ns: int = 0
    _content: Optional[bytes] = field(default=None, repr=False, compare=False)
    _content_mtime_ns: Optional[int] = field(default=None, repr=False, compare=False)

    @property
    def tier(self) -> Tier:
        return Tier.COMPLETE

    @property
    def base_name(self) -> str:
        """``01-layout`` for ``01-layout.complete.md``."""
        return self.path.name[: -len(".complete.md")]

    @property
    def relative_path(self) -> Path:
        try:
            return self.path.relative_to(self.root)
        except ValueError:
            return self.path

    @property
    def content(self) -> bytes:
        """Source bytes, read once. Raises ``OSError`` if the file is unreadable."""
        if self._content is None:
            mtime_ns = self.path.stat().st_mtime_ns
            self._content = self.path.read_bytes()
            self._content_mtime_ns = mtime_ns
            self.mtime_ns = mtime_ns
        return self._content

    @property
    def content_mtime_ns(self) -> Optional[int]:
        """mtime observed just before ``content`` was read, if it has been."""
        return self._content_mtime_ns

    def artifact_path(self, tier: Tier) -> Path:
        return self.path.with_name(f"{self.base_name}.{Tier(tier).value}.md")


@dataclass
class TierArtifact:
    """A derived summary/abstract file as found on disk."""

    path: Path
    tier: Tier
    size: int = 0
    mtime_ns: int = 0
    oversized: bool = False


@dataclass
class CompressionJob:
    """One (source, tier) unit of work, one attempt at a time."""

    source: SourceDocument
    tier: Tier
    context: str
    limit: int
    attempt: int = 1
    previous_size: Optional[int] = None

    @property
    def strict(self) -> bool:
        return self.attempt > 1


@dataclass
class JobResult:
    """Terminal outcome of a job, fed to the statistics aggregator."""

    source: SourceDocument
    tier: Tier
    outcome: Outcome
    target: Path
    size: int = 0
    attempts: int = 0
    committed: bool = False
    error: Optional[str] = None
