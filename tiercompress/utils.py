"""Cross-cutting helpers: constants, path utilities, staleness and budgets."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from .models import SourceDocument, Staleness, Tier, TierArtifact, TierLimits

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_LIMITS = TierLimits()
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_CLAUDE_CMD = "claude"
DEFAULT_STANDARD_NAME = "BASH-CODING-STANDARD"
SOURCE_GLOB = "[0-9][0-9]-*.complete.md"
HEADER_PREFIX = "00-header"
SECTION_PREFIX = "00-section"

TIER_FILE_RE = re.compile(r"^(?P<ordinal>\d{2})-(?P<name>.+)\.(?P<tier>complete|summary|abstract)\.md$")


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def parse_tier_filename(name: str) -> Optional[tuple[str, str, Tier]]:
    """Split ``NN-name.TIER.md`` into ``(ordinal, name, tier)``."""
    m = TIER_FILE_RE.match(name)
    if not m:
        return None
    return m.group("ordinal"), m.group("name"), Tier(m.group("tier"))


def heading_level(source: SourceDocument) -> int:
    """Markdown heading depth the derived file must open with.

    Section files (``00-section*``) open with ``#``, rules directly inside a
    section directory with ``##``, subrules one directory deeper with ``###``.
    """
    if source.path.name.startswith(SECTION_PREFIX):
        return 1
    depth = len(source.relative_path.parts) - 1
    return 2 if depth <= 1 else 3


def stat_artifact(path: Path, tier: Tier, limits: TierLimits = DEFAULT_LIMITS) -> Optional[TierArtifact]:
    """Return a ``TierArtifact`` for *path*, or ``None`` when it does not exist."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    return TierArtifact(
        path=path,
        tier=tier,
        size=st.st_size,
        mtime_ns=st.st_mtime_ns,
        oversized=st.st_size > limits.limit_for(tier),
    )


# ---------------------------------------------------------------------------
# Staleness
# ---------------------------------------------------------------------------


def file_mtime_ns(path: Path) -> Optional[int]:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def classify_staleness(
    source: SourceDocument,
    summary_path: Optional[Path] = None,
    abstract_path: Optional[Path] = None,
) -> Staleness:
    """Return ``IN_SYNC`` only when all three files share one exact mtime.

    The committer stamps the source's mtime onto every artifact it writes, so
    a newer artifact is just as stale as an older one.
    """
    summary_path = summary_path or source.artifact_path(Tier.SUMMARY)
    abstract_path = abstract_path or source.artifact_path(Tier.ABSTRACT)

    mtimes = [file_mtime_ns(p) for p in (source.path, summary_path, abstract_path)]
    if any(m is None for m in mtimes):
        return Staleness.STALE
    if len(set(mtimes)) == 1:
        return Staleness.IN_SYNC
    return Staleness.STALE


# ---------------------------------------------------------------------------
# Size validation
# ---------------------------------------------------------------------------


def fits_budget(candidate: bytes, limit: int) -> bool:
    return len(candidate) <= limit
