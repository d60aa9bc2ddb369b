"""Rule file discovery."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import DiscoveryError
from .models import SourceDocument
from .utils import SOURCE_GLOB, parse_tier_filename

log = logging.getLogger(__name__)


def discover_sources(root: Path) -> list[SourceDocument]:
    """Recursively find all ``NN-*.complete.md`` files under *root*, sorted by path.

    Raises:
        DiscoveryError: *root* does not exist or is not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise DiscoveryError(f"Data directory not found: {root}")

    sources: list[SourceDocument] = []
    for path in sorted(root.rglob(SOURCE_GLOB)):
        if not path.is_file() or parse_tier_filename(path.name) is None:
            continue
        sources.append(
            SourceDocument(path=path, root=root, mtime_ns=path.stat().st_mtime_ns)
        )

    if not sources:
        log.warning("No .complete.md files found under %s", root)
    else:
        log.debug("Discovered %s source documents under %s", len(sources), root)
    return sources
