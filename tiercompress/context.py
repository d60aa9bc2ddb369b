"""Whole-corpus context sent alongside each rule to the compressor."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import ContextLevel
from .utils import DEFAULT_STANDARD_NAME

log = logging.getLogger(__name__)


def context_file(
    level: ContextLevel,
    context_dir: Path,
    standard_name: str = DEFAULT_STANDARD_NAME,
) -> Path | None:
    """Aggregate file backing *level*, e.g. ``BASH-CODING-STANDARD.toc.md``."""
    level = ContextLevel(level)
    if level is ContextLevel.NONE:
        return None
    return Path(context_dir) / f"{standard_name}.{level.value}.md"


def assemble_context(
    level: ContextLevel,
    context_dir: Path,
    standard_name: str = DEFAULT_STANDARD_NAME,
) -> str:
    """Return the context payload for *level*, or ``""`` for ``none``.

    A missing or unreadable aggregate file degrades to ``none`` with a
    warning.
    """
    path = context_file(level, context_dir, standard_name)
    if path is None:
        return ""

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.warning(
            "Context file for level '%s' not found (%s); continuing without context",
            ContextLevel(level).value,
            path,
        )
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        log.warning(
            "Context file for level '%s' could not be read (%s: %s); continuing without context",
            ContextLevel(level).value,
            path,
            exc,
        )
        return ""

    log.info(
        "Context level '%s': %s bytes from %s",
        ContextLevel(level).value,
        len(text.encode("utf-8")),
        path,
    )
    return text
