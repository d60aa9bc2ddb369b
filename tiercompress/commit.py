"""Publish accepted candidates: temp file, atomic rename, metadata sync."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from .errors import CommitError
from .models import SourceDocument

log = logging.getLogger(__name__)


def _sync_metadata(source: Path, target: Path, mtime_ns: Optional[int] = None) -> None:
    """Copy mode bits and atime/mtime from *source* onto *target*.

    *mtime_ns*, when given, is stamped instead of the source's current mtime.
    Ownership follows when running as root; elsewhere it is left alone.
    """
    st = source.stat()
    shutil.copymode(source, target)
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        try:
            os.chown(target, st.st_uid, st.st_gid)
        except OSError as exc:
            log.debug("Could not copy ownership onto %s: %s", target, exc)
    os.utime(target, ns=(st.st_atime_ns, st.st_mtime_ns if mtime_ns is None else mtime_ns))


def commit_artifact(
    source: SourceDocument,
    target: Path,
    candidate: bytes,
    *,
    dry_run: bool = False,
) -> Path:
    """Atomically write *candidate* to *target* and stamp it from *source*.

    The stamped mtime is the one observed when the source content was read,
    so an edit made while the job ran leaves the artifact stale.

    The destination path is never opened for writing; readers see either the
    previous artifact or the new one.

    Raises:
        CommitError: the write, rename or metadata sync failed.
    """
    target = Path(target)
    if dry_run:
        log.info("  [DRY-RUN] would write %s bytes to %s", len(candidate), target)
        return target

    tmp_path: Path | None = None
    try:
        fd, name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        tmp_path = Path(name)
        with os.fdopen(fd, "wb") as fh:
            fh.write(candidate)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, target)
        tmp_path = None
        _sync_metadata(source.path, target, source.content_mtime_ns)
    except OSError as exc:
        raise CommitError(f"Failed to write {target}: {exc}") from exc
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)

    log.debug("  committed %s (%s bytes)", target, len(candidate))
    return target
