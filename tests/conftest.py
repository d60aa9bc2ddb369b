"""Shared fixtures for the tier pipeline test suite.

Builds small rule trees under ``tmp_path`` and stands in for the external
compression service, either in-process (``FakeCompressor``) or as a real
executable script (``fake_service``).
"""

from __future__ import annotations

import json
import logging
import os
import stat
import sys
from pathlib import Path
from typing import Callable

import pytest

from tiercompress import (
    CompressionJob,
    CompressionService,
    ExternalServiceInvocationError,
    build_instructions,
)

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
log = logging.getLogger("conftest")


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """``cli.main`` reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


RULE_TEXT = """## Variable Expansion

Always quote variable expansions.

```bash
echo "$var"
```

Unquoted expansions undergo word splitting and globbing.
"""


def write_rule(root: Path, relative: str, text: str = RULE_TEXT) -> Path:
    """Create ``root/relative`` (and parents) with *text*."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def sized_markdown(size: int, heading: str = "## Rule") -> bytes:
    """Markdown body of exactly *size* bytes."""
    head = (heading + "\n").encode("utf-8")
    if size <= len(head):
        return head[:size]
    return head + b"x" * (size - len(head))


class FakeCompressor:
    """In-process compressor returning candidates of scripted sizes.

    *sizes* maps a tier value to the list of sizes returned on successive
    attempts; a size of ``None`` makes that attempt fail like a crashed
    service.
    """

    def __init__(self, sizes: dict[str, list[int | None]] | None = None):
        self.sizes = sizes or {"summary": [800], "abstract": [400]}
        self.jobs: list[CompressionJob] = []
        self.instructions: list[str] = []
        self.fail_paths: set[Path] = set()

    def __call__(self, job: CompressionJob, service: CompressionService) -> bytes:
        self.jobs.append(
            CompressionJob(
                source=job.source,
                tier=job.tier,
                context=job.context,
                limit=job.limit,
                attempt=job.attempt,
                previous_size=job.previous_size,
            )
        )
        self.instructions.append(build_instructions(job))
        if job.source.path in self.fail_paths:
            raise ExternalServiceInvocationError(
                "Compression service exited with status 1", returncode=1
            )
        planned = self.sizes[job.tier.value]
        size = planned[min(job.attempt, len(planned)) - 1]
        if size is None:
            raise ExternalServiceInvocationError(
                "Compression service exited with status 1", returncode=1
            )
        return sized_markdown(size)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Rule tree with one section, two rules and one subrule."""
    root = tmp_path / "data"
    write_rule(root, "01-layout/01-shebang.complete.md")
    write_rule(root, "01-layout/02-strict-mode.complete.md")
    write_rule(root, "01-layout/03-functions/01-naming.complete.md")
    return root


@pytest.fixture
def fake_compressor() -> FakeCompressor:
    return FakeCompressor()


FAKE_SERVICE = """#!{python}
import json
import sys
import time
from pathlib import Path

calls_path = Path({calls!r})
calls = json.loads(calls_path.read_text()) if calls_path.exists() else []
args = sys.argv[1:]
prompt = sys.stdin.read()
instructions = args[args.index("--system-prompt") + 1]
calls.append({{"args": args, "instructions": instructions, "prompt": prompt}})
calls_path.write_text(json.dumps(calls))
time.sleep({sleep})

if {exit_code}:
    sys.stderr.write("simulated service failure\\n")
    sys.exit({exit_code})

sizes = {sizes!r}
size = sizes[min(len(calls), len(sizes)) - 1]
head = "## Rule\\n"
sys.stdout.write(head + "x" * max(0, size - len(head)))
"""


@pytest.fixture
def fake_service(tmp_path: Path) -> Callable[..., tuple[CompressionService, Callable[[], list]]]:
    """Factory writing an executable stand-in for the compression CLI.

    Returns ``(service, read_calls)``; ``read_calls()`` lists every
    invocation with its argv, instructions and stdin prompt.
    """

    def _make(
        sizes: list[int] = (500,),
        exit_code: int = 0,
        name: str = "fake-claude",
        sleep: float = 0,
    ):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        calls_path = bin_dir / f"{name}.calls.json"
        script = bin_dir / name
        script.write_text(
            FAKE_SERVICE.format(
                python=sys.executable,
                calls=str(calls_path),
                sizes=list(sizes),
                exit_code=exit_code,
                sleep=sleep,
            ),
            encoding="utf-8",
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

        def read_calls() -> list:
            if not calls_path.exists():
                return []
            return json.loads(calls_path.read_text())

        log.debug("fake_service: %s sizes=%s exit=%s", script, list(sizes), exit_code)
        return CompressionService(command=str(script)), read_calls

    return _make


def set_mtime(path: Path, mtime_ns: int) -> None:
    os.utime(path, ns=(mtime_ns, mtime_ns))
