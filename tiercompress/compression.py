"""One compression attempt: build the instructions, run the external service.

The strict-mode wording is a best-effort nudge to the service, not a
deterministic size reduction. Nothing here validates or retries.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from typing import Optional

from .errors import ExternalServiceInvocationError
from .models import CompressionJob, Tier
from .utils import DEFAULT_CLAUDE_CMD, heading_level

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionService:
    """How to launch the external compressor.

    The service reads the user prompt on stdin and writes the compressed
    markdown to stdout. ``timeout`` is ``None`` by default: a hung service
    stalls the run until it is killed from outside.
    """

    command: str = DEFAULT_CLAUDE_CMD
    extra_args: tuple[str, ...] = field(default_factory=tuple)
    timeout: Optional[float] = None

    def argv(self, instructions: str) -> list[str]:
        return [
            self.command,
            "--print",
            *self.extra_args,
            "--system-prompt",
            instructions,
        ]


# ---------------------------------------------------------------------------
# Instruction payloads
# ---------------------------------------------------------------------------

_TIER_RULES: dict[Tier, list[str]] = {
    Tier.SUMMARY: [
        "Never alter, simplify or reformat code examples; keep their exact syntax.",
        "Never drop salient technical details; accuracy comes first.",
        "Keep every rationale point, condensing the wording only.",
        "Keep the 3-5 most critical anti-patterns with their examples.",
        "Keep the 2-3 most important edge cases.",
        "Keep the structure: title, rationale, examples, anti-patterns, edge cases.",
    ],
    Tier.ABSTRACT: [
        "Never alter code examples; keep their exact syntax but use minimal ones.",
        "State the rule in one bold sentence.",
        "Keep the top 2-3 rationale points, the most measurable ones.",
        "One minimal, accurate code example of 5-8 lines at most.",
        "Only the 1-2 most critical anti-patterns, inline with `->` where possible.",
        "Every word must add unique value.",
    ],
}

_STRICT_RULES: dict[Tier, list[str]] = {
    Tier.SUMMARY: [
        "Never alter code examples; keep their exact syntax.",
        "Reduce the rationale to the 2-3 key points.",
        "Keep only the 2-3 most critical anti-patterns.",
        "Keep only the 1-2 most important edge cases.",
        "Remove verbose explanations, obvious statements and repetition.",
    ],
    Tier.ABSTRACT: [
        "Never alter code examples; keep their exact syntax.",
        "ONE rationale point only, the most critical one.",
        "ONE minimal code example of 3-5 lines; prefer inline backticks.",
        "ONE anti-pattern at most.",
        "Remove all explanatory text and abbreviate aggressively.",
    ],
}

_OUTPUT_RULES = [
    "Output ONLY the compressed markdown document, nothing before or after it.",
    "No meta-commentary about the compression, no notes on what was removed.",
    "The output is concatenated verbatim into the published standard.",
]


def build_instructions(job: CompressionJob, level: Optional[int] = None) -> str:
    """Render the system instructions for one attempt of *job*."""
    tier = Tier(job.tier)
    if level is None:
        level = heading_level(job.source)
    hashes = "#" * level

    if job.strict and job.previous_size is not None:
        target = (
            f"Maximum {job.limit:,} bytes (STRICT - previous attempt was "
            f"{job.previous_size} bytes, which is over the limit)."
        )
    elif job.strict:
        target = f"Maximum {job.limit:,} bytes (STRICT)."
    else:
        target = f"Maximum {job.limit:,} bytes (hard limit)."

    rules = _STRICT_RULES[tier] if job.strict else _TIER_RULES[tier]
    lines = [
        "You are a technical documentation compressor for coding-standard rules.",
        "",
        f"TASK: Compress the rule document given on input into its .{tier.value}.md form.",
        "",
        f"TARGET SIZE: {target}",
        "",
        "REQUIREMENTS:",
        f"1. The first line must be a level-{level} markdown heading starting with '{hashes} '.",
    ]
    lines.extend(f"{i}. {rule}" for i, rule in enumerate(rules, start=2))
    lines.append("")
    lines.append("OUTPUT:")
    lines.extend(f"- {rule}" for rule in _OUTPUT_RULES)
    lines.append(f"- The result MUST be at most {job.limit} bytes.")
    return "\n".join(lines) + "\n"


def build_prompt(job: CompressionJob) -> str:
    """User prompt: optional corpus context followed by the rule source."""
    parts: list[str] = []
    if job.context:
        parts.append(
            "Context: the full standard, for reference only. Where a concept is "
            "already documented elsewhere, refer to it instead of re-explaining it.\n"
        )
        parts.append("<standard>\n" + job.context.rstrip("\n") + "\n</standard>\n")
    parts.append(f"Rule file: {job.source.relative_path}\n")
    parts.append(
        "<rule>\n" + job.source.content.decode("utf-8", errors="replace").rstrip("\n") + "\n</rule>\n"
    )
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Service invocation
# ---------------------------------------------------------------------------


def compress_once(job: CompressionJob, service: CompressionService) -> bytes:
    """Run the service once for *job* and return the raw candidate bytes.

    Raises:
        ExternalServiceInvocationError: the binary is missing, could not be
            started, timed out or exited non-zero.
    """
    instructions = build_instructions(job)
    prompt = build_prompt(job)
    argv = service.argv(instructions)

    log.debug(
        "compress_once: %s -> %s attempt=%s strict=%s prompt=%s bytes",
        job.source.relative_path,
        job.tier.value,
        job.attempt,
        job.strict,
        len(prompt.encode("utf-8")),
    )
    t0 = time.perf_counter()
    try:
        completed = subprocess.run(
            argv,
            input=prompt.encode("utf-8"),
            capture_output=True,
            check=False,
            timeout=service.timeout,
        )
    except FileNotFoundError as exc:
        raise ExternalServiceInvocationError(
            f"Compression service not found: {service.command}"
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalServiceInvocationError(
            f"Compression service timed out after {service.timeout}s"
        ) from exc
    except OSError as exc:
        raise ExternalServiceInvocationError(
            f"Could not run compression service {service.command}: {exc}"
        ) from exc

    stderr = completed.stderr.decode("utf-8", errors="replace").strip()
    if completed.returncode != 0:
        raise ExternalServiceInvocationError(
            f"Compression service exited with status {completed.returncode}",
            returncode=completed.returncode,
            stderr=stderr,
        )
    if stderr:
        log.debug("compress_once: service stderr: %s", stderr[:500])

    log.debug(
        "compress_once: %s bytes in %.2fs",
        len(completed.stdout),
        time.perf_counter() - t0,
    )
    return completed.stdout
