"""Run configuration, built from the parsed command line."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .compression import CompressionService
from .models import DERIVED_TIERS, ContextLevel, RetryPolicy, Tier, TierLimits
from .utils import DEFAULT_LIMITS, DEFAULT_STANDARD_NAME


class RunMode(str, Enum):
    REPORT = "report-only"
    REGENERATE = "regenerate"
    FORCE = "force"


@dataclass(frozen=True)
class PipelineConfig:
    data_dir: Path
    context_dir: Path
    mode: RunMode = RunMode.REPORT
    tiers: tuple[Tier, ...] = DERIVED_TIERS
    context_level: ContextLevel = ContextLevel.NONE
    standard_name: str = DEFAULT_STANDARD_NAME
    limits: TierLimits = DEFAULT_LIMITS
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    service: CompressionService = field(default_factory=CompressionService)
    dry_run: bool = False

    @property
    def skip_in_sync(self) -> bool:
        return self.mode is RunMode.REGENERATE

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "PipelineConfig":
        data_dir = Path(args.data_dir)
        context_dir: Optional[Path] = args.context_dir
        if context_dir is None:
            context_dir = data_dir.resolve().parent

        return cls(
            data_dir=data_dir,
            context_dir=Path(context_dir),
            mode=RunMode(args.mode),
            tiers=(Tier(args.tier),) if args.tier else DERIVED_TIERS,
            context_level=ContextLevel(args.context_level),
            standard_name=args.standard_name,
            limits=DEFAULT_LIMITS.with_overrides(
                summary=args.summary_limit,
                abstract=args.abstract_limit,
            ),
            policy=RetryPolicy(
                max_attempts=args.max_attempts,
                keep_oversized=not args.discard_oversized,
            ),
            service=CompressionService(
                command=args.claude_cmd,
                timeout=args.timeout,
            ),
            dry_run=args.dry_run,
        )
