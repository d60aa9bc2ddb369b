"""Rule tier compression pipeline.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from tiercompress import X`` works.
"""

__version__ = "1.0.0"

from .commit import commit_artifact
from .compression import (
    CompressionService,
    build_instructions,
    build_prompt,
    compress_once,
)
from .config import PipelineConfig, RunMode
from .context import assemble_context, context_file
from .errors import (
    BudgetExceeded,
    CommitError,
    DiscoveryError,
    ExternalServiceInvocationError,
    TierPipelineError,
)
from .models import (
    DERIVED_TIERS,
    CompressionJob,
    ContextLevel,
    JobResult,
    Outcome,
    RetryPolicy,
    SourceDocument,
    Staleness,
    Tier,
    TierArtifact,
    TierLimits,
)
from .report import log_size_report, report_sizes
from .retry import check_budget, run_job
from .runner import process_source, process_tier, run_pipeline
from .sources import discover_sources
from .stats import RunStats, TierCounts
from .utils import (
    DEFAULT_LIMITS,
    DEFAULT_MAX_ATTEMPTS,
    classify_staleness,
    fits_budget,
    heading_level,
    parse_tier_filename,
    stat_artifact,
)

__all__ = [
    "__version__",
    # Models
    "Tier",
    "DERIVED_TIERS",
    "ContextLevel",
    "Staleness",
    "Outcome",
    "TierLimits",
    "RetryPolicy",
    "SourceDocument",
    "TierArtifact",
    "CompressionJob",
    "JobResult",
    # Errors
    "TierPipelineError",
    "DiscoveryError",
    "ExternalServiceInvocationError",
    "BudgetExceeded",
    "CommitError",
    # Constants
    "DEFAULT_LIMITS",
    "DEFAULT_MAX_ATTEMPTS",
    # Utils
    "parse_tier_filename",
    "heading_level",
    "stat_artifact",
    "classify_staleness",
    "fits_budget",
    # Discovery
    "discover_sources",
    # Context
    "context_file",
    "assemble_context",
    # Compression
    "CompressionService",
    "build_instructions",
    "build_prompt",
    "compress_once",
    # Retry
    "check_budget",
    "run_job",
    # Commit
    "commit_artifact",
    # Statistics
    "RunStats",
    "TierCounts",
    # Report
    "report_sizes",
    "log_size_report",
    # Runner
    "PipelineConfig",
    "RunMode",
    "process_tier",
    "process_source",
    "run_pipeline",
]
