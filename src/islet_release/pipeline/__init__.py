"""Pipeline driver: run / run_all / clean over the target registry."""

from .clean import run_clean
from .driver import (
    BuildResult,
    Pipeline,
    PipelineState,
    RunSummary,
    TargetOutcome,
    pipeline_from_config,
)

__all__ = [
    "BuildResult",
    "Pipeline",
    "PipelineState",
    "RunSummary",
    "TargetOutcome",
    "pipeline_from_config",
    "run_clean",
]
