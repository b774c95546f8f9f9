"""`islet-release build <target>` and `islet-release build-all`."""

from __future__ import annotations

import argparse
import sys

from islet_release.cli.parse_common import parse_common, setup_logging
from islet_release.errors import CompileError, ReleaseError
from islet_release.pipeline.driver import Pipeline, TargetOutcome, pipeline_from_config


def report_outcome(outcome: TargetOutcome) -> None:
    """✅ line on success; ❌ line plus the driver's stderr, unmodified, on failure."""
    if outcome.ok and outcome.result is not None:
        print(f"✅ target={outcome.target_name}: installed {outcome.result.installed_path}")
        return
    err = outcome.error
    print(f"❌ {err}", file=sys.stderr)
    if isinstance(err, CompileError) and err.stderr:
        sys.stderr.write(err.stderr if err.stderr.endswith("\n") else err.stderr + "\n")


def run_build(pipeline: Pipeline, target: str) -> int:
    """Run one target. Returns 0 or 1."""
    outcome = pipeline.run(target)
    report_outcome(outcome)
    return 0 if outcome.ok else 1


def run_build_all(pipeline: Pipeline, jobs: int = 1) -> int:
    """Run every registered target, then report a consolidated failure list. Returns 0 or 1."""
    summary = pipeline.run_all(jobs=jobs)
    for outcome in summary.outcomes:
        report_outcome(outcome)
    if summary.ok:
        print(f"🎉 All {len(summary.outcomes)} targets built")
        return 0
    failed = ", ".join(o.target_name for o in summary.failed)
    print(
        f"❌ {len(summary.failed)}/{len(summary.outcomes)} targets failed: {failed}",
        file=sys.stderr,
    )
    return summary.exit_code


def _add_build_options(ap: argparse.ArgumentParser) -> None:
    ap.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-target build timeout in seconds (default: none)",
    )


def _load_pipeline(
    argv: list[str], ap: argparse.ArgumentParser
) -> tuple[Pipeline, argparse.Namespace]:
    root, config, verbose, rest = parse_common(argv)
    setup_logging(verbose)
    args = ap.parse_args(rest)
    try:
        pipeline = pipeline_from_config(root, config, timeout=args.timeout)
    except ReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
    return pipeline, args


def run_build_argv(argv: list[str] | None = None) -> None:
    """Parse argv and build one target."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []  # skip 'islet-release build'
    ap = argparse.ArgumentParser(
        prog="islet-release build", description="Release build for one target"
    )
    ap.add_argument("target", help="Target name (see `islet-release targets`)")
    _add_build_options(ap)
    pipeline, args = _load_pipeline(argv, ap)
    sys.exit(run_build(pipeline, args.target))


def run_build_all_argv(argv: list[str] | None = None) -> None:
    """Parse argv and build every registered target."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="islet-release build-all", description="Release build for all targets"
    )
    ap.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=1,
        help="Targets to build concurrently (default: 1, sequential)",
    )
    _add_build_options(ap)
    pipeline, args = _load_pipeline(argv, ap)
    sys.exit(run_build_all(pipeline, jobs=args.jobs))
