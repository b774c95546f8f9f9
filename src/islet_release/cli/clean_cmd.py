"""`islet-release clean`: cargo clean + remove stray generated dirs."""

from __future__ import annotations

import sys

from islet_release.cli.parse_common import parse_common, setup_logging
from islet_release.errors import ReleaseError
from islet_release.pipeline.driver import Pipeline, pipeline_from_config


def run_clean_cmd(pipeline: Pipeline) -> int:
    """Returns 0 (also when there was nothing to remove) or 1 when removal is denied."""
    try:
        removed = pipeline.clean()
    except ReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    if not removed:
        print("✅ Nothing to clean")
    else:
        print("✅ Clean complete")
    return 0


def run_clean_argv(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    root, config, verbose, rest = parse_common(argv)
    setup_logging(verbose)
    if rest:
        print(f"Error: unexpected arguments for clean: {' '.join(rest)}", file=sys.stderr)
        sys.exit(1)
    try:
        pipeline = pipeline_from_config(root, config)
    except ReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(run_clean_cmd(pipeline))
