"""`islet-release targets`: list registered targets in build order."""

from __future__ import annotations

import os
import sys

from islet_release.cli.parse_common import parse_common, setup_logging
from islet_release.errors import ReleaseError
from islet_release.targets.config import build_registry, resolve_config_path
from islet_release.targets.registry import TargetRegistry


def format_targets(registry: TargetRegistry) -> list[str]:
    lines: list[str] = []
    for d in registry:
        triple = d.triple or "host"
        line = f"{d.name:<16} {triple:<28} -> {d.dest_dir / d.dest_name}"
        if d.toolchain_path is not None:
            line += f"  (toolchain: {d.toolchain_path})"
        lines.append(line)
    return lines


def run_targets_argv(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    root, config, verbose, _rest = parse_common(argv)
    setup_logging(verbose)
    try:
        registry, _layout = build_registry(root, resolve_config_path(root, config, os.environ))
    except ReleaseError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
    for line in format_targets(registry):
        print(line)
    sys.exit(0)
