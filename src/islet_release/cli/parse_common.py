"""Shared CLI argument parsing for common flags (--project-root, --config, -v)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from islet_release.helpers import find_repo_root


FlagSpec = tuple[str, str, Any, Callable[[str], Any] | None]


def parse_flags(argv: list[str], *specs: FlagSpec) -> tuple[dict[str, Any], list[str]]:
    """Pull the shared release flags out of argv, leaving command-specific args in order.

    specs are (key, flag, default, converter), e.g. ("config", "--config", None, path_resolver).
    Both ``--config release.yaml`` and ``--config=release.yaml`` are accepted; a flag
    given twice keeps the last value. A trailing flag with no value is left in the
    remaining args so the command's argparse reports it.
    """
    values: dict[str, Any] = {key: default for key, _flag, default, _conv in specs}
    by_flag = {flag: (key, conv) for key, flag, _default, conv in specs}
    rest: list[str] = []
    it = iter(range(len(argv)))
    for i in it:
        arg = argv[i]
        flag, eq, inline = arg.partition("=")
        if flag in by_flag and eq:
            raw = inline
        elif arg in by_flag and i + 1 < len(argv):
            raw = argv[i + 1]
            next(it)
            flag = arg
        else:
            rest.append(arg)
            continue
        key, conv = by_flag[flag]
        values[key] = conv(raw) if conv else raw
    return values, rest


def path_resolver(s: str) -> Path:
    """--project-root / --config value as an absolute path (relative to the cwd)."""
    return Path(s).resolve()


COMMON_FLAGS: tuple[FlagSpec, ...] = (
    ("project_root", "--project-root", None, path_resolver),
    ("config", "--config", None, path_resolver),
)


def parse_common(argv: list[str]) -> tuple[Path, Path | None, bool, list[str]]:
    """Return (repo_root, config_path, verbose, remaining argv).

    repo_root: --project-root, else the git toplevel of cwd, else cwd.
    """
    flags, rest = parse_flags(argv, *COMMON_FLAGS)
    verbose = False
    remaining: list[str] = []
    for a in rest:
        if a in ("-v", "--verbose"):
            verbose = True
        else:
            remaining.append(a)
    root = flags["project_root"] or find_repo_root()
    return root, flags["config"], verbose, remaining


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
