"""Shared helpers for islet_release (triple naming, paths, repository root).

Used by targets, build, install and pipeline modules.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)

# --- Triple naming ---


def triple_env_suffix(triple: str) -> str:
    """Triple as used in cc-crate variables (e.g. aarch64-unknown-linux-gnu -> aarch64_unknown_linux_gnu)."""
    return triple.replace("-", "_").replace(".", "_")


def cc_env_var(triple: str) -> str:
    """Variable the cc crate reads for the C/C++ compiler of ``triple``."""
    return f"CC_{triple_env_suffix(triple)}"


def cargo_linker_env_var(triple: str) -> str:
    """Variable cargo reads for the linker of ``triple`` (CARGO_TARGET_<TRIPLE>_LINKER)."""
    return f"CARGO_TARGET_{triple_env_suffix(triple).upper()}_LINKER"


# --- Path ---


def release_dir(workspace: Path, triple: str | None) -> Path:
    """Cargo release output dir: target/<triple>/release, or target/release for the host."""
    if triple:
        return workspace / "target" / triple / "release"
    return workspace / "target" / "release"


def is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def resolve_under(root: Path, value: str | Path) -> Path:
    """Absolute paths unchanged; relative ones resolved against root."""
    p = Path(value)
    return p if p.is_absolute() else (root / p)


def find_repo_root(start: Path | None = None) -> Path:
    """``git rev-parse --show-toplevel`` from start (default cwd); falls back to start."""
    base = (start or Path.cwd()).resolve()
    try:
        r = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=base,
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, OSError) as e:
        log.debug("git not available: %s", e)
        return base
    if r.returncode != 0 or not r.stdout.strip():
        log.debug("Not a git checkout, using %s", base)
        return base
    return Path(r.stdout.strip())
