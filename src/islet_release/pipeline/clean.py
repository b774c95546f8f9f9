"""Remove cargo's output tree and stray generated example directories. Idempotent."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Mapping
from pathlib import Path

from islet_release.build.invoker import BUILD_DRIVER
from islet_release.build.runner import CommandRunner
from islet_release.errors import CleanError

log = logging.getLogger(__name__)


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as e:
        msg = f"cannot remove {path}: {e}"
        raise CleanError(msg) from e


def run_clean(
    workspace: Path,
    runner: CommandRunner,
    env: Mapping[str, str],
    stray_dirs: Iterable[str] = (),
) -> list[Path]:
    """cargo clean (when workspace/target exists) and rm -rf each stray dir. Returns removed paths."""
    removed: list[Path] = []
    target_dir = workspace / "target"
    if target_dir.exists():
        try:
            r = runner.invoke([BUILD_DRIVER, "clean"], env, workspace)
        except FileNotFoundError:
            log.warning("%s not in PATH; removing %s directly", BUILD_DRIVER, target_dir)
            _remove_tree(target_dir)
        except OSError as e:
            msg = f"cannot run {BUILD_DRIVER} clean: {e}"
            raise CleanError(msg) from e
        else:
            if r.exit_code != 0:
                msg = f"{BUILD_DRIVER} clean exited with {r.exit_code}: {r.stderr.strip()}"
                raise CleanError(msg)
        removed.append(target_dir)
    for name in stray_dirs:
        p = workspace / name
        if p.exists():
            _remove_tree(p)
            removed.append(p)
    for p in removed:
        print(f"🧹 Removed {p}")
    return removed
