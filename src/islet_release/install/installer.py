"""Install a built artifact: copy into dest_dir with mode 0755 via temp file + atomic rename."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

from islet_release.errors import InstallIOError

log = logging.getLogger(__name__)

INSTALL_MODE = 0o755


def ensure_dir(path: Path) -> Path:
    """mkdir -p. Raises InstallIOError when the directory cannot be created."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"cannot create output directory {path}: {e}"
        raise InstallIOError(msg) from e
    return path


def install(source_path: Path, dest_dir: Path, dest_name: str) -> Path:
    """Copy source_path to dest_dir/dest_name with mode 0755. Returns the installed path.

    The copy is written to a temporary file in dest_dir and renamed over the
    destination, so a failure never leaves a truncated executable and never
    touches a previously installed file.
    """
    if not source_path.is_file():
        msg = f"artifact not found: {source_path}"
        raise InstallIOError(msg)
    ensure_dir(dest_dir)
    installed = dest_dir / dest_name
    tmp: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dest_name}.", suffix=".tmp", dir=dest_dir)
        os.close(fd)
        tmp = Path(tmp_name)
        shutil.copyfile(source_path, tmp)
        os.chmod(tmp, INSTALL_MODE)
        os.replace(tmp, installed)
        tmp = None
    except OSError as e:
        msg = f"cannot install {source_path} -> {installed}: {e}"
        raise InstallIOError(msg) from e
    finally:
        if tmp is not None:
            with contextlib.suppress(OSError):
                tmp.unlink()
    log.debug("installed %s -> %s (mode %o)", source_path, installed, INSTALL_MODE)
    return installed
