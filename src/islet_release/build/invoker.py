"""Invoke ``cargo build -r`` for one target and return the produced artifact path.

Native targets build for the host (no --target); artifacts land in
<workspace>/target/release/<binary>. Cross targets pass --target <triple> and land
in <workspace>/target/<triple>/release/<binary>.
"""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Mapping
from pathlib import Path

from islet_release.build.runner import CommandRunner
from islet_release.errors import CompileError, DependencyUnresolved, ToolchainNotFound
from islet_release.helpers import is_executable_file, release_dir
from islet_release.targets.registry import TargetDescriptor

log = logging.getLogger(__name__)

BUILD_DRIVER = "cargo"

# openssl-sys build script diagnostics when it cannot find the installation
_OPENSSL_NOT_FOUND = re.compile(
    r"Could not find directory of OpenSSL installation"
    r"|OpenSSL library directory does not exist"
    r"|OpenSSL include directory does not exist",
)


def build_command(descriptor: TargetDescriptor) -> list[str]:
    """cargo build -r [--target <triple>]."""
    cmd = [BUILD_DRIVER, "build", "-r"]
    if descriptor.triple:
        cmd.append(f"--target={descriptor.triple}")
    return cmd


def artifact_path(workspace: Path, descriptor: TargetDescriptor, binary_name: str) -> Path:
    return release_dir(workspace, descriptor.triple) / binary_name


def _library_candidates(lib_dir: Path, name: str, static: bool) -> list[Path]:
    if static:
        return [lib_dir / f"lib{name}.a"]
    return [lib_dir / f"lib{name}.a", lib_dir / f"lib{name}.so", lib_dir / f"lib{name}.dylib"]


def check_toolchain(descriptor: TargetDescriptor) -> None:
    tc = descriptor.toolchain_path
    if tc is None:
        return
    if not is_executable_file(tc):
        msg = f"cross toolchain not found or not executable: {tc}"
        raise ToolchainNotFound(msg, target=descriptor.name)


def check_dependencies(descriptor: TargetDescriptor, env: Mapping[str, str]) -> None:
    """Every required library must exist under env[library_dir_env] (static archive when OPENSSL_STATIC-style flag set)."""
    if not descriptor.required_libraries or not descriptor.library_dir_env:
        return
    lib_dir = Path(env.get(descriptor.library_dir_env, ""))
    static = any(
        k.endswith("_STATIC") and env.get(k) not in (None, "", "0")
        for k in descriptor.extra_env
    )
    missing = [
        name
        for name in descriptor.required_libraries
        if not any(p.is_file() for p in _library_candidates(lib_dir, name, static))
    ]
    if missing:
        kind = "static " if static else ""
        msg = f"{kind}libraries {', '.join(missing)} not found under {lib_dir}"
        raise DependencyUnresolved(msg, target=descriptor.name)


def build(
    descriptor: TargetDescriptor,
    env: Mapping[str, str],
    runner: CommandRunner,
    workspace: Path,
    binary_name: str,
    timeout: float | None = None,
) -> Path:
    """Run the release build for descriptor. Returns the source artifact path."""
    check_toolchain(descriptor)
    check_dependencies(descriptor, env)
    if not workspace.is_dir():
        msg = f"workspace directory does not exist: {workspace}"
        raise CompileError(msg, target=descriptor.name)
    cmd = build_command(descriptor)
    try:
        result = runner.invoke(cmd, env, workspace, timeout)
    except FileNotFoundError as e:
        msg = f"build driver '{BUILD_DRIVER}' not found in PATH"
        raise ToolchainNotFound(msg, target=descriptor.name) from e
    except PermissionError as e:
        msg = f"build driver '{BUILD_DRIVER}' is not executable: {e}"
        raise ToolchainNotFound(msg, target=descriptor.name) from e
    except OSError as e:
        msg = f"cannot start {' '.join(cmd)}: {e}"
        raise CompileError(msg, target=descriptor.name) from e
    except subprocess.TimeoutExpired as e:
        msg = f"build timed out after {timeout}s"
        raise CompileError(msg, target=descriptor.name) from e
    except KeyboardInterrupt as e:
        msg = "build cancelled"
        raise CompileError(msg, target=descriptor.name, cancelled=True) from e

    if result.exit_code != 0:
        if _OPENSSL_NOT_FOUND.search(result.stderr):
            raise DependencyUnresolved(result.stderr.rstrip(), target=descriptor.name)
        msg = f"{' '.join(cmd)} exited with {result.exit_code}"
        raise CompileError(
            msg,
            target=descriptor.name,
            exit_code=result.exit_code,
            stderr=result.stderr,
        )

    artifact = artifact_path(workspace, descriptor, binary_name)
    if not artifact.is_file():
        msg = f"build succeeded but artifact is missing: {artifact}"
        raise CompileError(msg, target=descriptor.name, exit_code=0, stderr=result.stderr)
    log.debug("%s: built %s", descriptor.name, artifact)
    return artifact
