"""Pytest fixtures for islet_release tests."""

from __future__ import annotations

import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from islet_release.build.runner import Invocation
from islet_release.helpers import release_dir


class FakeRunner:
    """Records invocations; `cargo build` writes the artifact where cargo would, `cargo clean` removes target/.

    fail maps triple (or "host" for the native build) -> (exit_code, stderr).
    """

    def __init__(
        self,
        binary_name: str = "islet_cli",
        fail: Mapping[str, tuple[int, str]] | None = None,
    ) -> None:
        self.binary_name = binary_name
        self.fail = dict(fail or {})
        self.calls: list[tuple[list[str], dict[str, str], Path]] = []
        self.terminated = False

    def invoke(
        self,
        cmd: Sequence[str],
        env: Mapping[str, str],
        cwd: Path,
        timeout: float | None = None,
    ) -> Invocation:
        self.calls.append((list(cmd), dict(env), Path(cwd)))
        if list(cmd[:2]) == ["cargo", "build"]:
            triple = next((c.split("=", 1)[1] for c in cmd if c.startswith("--target=")), None)
            key = triple or "host"
            if key in self.fail:
                code, stderr = self.fail[key]
                return Invocation(code, "", stderr)
            out = release_dir(Path(cwd), triple) / self.binary_name
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(b"\x7fELF-" + key.encode())
            out.chmod(0o600)
            return Invocation(0, "", "   Finished `release` profile [optimized]\n")
        if list(cmd[:2]) == ["cargo", "clean"]:
            shutil.rmtree(Path(cwd) / "target", ignore_errors=True)
            return Invocation(0)
        return Invocation(0)

    def terminate(self) -> None:
        self.terminated = True

    def build_calls(self) -> list[tuple[list[str], dict[str, str], Path]]:
        return [c for c in self.calls if c[0][:2] == ["cargo", "build"]]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def islet_repo(tmp_path: Path) -> Path:
    """Repository tree with the default layout: cli/, executable cross toolchain, static OpenSSL."""
    root = tmp_path / "islet"
    (root / "cli").mkdir(parents=True)
    tc = root / "assets/toolchain/aarch64-none-linux-gnu/bin/aarch64-none-linux-gnu-g++"
    tc.parent.mkdir(parents=True)
    tc.write_text("#!/bin/sh\n")
    tc.chmod(0o755)
    lib = root / "assets/openssl/lib"
    lib.mkdir(parents=True)
    (lib / "libssl.a").write_bytes(b"!<arch>\n")
    (lib / "libcrypto.a").write_bytes(b"!<arch>\n")
    (root / "assets/openssl/include/openssl").mkdir(parents=True)
    return root


@pytest.fixture
def make_runner() -> type[FakeRunner]:
    """FakeRunner class, for tests that need failure injection."""
    return FakeRunner
