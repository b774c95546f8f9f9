"""Process boundary for the build driver. Tests substitute a fake CommandRunner."""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Invocation:
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class CommandRunner(Protocol):
    def invoke(
        self,
        cmd: Sequence[str],
        env: Mapping[str, str],
        cwd: Path,
        timeout: float | None = None,
    ) -> Invocation: ...

    def terminate(self) -> None: ...


class SubprocessRunner:
    """Run commands with subprocess.Popen, keeping the live children so they can be killed.

    subprocess.TimeoutExpired and KeyboardInterrupt propagate after the child has
    been killed; OSError (e.g. FileNotFoundError) propagates when the executable
    cannot be started. After terminate(), running and later invocations raise
    KeyboardInterrupt. Output that is not valid UTF-8 is backslash-escaped.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: set[subprocess.Popen[str]] = set()
        self._terminated = False

    def invoke(
        self,
        cmd: Sequence[str],
        env: Mapping[str, str],
        cwd: Path,
        timeout: float | None = None,
    ) -> Invocation:
        log.debug("run: %s (cwd=%s, timeout=%s)", " ".join(cmd), cwd, timeout)
        with self._lock:
            if self._terminated:
                raise KeyboardInterrupt
            proc = subprocess.Popen(
                list(cmd),
                cwd=cwd,
                env=dict(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="backslashreplace",
            )
            self._active.add(proc)
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except (subprocess.TimeoutExpired, KeyboardInterrupt):
            proc.kill()
            proc.communicate()
            raise
        finally:
            with self._lock:
                self._active.discard(proc)
        if self._terminated:
            raise KeyboardInterrupt
        return Invocation(proc.returncode, stdout or "", stderr or "")

    def terminate(self) -> None:
        """Kill every running child and refuse further invocations."""
        with self._lock:
            self._terminated = True
            active = list(self._active)
        for proc in active:
            log.debug("killing pid %s", proc.pid)
            proc.kill()
