"""Pipeline driver: compose -> build -> install per target; run_all aggregates; clean tears down.

Per-target states: Idle -> Composing -> Building -> Installing -> Done, or Failed
from any state. Targets are independent: a failure never reverts another
target's installed artifact, and run_all attempts every target before reporting.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from islet_release.build.environment import compose
from islet_release.build.invoker import build, build_command
from islet_release.build.runner import CommandRunner, SubprocessRunner
from islet_release.errors import CompileError, ReleaseError
from islet_release.install.installer import INSTALL_MODE, install
from islet_release.pipeline.clean import run_clean
from islet_release.targets.config import build_registry, resolve_config_path
from islet_release.targets.layout import stray_dir_names
from islet_release.targets.registry import TargetRegistry, with_toolchain_override

log = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "Idle"
    COMPOSING = "Composing"
    BUILDING = "Building"
    INSTALLING = "Installing"
    DONE = "Done"
    FAILED = "Failed"


@dataclass(frozen=True)
class BuildResult:
    target_name: str
    source_artifact_path: Path
    installed_path: Path
    permissions: int = INSTALL_MODE


@dataclass(frozen=True)
class TargetOutcome:
    target_name: str
    state: PipelineState
    result: BuildResult | None = None
    error: ReleaseError | None = None
    # state the target was in when it failed
    failed_in: PipelineState | None = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE


@dataclass(frozen=True)
class RunSummary:
    outcomes: tuple[TargetOutcome, ...]

    @property
    def failed(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


class Pipeline:
    """Runs release builds for targets from a registry.

    ``ambient`` is the environment snapshot every target's environment is composed
    from (default: a copy of os.environ taken at construction).
    """

    def __init__(
        self,
        registry: TargetRegistry,
        workspace: Path,
        binary_name: str,
        *,
        runner: CommandRunner | None = None,
        ambient: Mapping[str, str] | None = None,
        timeout: float | None = None,
        stray_dirs: Iterable[str] = (),
    ) -> None:
        self.registry = registry
        self.workspace = workspace
        self.binary_name = binary_name
        self.runner = runner if runner is not None else SubprocessRunner()
        self.ambient = MappingProxyType(dict(os.environ if ambient is None else ambient))
        self.timeout = timeout
        self.stray_dirs = tuple(stray_dirs)

    def run(self, target_name: str) -> TargetOutcome:
        """Compose, build and install one target. Never raises ReleaseError; see outcome.error."""
        state = PipelineState.IDLE
        try:
            descriptor = self.registry.lookup(target_name)
            state = PipelineState.COMPOSING
            descriptor = with_toolchain_override(descriptor, self.ambient)
            env = compose(descriptor, self.ambient)

            state = PipelineState.BUILDING
            print(f"🔨 target={target_name}: {' '.join(build_command(descriptor))}")
            artifact = build(
                descriptor,
                env,
                self.runner,
                self.workspace,
                self.binary_name,
                timeout=self.timeout,
            )

            state = PipelineState.INSTALLING
            installed = install(artifact, descriptor.dest_dir, descriptor.dest_name)
        except ReleaseError as e:
            if e.target is None:
                e.target = target_name
            log.debug("%s failed in state %s: %s", target_name, state.value, e)
            return TargetOutcome(target_name, PipelineState.FAILED, error=e, failed_in=state)

        print(f"📦 target={target_name}: {artifact} -> {installed}")
        result = BuildResult(target_name, artifact, installed)
        return TargetOutcome(target_name, PipelineState.DONE, result=result)

    def run_all(self, jobs: int = 1) -> RunSummary:
        """Run every registered target in declaration order; never stops at the first failure.

        With jobs > 1 targets build concurrently; outcomes keep declaration order.
        A cancelled build (Ctrl-C) marks the targets not yet started as failed.
        """
        names = self.registry.names()
        if jobs > 1 and len(names) > 1:
            return self._run_concurrent(names, jobs)

        outcomes: list[TargetOutcome] = []
        cancelled = False
        for name in names:
            if cancelled:
                outcomes.append(_not_started(name))
                continue
            outcome = self.run(name)
            outcomes.append(outcome)
            if isinstance(outcome.error, CompileError) and outcome.error.cancelled:
                cancelled = True
        return RunSummary(tuple(outcomes))

    def _run_concurrent(self, names: list[str], jobs: int) -> RunSummary:
        # Ctrl-C only reaches the main thread: kill the runner's children so workers return.
        with ThreadPoolExecutor(max_workers=min(jobs, len(names))) as pool:
            futures = [pool.submit(self.run, name) for name in names]
            try:
                wait(futures)
            except KeyboardInterrupt:
                log.debug("interrupted; cancelling pending targets")
                for f in futures:
                    f.cancel()
                self.runner.terminate()
        outcomes = [
            _not_started(name) if f.cancelled() else f.result()
            for name, f in zip(names, futures)
        ]
        return RunSummary(tuple(outcomes))

    def clean(self) -> list[Path]:
        """Remove cargo's output tree and stray generated dirs. Raises CleanError if removal is denied."""
        return run_clean(self.workspace, self.runner, self.ambient, self.stray_dirs)


def _not_started(name: str) -> TargetOutcome:
    err = CompileError("not started: build cancelled", target=name, cancelled=True)
    return TargetOutcome(name, PipelineState.FAILED, error=err, failed_in=PipelineState.IDLE)


def pipeline_from_config(
    repo_root: Path,
    config_path: Path | None = None,
    *,
    runner: CommandRunner | None = None,
    ambient: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Pipeline:
    """Build registry + layout (built-in table, optional YAML config) and return a Pipeline.

    config_path defaults to $ISLET_RELEASE_CONFIG when set. Raises ConfigError or
    InvalidTargetDescriptor for a bad configuration.
    """
    snapshot = dict(os.environ if ambient is None else ambient)
    config_path = resolve_config_path(repo_root, config_path, snapshot)
    registry, layout = build_registry(repo_root, config_path)
    return Pipeline(
        registry,
        repo_root / layout["workspace_dir"],
        layout["binary_name"],
        runner=runner,
        ambient=snapshot,
        timeout=timeout,
        stray_dirs=stray_dir_names(layout),
    )
