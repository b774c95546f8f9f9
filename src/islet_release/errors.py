"""Error taxonomy for the release pipeline. Every error is scoped to one target."""

from __future__ import annotations


class ReleaseError(Exception):
    """Base class. ``target`` is filled in by the pipeline when known."""

    def __init__(self, message: str, *, target: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        if self.target:
            return f"target={self.target}: {self.message}"
        return self.message


class UnknownTarget(ReleaseError):
    pass


class InvalidTargetDescriptor(ReleaseError):
    pass


class ConfigError(ReleaseError):
    pass


class IncompleteEnvironment(ReleaseError):
    pass


class ToolchainNotFound(ReleaseError):
    pass


class DependencyUnresolved(ReleaseError):
    pass


class CompileError(ReleaseError):
    """Build driver failed. ``stderr`` holds the driver diagnostic verbatim."""

    def __init__(
        self,
        message: str,
        *,
        target: str | None = None,
        exit_code: int | None = None,
        stderr: str = "",
        cancelled: bool = False,
    ) -> None:
        super().__init__(message, target=target)
        self.exit_code = exit_code
        self.stderr = stderr
        self.cancelled = cancelled


class InstallIOError(ReleaseError):
    pass


class CleanError(ReleaseError):
    pass
