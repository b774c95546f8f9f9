"""Environment composition and cargo invocation for release builds."""

from .environment import compose, toolchain_env
from .invoker import artifact_path, build, build_command
from .runner import CommandRunner, Invocation, SubprocessRunner

__all__ = [
    "CommandRunner",
    "Invocation",
    "SubprocessRunner",
    "artifact_path",
    "build",
    "build_command",
    "compose",
    "toolchain_env",
]
