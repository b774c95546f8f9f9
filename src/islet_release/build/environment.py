"""Compose the process environment for one target's build.

ambient snapshot -> overlay extra_env -> inject cross toolchain (CC_<triple>, linker).
The ambient mapping is never modified; the result is a read-only mapping.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from islet_release.errors import IncompleteEnvironment
from islet_release.helpers import cargo_linker_env_var, cc_env_var
from islet_release.targets.registry import TargetDescriptor

log = logging.getLogger(__name__)


def toolchain_env(descriptor: TargetDescriptor) -> dict[str, str]:
    """Variables pointing cargo and the cc crate at the cross toolchain (empty for native)."""
    if descriptor.toolchain_path is None or descriptor.triple is None:
        return {}
    tc = str(descriptor.toolchain_path)
    return {
        cc_env_var(descriptor.triple): tc,
        cargo_linker_env_var(descriptor.triple): tc,
    }


def compose(descriptor: TargetDescriptor, ambient: Mapping[str, str]) -> Mapping[str, str]:
    """Return ambient + extra_env (+ toolchain vars). Raises IncompleteEnvironment if a path key is missing on disk."""
    missing: list[str] = []
    for key in descriptor.path_env_keys:
        value = descriptor.extra_env.get(key, "")
        if not value or not Path(value).exists():
            missing.append(f"{key}={value or '<unset>'}")
    if missing:
        msg = "dependency paths do not exist: " + ", ".join(missing)
        raise IncompleteEnvironment(msg, target=descriptor.name)

    env = dict(ambient)
    env.update(descriptor.extra_env)
    env.update(toolchain_env(descriptor))
    log.debug(
        "%s: composed env (%d vars; target-specific: %s)",
        descriptor.name,
        len(env),
        sorted([*descriptor.extra_env, *toolchain_env(descriptor)]),
    )
    return MappingProxyType(env)
