"""Target descriptor registry: logical target name -> triple, toolchain, extra env, destination.

The registry is a declarative table built once at startup (``default_targets`` plus
optional YAML overrides, see ``targets.config``) and never mutated afterwards.
Declaration order is build order for ``build-all``.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from islet_release.errors import InvalidTargetDescriptor, UnknownTarget
from islet_release.targets.layout import resolve_layout

log = logging.getLogger(__name__)

NATIVE = "native"
SECONDARY_ARCH = "secondary-arch"

OPENSSL_STATIC = "OPENSSL_STATIC"
OPENSSL_LIB_DIR = "OPENSSL_LIB_DIR"
OPENSSL_INCLUDE_DIR = "OPENSSL_INCLUDE_DIR"


@dataclass(frozen=True)
class TargetDescriptor:
    name: str
    triple: str | None
    dest_dir: Path
    dest_name: str
    toolchain_path: Path | None = None
    extra_env: Mapping[str, str] = field(default_factory=dict)
    # extra_env keys whose values must exist on disk before building
    path_env_keys: tuple[str, ...] = ()
    required_libraries: tuple[str, ...] = ()
    library_dir_env: str | None = None
    toolchain_override_env: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra_env", MappingProxyType(dict(self.extra_env)))
        object.__setattr__(self, "path_env_keys", tuple(self.path_env_keys))
        object.__setattr__(self, "required_libraries", tuple(self.required_libraries))

    @property
    def is_native(self) -> bool:
        return self.triple is None


def validate_descriptor(d: TargetDescriptor) -> None:
    """Raise InvalidTargetDescriptor unless native/non-native invariants hold."""
    if not d.name:
        msg = "target name must be non-empty"
        raise InvalidTargetDescriptor(msg)
    if d.name == NATIVE and d.triple is not None:
        msg = "native target must not set a triple (host triple is implicit)"
        raise InvalidTargetDescriptor(msg, target=d.name)
    if d.is_native:
        if d.toolchain_path is not None or d.extra_env:
            msg = "native target must not declare a toolchain or extra environment"
            raise InvalidTargetDescriptor(msg, target=d.name)
        return
    if d.toolchain_path is None:
        msg = f"cross target {d.triple} must reference exactly one toolchain"
        raise InvalidTargetDescriptor(msg, target=d.name)
    missing = [k for k in d.path_env_keys if k not in d.extra_env]
    if missing:
        msg = f"path_env keys not in extra_env: {sorted(missing)}"
        raise InvalidTargetDescriptor(msg, target=d.name)
    if d.required_libraries and d.library_dir_env not in d.extra_env:
        msg = "required_libraries set but library_dir_env is not an extra_env key"
        raise InvalidTargetDescriptor(msg, target=d.name)


def with_toolchain_override(d: TargetDescriptor, ambient: Mapping[str, str]) -> TargetDescriptor:
    """Return d with toolchain_path taken from ambient[d.toolchain_override_env] when that is set."""
    if d.is_native or not d.toolchain_override_env:
        return d
    override = ambient.get(d.toolchain_override_env)
    if not override:
        return d
    log.debug("%s: toolchain overridden by %s=%s", d.name, d.toolchain_override_env, override)
    return dataclasses.replace(d, toolchain_path=Path(override))


class TargetRegistry:
    """Read-only, ordered set of TargetDescriptors."""

    def __init__(self, descriptors: Iterable[TargetDescriptor]) -> None:
        ordered: list[TargetDescriptor] = []
        by_name: dict[str, TargetDescriptor] = {}
        for d in descriptors:
            validate_descriptor(d)
            if d.name in by_name:
                msg = "duplicate target name"
                raise InvalidTargetDescriptor(msg, target=d.name)
            by_name[d.name] = d
            ordered.append(d)
        self._ordered = tuple(ordered)
        self._by_name = by_name

    def lookup(self, name: str) -> TargetDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            known = ", ".join(self.names()) or "(none)"
            msg = f"unknown target {name!r}; known targets: {known}"
            raise UnknownTarget(msg, target=name) from None

    def names(self) -> list[str]:
        return [d.name for d in self._ordered]

    def __iter__(self) -> Iterator[TargetDescriptor]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


def default_targets(
    repo_root: Path, layout: dict[str, str] | None = None
) -> list[TargetDescriptor]:
    """Built-in table: secondary-arch (aarch64 cross, static OpenSSL) then native."""
    cfg = resolve_layout(layout)
    openssl_root = repo_root / cfg["openssl_root"]
    secondary = TargetDescriptor(
        name=SECONDARY_ARCH,
        triple=cfg["secondary_triple"],
        dest_dir=repo_root / cfg["shared_dir"],
        dest_name=cfg["installed_name"],
        toolchain_path=repo_root / cfg["toolchain"],
        extra_env={
            OPENSSL_STATIC: "1",
            OPENSSL_LIB_DIR: str(openssl_root / "lib"),
            OPENSSL_INCLUDE_DIR: str(openssl_root / "include"),
        },
        path_env_keys=(OPENSSL_LIB_DIR, OPENSSL_INCLUDE_DIR),
        required_libraries=("ssl", "crypto"),
        library_dir_env=OPENSSL_LIB_DIR,
        toolchain_override_env=cfg["toolchain_env"] or None,
    )
    native = TargetDescriptor(
        name=NATIVE,
        triple=None,
        dest_dir=repo_root / cfg["native_dest_dir"],
        dest_name=cfg["installed_name"],
    )
    return [secondary, native]
