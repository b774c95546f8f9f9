"""Release config loading (YAML) and registry construction.

Config YAML format:
- layout (optional): overrides for targets.layout.DEFAULT_LAYOUT keys
- targets (optional): map target name -> {
      triple, toolchain, toolchain_env, env, path_env, dest_dir, dest_name,
      required_libraries, library_dir_env }
  Entries whose name matches a built-in target replace it in place; new names
  are appended in file order.

Relative paths (toolchain, dest_dir, path_env values) resolve against the repository root.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from islet_release.errors import ConfigError
from islet_release.helpers import resolve_under
from islet_release.targets.layout import resolve_layout
from islet_release.targets.registry import (
    TargetDescriptor,
    TargetRegistry,
    default_targets,
)

log = logging.getLogger(__name__)

CONFIG_ENV = "ISLET_RELEASE_CONFIG"


def load_release_config(config_path: Path) -> dict[str, Any]:
    """Load config YAML. Missing file or non-mapping document -> ConfigError."""
    try:
        with config_path.open() as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        msg = f"cannot read config {config_path}: {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"invalid YAML in {config_path}: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"config {config_path} must be a mapping"
        raise ConfigError(msg)
    for key in ("layout", "targets"):
        if data.get(key) is not None and not isinstance(data[key], dict):
            msg = f"config {config_path}: '{key}' must be a mapping"
            raise ConfigError(msg)
    return data


def _str_list(name: str, key: str, value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        msg = f"'{key}' must be a list"
        raise ConfigError(msg, target=name)
    return tuple(str(v) for v in value)


def descriptor_from_config(
    name: str,
    entry: dict[str, Any],
    repo_root: Path,
    layout: dict[str, str],
) -> TargetDescriptor:
    """Build one TargetDescriptor from a `targets:` entry."""
    if not isinstance(entry, dict):
        msg = "target entry must be a mapping"
        raise ConfigError(msg, target=name)
    env = entry.get("env") or {}
    if not isinstance(env, dict):
        msg = "'env' must be a mapping"
        raise ConfigError(msg, target=name)
    path_env = _str_list(name, "path_env", entry.get("path_env"))
    extra_env: dict[str, str] = {}
    for k, v in env.items():
        value = str(v)
        if k in path_env:
            value = str(resolve_under(repo_root, value))
        extra_env[str(k)] = value
    toolchain = entry.get("toolchain")
    dest_dir = entry.get("dest_dir", layout["shared_dir"])
    return TargetDescriptor(
        name=name,
        triple=entry.get("triple"),
        dest_dir=resolve_under(repo_root, dest_dir),
        dest_name=str(entry.get("dest_name", layout["installed_name"])),
        toolchain_path=resolve_under(repo_root, toolchain) if toolchain else None,
        extra_env=extra_env,
        path_env_keys=path_env,
        required_libraries=_str_list(name, "required_libraries", entry.get("required_libraries")),
        library_dir_env=entry.get("library_dir_env"),
        toolchain_override_env=entry.get("toolchain_env"),
    )


def build_registry(
    repo_root: Path,
    config_path: Path | None = None,
) -> tuple[TargetRegistry, dict[str, str]]:
    """Return (registry, resolved layout) from built-in targets plus optional config file."""
    data: dict[str, Any] = {}
    if config_path is not None:
        data = load_release_config(config_path)
        log.debug("Loaded release config %s", config_path)
    layout = resolve_layout(data.get("layout"))
    descriptors = default_targets(repo_root, layout)
    for name, entry in (data.get("targets") or {}).items():
        d = descriptor_from_config(str(name), entry, repo_root, layout)
        idx = next((i for i, x in enumerate(descriptors) if x.name == d.name), None)
        if idx is None:
            descriptors.append(d)
        else:
            descriptors[idx] = d
    return TargetRegistry(descriptors), layout


def resolve_config_path(
    repo_root: Path,
    config_path: Path | None,
    environ: Mapping[str, str],
) -> Path | None:
    """Explicit config_path, else $ISLET_RELEASE_CONFIG (relative to repo_root), else None."""
    if config_path is not None:
        return config_path
    value = environ.get(CONFIG_ENV)
    if not value:
        return None
    return resolve_under(repo_root, value)
