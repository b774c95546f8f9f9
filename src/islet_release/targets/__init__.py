"""Target registry, layout and release config."""

from .config import build_registry, load_release_config, resolve_config_path
from .layout import DEFAULT_LAYOUT, resolve_layout
from .registry import (
    NATIVE,
    SECONDARY_ARCH,
    TargetDescriptor,
    TargetRegistry,
    default_targets,
    with_toolchain_override,
)

__all__ = [
    "DEFAULT_LAYOUT",
    "NATIVE",
    "SECONDARY_ARCH",
    "TargetDescriptor",
    "TargetRegistry",
    "build_registry",
    "default_targets",
    "load_release_config",
    "resolve_config_path",
    "resolve_layout",
    "with_toolchain_override",
]
