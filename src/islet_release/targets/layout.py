"""Default path layout for release builds. All paths relative to the repository root."""

from __future__ import annotations

from typing import Any

# islet repository layout; override via config `layout:` for other checkouts.
DEFAULT_LAYOUT: dict[str, str] = {
    "workspace_dir": "cli",
    "shared_dir": "out/shared",
    "native_dest_dir": "cli",
    "openssl_root": "assets/openssl",
    "toolchain": "assets/toolchain/aarch64-none-linux-gnu/bin/aarch64-none-linux-gnu-g++",
    "toolchain_env": "ISLET_AARCH64_TOOLCHAIN",
    "binary_name": "islet_cli",
    "installed_name": "islet",
    "secondary_triple": "aarch64-unknown-linux-gnu",
    "stray_dirs": "sdk-example-c",
}


def resolve_layout(layout: dict[str, Any] | None) -> dict[str, str]:
    """Return layout dict with defaults filled. Unknown keys are ignored."""
    if layout is None:
        return dict(DEFAULT_LAYOUT)
    out = dict(DEFAULT_LAYOUT)
    out.update({k: str(v) for k, v in layout.items() if k in out})
    return out


def stray_dir_names(layout: dict[str, str]) -> list[str]:
    """Comma-separated ``stray_dirs`` as a list (relative to the workspace)."""
    return [s.strip() for s in layout["stray_dirs"].split(",") if s.strip()]
