"""Artifact installation (atomic copy with normalized permissions)."""

from .installer import INSTALL_MODE, ensure_dir, install

__all__ = ["INSTALL_MODE", "ensure_dir", "install"]
