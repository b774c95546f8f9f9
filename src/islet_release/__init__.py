"""Release-build orchestration for the islet CLI (multi-target cargo build + install)."""

__version__ = "0.1.0"
