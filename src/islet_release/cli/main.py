"""Main CLI entry point for islet-release."""

import sys

from islet_release.cli import build as build_cli
from islet_release.cli import clean_cmd, targets_cmd


def _usage() -> None:
    print("Usage: islet-release <command> [args...]", file=sys.stderr)
    print("Commands:", file=sys.stderr)
    print(
        "  build-all [--jobs N]    - Release build + install for every target",
        file=sys.stderr,
    )
    print("  build <target>          - Release build + install for one target", file=sys.stderr)
    print(
        "  clean                   - cargo clean and remove generated example dirs",
        file=sys.stderr,
    )
    print("  targets                 - List registered targets", file=sys.stderr)
    print(
        "Common flags: --project-root PATH, --config PATH, --timeout SECONDS, -v",
        file=sys.stderr,
    )


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]
    argv = sys.argv[2:]

    if command == "build-all":
        build_cli.run_build_all_argv(argv)
    elif command == "build":
        build_cli.run_build_argv(argv)
    elif command == "clean":
        clean_cmd.run_clean_argv(argv)
    elif command == "targets":
        targets_cmd.run_targets_argv(argv)
    elif command in ("-h", "--help", "help"):
        _usage()
        sys.exit(0)
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
