"""Main CLI entry point for matcha tooling."""

import sys

from matcha_tooling import __version__
from matcha_tooling.cli import bind_cmd, init_cmd


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: matcha <command> [args...]", file=sys.stderr)
        print("Commands:", file=sys.stderr)
        print(
            "  bind [-target T] [-o OUT] [packages]  - Build a .framework (iOS) or .aar (Android)",
            file=sys.stderr,
        )
        print("  init [-target T]                      - Install the mobile compiler toolchain", file=sys.stderr)
        print("  version                               - Print matcha tooling version", file=sys.stderr)
        sys.exit(1)

    command = sys.argv[1]

    if command == "bind":
        bind_cmd.run_bind_argv()
    elif command == "init":
        init_cmd.run_init_argv()
    elif command == "version":
        print(f"matcha {__version__}")
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
