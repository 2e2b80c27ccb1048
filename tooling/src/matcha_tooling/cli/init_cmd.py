"""`matcha init` — install the mobile compiler toolchain."""

from __future__ import annotations

import argparse
import sys

from matcha_tooling.cli.parse_common import add_build_flags, flags_from_args, setup_logging
from matcha_tooling.config import load_config
from matcha_tooling.errors import MatchaError, ParseError
from matcha_tooling.init import init_toolchain


def run_init_argv(argv: list[str] | None = None) -> None:
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    sys.exit(run_init(argv))


def run_init(argv: list[str]) -> int:
    """Returns 0 on success, 1 on error."""
    ap = argparse.ArgumentParser(
        prog="matcha init",
        description="Build copies of the Go standard library for mobile targets",
    )
    add_build_flags(ap)
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    flags = flags_from_args(args)
    try:
        config = load_config(args.config, args.project_root)
        init_toolchain(flags, config=config, target=flags.target)
    except ParseError as e:
        print(f"❌ invalid -target={flags.target!r}: {e}", file=sys.stderr)
        return 1
    except MatchaError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0
