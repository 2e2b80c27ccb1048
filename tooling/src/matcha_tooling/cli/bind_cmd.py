"""`matcha bind` — build a framework (.framework) or Android archive (.aar) for a Go package."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from matcha_tooling.bind import bind
from matcha_tooling.cli.parse_common import add_build_flags, flags_from_args, setup_logging
from matcha_tooling.config import load_config
from matcha_tooling.errors import MatchaError, ParseError


def run_bind_argv(argv: list[str] | None = None) -> None:
    """Parse argv and run bind. argv defaults to sys.argv[2:] when called from main."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    sys.exit(run_bind(argv))


def run_bind(argv: list[str]) -> int:
    """Returns 0 on success, 1 on error."""
    ap = argparse.ArgumentParser(
        prog="matcha bind",
        description="Build a library for iOS (static .framework) or Android (.aar)",
    )
    add_build_flags(ap)
    ap.add_argument("-o", dest="output", type=Path, default=None, help="output bundle path")
    ap.add_argument("--support-dir", type=Path, default=None, help="directory with *.support files")
    ap.add_argument("packages", nargs="*", help="Go packages to bind (default: current directory)")
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    flags = flags_from_args(args)
    try:
        config = load_config(args.config, args.project_root)
        if args.support_dir is not None:
            config = replace(config, support_dir=args.support_dir.resolve())
        bind(flags, args.packages, config=config, project_root=args.project_root)
    except ParseError as e:
        print(f"❌ invalid -target={flags.target!r}: {e}", file=sys.stderr)
        return 1
    except MatchaError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0
