"""Build flags shared by `matcha bind` and `matcha init` (-n, -x, -v, -work, -target, ...)."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from matcha_tooling.flags import BuildFlags


def path_resolver(s: str) -> Path:
    """Resolve a path argument to absolute Path (e.g. --project-root, --config)."""
    return Path(s).resolve()


def add_build_flags(ap: argparse.ArgumentParser, default_target: str = "ios") -> None:
    ap.add_argument(
        "-target",
        "--target",
        default=default_target,
        help=f"ios, android, or a list such as android/arm,android/386 (default: {default_target})",
    )
    ap.add_argument("-n", dest="dry_run", action="store_true", help="print commands but do not run them")
    ap.add_argument("-x", dest="print_commands", action="store_true", help="print commands")
    ap.add_argument("-v", dest="verbose", action="store_true", help="verbose output")
    ap.add_argument("-work", dest="keep_work", action="store_true", help="keep and print the scratch directory")
    ap.add_argument("-gcflags", "--gcflags", default="", help="arguments to pass on each go tool compile")
    ap.add_argument("-ldflags", "--ldflags", default="", help="arguments to pass on each go tool link")
    ap.add_argument("-tags", "--tags", default="", help="space-separated build tags")
    ap.add_argument(
        "--project-root",
        type=path_resolver,
        default=Path.cwd(),
        help="Project root (default: cwd)",
    )
    ap.add_argument("--config", type=path_resolver, default=None, help="Path to matcha.yaml")


def flags_from_args(args: argparse.Namespace) -> BuildFlags:
    return BuildFlags(
        dry_run=args.dry_run,
        print_commands=args.print_commands,
        verbose=args.verbose,
        keep_work=args.keep_work,
        output=getattr(args, "output", None),
        target=args.target,
        gcflags=args.gcflags,
        ldflags=args.ldflags,
        tags=tuple(args.tags.split()),
    )


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
