"""Merge per-architecture static archives into one fat binary with `xcrun lipo -create`."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from matcha_tooling.dispatch import BuildResult
from matcha_tooling.env import CLANG_ARCHS
from matcha_tooling.errors import CommandFailed, MergeFailed
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import run_cmd

# GOARCH -> lipo -arch tag. Same table as clang; no fallback for unknown archs.
LIPO_ARCHS = dict(CLANG_ARCHS)


def lipo_command(results: Sequence[BuildResult], output_path: Path) -> list[str]:
    """`xcrun lipo -create -arch <tag> <path> ... -o output_path`, tags in input order."""
    cmd = ["xcrun", "lipo", "-create"]
    for r in results:
        tag = LIPO_ARCHS.get(r.arch)
        if tag is None:
            msg = f"no lipo architecture for {r.arch!r}"
            raise MergeFailed(msg)
        cmd += ["-arch", tag, str(r.artifact_path)]
    cmd += ["-o", str(output_path)]
    return cmd


def merge_archives(
    flags: BuildFlags,
    results: Sequence[BuildResult],
    output_path: Path,
    work_dir: Path | None = None,
) -> Path:
    """Write one multi-architecture binary at output_path. Inputs are left in place.

    All results must be error-free. Raises MergeFailed with lipo's output on failure.
    """
    bad = [r.arch for r in results if not r.ok]
    if bad:
        msg = f"cannot merge failed builds: {', '.join(bad)}"
        raise MergeFailed(msg)
    if not results:
        msg = "nothing to merge"
        raise MergeFailed(msg)
    cmd = lipo_command(results, output_path)
    try:
        run_cmd(flags, cmd, work_dir=work_dir)
    except CommandFailed as e:
        raise MergeFailed(e.output.strip() or str(e)) from e
    return output_path
