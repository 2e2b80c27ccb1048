"""Side-effecting primitives: run a command, mkdir, symlink, copy, write, remove.

Every primitive takes the BuildFlags first. With -x/-n the equivalent shell
command is echoed to stderr; with -n nothing is executed or touched. Callers
make the same sequence of calls either way, so a dry run walks exactly the
decisions a real run would.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from collections.abc import Mapping
from pathlib import Path

from matcha_tooling.errors import CommandFailed, FilesystemError
from matcha_tooling.flags import BuildFlags

log = logging.getLogger(__name__)

WORK_PLACEHOLDER = Path("$WORK")


def printcmd(line: str) -> None:
    print(line, file=sys.stderr)


def environ(overrides: Mapping[str, str]) -> dict[str, str]:
    """Merge os.environ with overrides; overrides win. Keys are upper-cased on Windows."""
    out: dict[str, str] = {}
    for key, value in list(os.environ.items()) + list(overrides.items()):
        if not key:
            continue
        if os.name == "nt":
            key = key.upper()
        out[key] = value
    return out


def run_cmd(
    flags: BuildFlags,
    cmd: list[str],
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
    work_dir: Path | None = None,
) -> str:
    """Run cmd with env layered over os.environ. Returns captured output ("" when streamed or dry-run).

    Raises CommandFailed on non-zero exit or if the executable cannot be started.
    """
    env = dict(env or {})
    if flags.keep_work and work_dir is not None:
        if os.name == "nt":
            env["TEMP"] = str(work_dir)
            env["TMP"] = str(work_dir)
        else:
            env["TMPDIR"] = str(work_dir)

    if flags.should_print:
        prefix = f"PWD={cwd} " if cwd else ""
        pairs = " ".join(f"{k}={v}" for k, v in env.items())
        if pairs:
            prefix += pairs + " "
        printcmd(prefix + " ".join(cmd))

    if not flags.should_run:
        return ""

    log.debug("exec %s", cmd)
    try:
        if flags.verbose:
            r = subprocess.run(cmd, env=environ(env), cwd=cwd, text=True)
        else:
            r = subprocess.run(
                cmd,
                env=environ(env),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
    except OSError as e:
        raise CommandFailed(cmd, None, str(e)) from e
    output = r.stdout or ""
    if r.returncode != 0:
        raise CommandFailed(cmd, r.returncode, output)
    return output


def mkdir(flags: BuildFlags, path: Path) -> None:
    if flags.should_print:
        printcmd(f"mkdir -p {path}")
    if flags.should_run:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError("mkdir", path, e) from e


def symlink(flags: BuildFlags, target: str | Path, link: Path) -> None:
    """Create link pointing at target. target is stored as given, so pass relative paths."""
    if flags.should_print:
        printcmd(f"ln -s {target} {link}")
    if flags.should_run:
        try:
            os.symlink(target, link)
        except OSError as e:
            raise FilesystemError("symlink", link, e) from e


def write_file(flags: BuildFlags, path: Path, data: bytes | str) -> None:
    """Write data to path, creating parent directories."""
    mkdir(flags, path.parent)
    if flags.should_print:
        printcmd(f"write {path}")
    if flags.should_run:
        raw = data.encode() if isinstance(data, str) else data
        try:
            path.write_bytes(raw)
        except OSError as e:
            raise FilesystemError("write", path, e) from e


def copy_file(flags: BuildFlags, dst: Path, src: Path) -> None:
    """Copy src bytes to dst, creating parent directories."""
    mkdir(flags, dst.parent)
    if flags.should_print:
        printcmd(f"cp {src} {dst}")
    if flags.should_run:
        try:
            shutil.copyfile(src, dst)
        except OSError as e:
            raise FilesystemError("copy", src, e) from e


def read_file(flags: BuildFlags, path: Path) -> bytes:
    """Read path; returns b"" in dry-run."""
    if flags.should_print:
        printcmd(f"read {path}")
    if not flags.should_run:
        return b""
    try:
        return path.read_bytes()
    except OSError as e:
        raise FilesystemError("read", path, e) from e


def remove_all(flags: BuildFlags, path: Path) -> None:
    """rm -rf path. Missing paths are not an error; symlinks are removed, not followed."""
    if flags.should_print:
        printcmd(f'rm -r -f "{path}"')
    if not flags.should_run:
        return
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError("remove", path, e) from e


def new_work_dir(flags: BuildFlags, parent: Path | None = None, prefix: str = "matcha-work-") -> Path:
    """Create the scratch directory. Dry-run returns $WORK (or parent/work) without creating it."""
    if flags.should_run:
        try:
            work = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
        except OSError as e:
            raise FilesystemError("mkdtemp", parent or tempfile.gettempdir(), e) from e
    else:
        work = WORK_PLACEHOLDER if parent is None else parent / "work"
    if flags.should_print:
        printcmd(f"WORK={work}")
    return work
