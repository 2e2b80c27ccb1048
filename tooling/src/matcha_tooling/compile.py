"""Go compiler adapter: `go build` for one environment, `go list` package checks."""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path

from matcha_tooling.env import BuildEnvironment
from matcha_tooling.errors import (
    CommandFailed,
    CompileFailed,
    FilesystemError,
    InvalidPackage,
    ToolchainUnavailable,
)
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import printcmd, run_cmd

# Build modes accepted by go_build.
STATIC_ARCHIVE = "c-archive"
SHARED_LIBRARY = "c-shared"

ARTIFACT_SUFFIX = {
    STATIC_ARCHIVE: ".a",
    SHARED_LIBRARY: ".so",
}


def pkgdir(gomobile: Path, env: BuildEnvironment) -> Path:
    """Per-target package dir populated by `matcha init` ($GOMOBILE/pkg_<goos>_<goarch>)."""
    return gomobile / f"pkg_{env.goos}_{env.goarch}"


def go_command(
    flags: BuildFlags,
    subcmd: str,
    srcs: list[str],
    env: BuildEnvironment,
    gomobile: Path,
    *args: str,
) -> list[str]:
    """Assemble `go <subcmd>` with the shared build flags (-tags, -v, -x, -gcflags, -ldflags, -work)."""
    cmd = ["go", subcmd, f"-pkgdir={pkgdir(gomobile, env)}"]
    if flags.tags:
        cmd += ["-tags", " ".join(flags.tags)]
    if flags.verbose:
        cmd.append("-v")
    if flags.print_commands:
        cmd.append("-x")
    if flags.gcflags:
        cmd += ["-gcflags", flags.gcflags]
    if flags.ldflags:
        cmd += ["-ldflags", flags.ldflags]
    if flags.keep_work:
        cmd.append("-work")
    cmd += list(args)
    cmd += srcs
    return cmd


def go_build(
    flags: BuildFlags,
    env: BuildEnvironment,
    source: Path,
    output: Path,
    mode: str,
    *,
    gomobile: Path,
    work_dir: Path,
    gopath: str = "",
) -> Path:
    """Compile source for env into output with -buildmode=mode. Returns output.

    gopath, if set, is GOPATH for this invocation only. Raises CompileFailed.
    """
    if mode not in ARTIFACT_SUFFIX:
        msg = f"unsupported build mode {mode!r}"
        raise ValueError(msg)
    cmd = go_command(flags, "build", [str(source)], env, gomobile, f"-buildmode={mode}", "-o", str(output))
    variables = env.environ()
    if gopath:
        variables["GOPATH"] = gopath
    try:
        run_cmd(flags, cmd, env=variables, work_dir=work_dir)
    except CommandFailed as e:
        raise CompileFailed(env.goarch, str(e)) from e
    return output


def go_list(flags: BuildFlags, fmt: str, packages: list[str], cwd: Path | None = None) -> list[str]:
    """`go list -f fmt packages`; one output line per package. Dry-run prints and returns []."""
    cmd = ["go", "list", "-f", fmt, *packages]
    if flags.should_print:
        printcmd(" ".join(cmd))
    if not flags.should_run:
        return []
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, cwd=cwd)
    except OSError as e:
        msg = f"go not found: {e}"
        raise ToolchainUnavailable(msg) from e
    if r.returncode != 0:
        msg = f"go list {' '.join(packages)}: {r.stderr.strip()}"
        raise InvalidPackage(msg)
    return [line for line in r.stdout.splitlines() if line.strip()]


def check_packages(flags: BuildFlags, packages: list[str], cwd: Path) -> None:
    """Reject `package main`: binding a command is not supported.

    Dry-run reads the package clause from the sources instead of running `go list`;
    packages outside cwd and $GOPATH/src cannot be checked there.
    """
    packages = packages or ["."]
    lines = go_list(flags, "{{.ImportPath}} {{.Name}}", packages, cwd=cwd)
    if not flags.should_run:
        for pkg in packages:
            name = _offline_package_name(pkg, cwd)
            if name:
                lines.append(f"{pkg} {name}")
    for line in lines:
        import_path, _, name = line.rpartition(" ")
        if name == "main":
            msg = f"binding 'main' package ({import_path}) is not supported"
            raise InvalidPackage(msg)


_PACKAGE_CLAUSE = re.compile(r"^package\s+(\w+)", re.MULTILINE)


def package_name_from_sources(pkg_dir: Path) -> str | None:
    """Package clause of the first non-test .go file in pkg_dir, or None if there is none."""
    for src in sorted(pkg_dir.glob("*.go")):
        if src.name.endswith("_test.go"):
            continue
        try:
            text = src.read_text(errors="replace")
        except OSError as e:
            raise FilesystemError("read", src, e) from e
        m = _PACKAGE_CLAUSE.search(text)
        if m:
            return m.group(1)
    return None


def _offline_package_name(package: str, cwd: Path) -> str | None:
    if package.startswith("."):
        candidates = [cwd / package]
    else:
        gopath = os.environ.get("GOPATH", "")
        candidates = [Path(p) / "src" / package for p in gopath.split(os.pathsep) if p]
    for d in candidates:
        if d.is_dir():
            return package_name_from_sources(d)
    return None


def package_dir(flags: BuildFlags, import_path: str, placeholder: str = "$SUPPORT") -> Path:
    """Source directory of import_path (via `go list`); placeholder in dry-run."""
    lines = go_list(flags, "{{.Dir}}", [import_path])
    if not flags.should_run:
        return Path(placeholder)
    if not lines:
        msg = f"package {import_path!r} not found"
        raise ToolchainUnavailable(msg)
    return Path(lines[0])
