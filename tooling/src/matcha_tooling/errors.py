"""Error taxonomy for target parsing, toolchain lookup, builds and bundle assembly.

Every failure is fatal to the current invocation. CLI entry points catch
MatchaError, print it and return 1.
"""

from __future__ import annotations

from pathlib import Path


class MatchaError(Exception):
    """Base for all errors raised by matcha_tooling."""


class ConfigError(MatchaError):
    """matcha.yaml could not be read or has a value of the wrong type."""


# --- Target spec ---


class ParseError(MatchaError):
    """Target specification could not be parsed."""


class EmptySpec(ParseError):
    def __init__(self) -> None:
        super().__init__('invalid target ""')


class UnsupportedPlatform(ParseError):
    def __init__(self, platform: str) -> None:
        self.platform = platform
        super().__init__(f"unsupported os: {platform!r}")


class MixedPlatforms(ParseError):
    def __init__(self, first: str, other: str) -> None:
        self.platforms = (first, other)
        super().__init__(f"cannot target different OSes ({first}, {other})")


class UnsupportedArch(ParseError):
    def __init__(self, arch: str, platform: str = "") -> None:
        self.arch = arch
        self.platform = platform
        suffix = f" for {platform}" if platform else ""
        super().__init__(f"unsupported arch: {arch!r}{suffix}")


# --- Toolchain / build ---


class ToolchainUnavailable(MatchaError):
    """Compiler, SDK or installed toolchain could not be resolved."""


class InvalidPackage(MatchaError):
    """A requested Go package cannot be bound (e.g. package main)."""


class CompileFailed(MatchaError):
    def __init__(self, arch: str, diagnostic: str) -> None:
        self.arch = arch
        self.diagnostic = diagnostic
        super().__init__(f"{arch}: {diagnostic}")


class MergeFailed(MatchaError):
    def __init__(self, diagnostic: str) -> None:
        self.diagnostic = diagnostic
        super().__init__(f"merge failed: {diagnostic}")


# --- Bundle / filesystem ---


class InvalidBundleName(MatchaError):
    def __init__(self, path: Path | str, suffix: str) -> None:
        self.path = Path(path)
        self.suffix = suffix
        super().__init__(f"bundle name {str(path)!r} missing {suffix} suffix")


class FilesystemError(MatchaError):
    def __init__(self, op: str, path: Path | str, cause: OSError) -> None:
        self.op = op
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{op} {path}: {cause}")


class CommandFailed(MatchaError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, args: list[str], returncode: int | None, output: str) -> None:
        self.cmd = list(args)
        self.returncode = returncode
        self.output = output
        status = f"exit status {returncode}" if returncode is not None else "could not start"
        super().__init__(f"{' '.join(args)} failed: {status}\n{output}".rstrip())
