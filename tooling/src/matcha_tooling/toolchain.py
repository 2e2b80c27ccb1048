"""Toolchain lookup: Xcode (xcrun) for iOS, the Android NDK for Android, and the Go toolchain.

Lookups are cached per (platform, sdk) on the locator instance, so one bind
resolves each SDK once. A locator is never shared across invocations.
"""

from __future__ import annotations

import logging
import os
import platform as host_platform
import shutil
import subprocess
from pathlib import Path

from matcha_tooling.errors import FilesystemError, ToolchainUnavailable
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import printcmd
from matcha_tooling.helpers import compare_versions, parse_go_version

log = logging.getLogger(__name__)

MIN_GO_VERSION = "1.7"
VERSION_FILE = "version"


def xcode_available() -> bool:
    return shutil.which("xcrun") is not None


def ndk_host_tag() -> str:
    """Prebuilt directory name for this host (e.g. linux-x86_64, darwin-x86_64)."""
    system = host_platform.system().lower()
    return f"{system}-x86_64"


def find_ndk_root(explicit: Path | None = None) -> Path:
    """Locate the NDK: explicit path, $ANDROID_NDK_HOME, $ANDROID_NDK_ROOT, then $ANDROID_HOME/ndk-bundle.

    Raises ToolchainUnavailable if none points at an NDK with an LLVM toolchain for this host.
    """
    candidates: list[Path] = []
    if explicit is not None:
        candidates.append(explicit)
    for var in ("ANDROID_NDK_HOME", "ANDROID_NDK_ROOT"):
        if os.environ.get(var):
            candidates.append(Path(os.environ[var]))
    if os.environ.get("ANDROID_HOME"):
        candidates.append(Path(os.environ["ANDROID_HOME"]) / "ndk-bundle")
    if not candidates:
        msg = (
            "no Android NDK path is set. Install the ndk-bundle through the Android SDK "
            "manager or set ANDROID_NDK_HOME."
        )
        raise ToolchainUnavailable(msg)
    tools = Path("toolchains") / "llvm" / "prebuilt" / ndk_host_tag() / "bin"
    for c in candidates:
        if (c / tools).is_dir():
            return c.resolve()
        log.debug("NDK candidate %s has no %s", c, tools)
    msg = f"{candidates[0]} does not point to an Android NDK"
    raise ToolchainUnavailable(msg)


class ToolchainLocator:
    """Resolves compiler and SDK paths.

    ios: `xcrun --sdk <sdk> --find clang` and `xcrun --sdk <sdk> --show-sdk-path`.
    android: NDK clang and sysroot under toolchains/llvm/prebuilt/<host>/.
    In dry-run the xcrun commands are printed and placeholders returned
    (clang-<sdk>, <sdk>); availability checks still run.
    """

    def __init__(self, flags: BuildFlags, ndk_root: Path | None = None) -> None:
        self.flags = flags
        self._ndk_root = ndk_root
        self._cache: dict[tuple[str, str, str], str] = {}

    def find_compiler(self, platform: str, sdk_name: str) -> str:
        return self._lookup("compiler", platform, sdk_name)

    def find_sdk_root(self, platform: str, sdk_name: str) -> str:
        return self._lookup("sdk", platform, sdk_name)

    def _lookup(self, kind: str, platform: str, sdk_name: str) -> str:
        key = (kind, platform, sdk_name)
        if key not in self._cache:
            if platform == "ios":
                self._cache[key] = self._xcrun_lookup(kind, sdk_name)
            elif platform == "android":
                self._cache[key] = self._ndk_lookup(kind)
            else:
                msg = f"no toolchain for platform {platform!r}"
                raise ToolchainUnavailable(msg)
        return self._cache[key]

    def _xcrun_lookup(self, kind: str, sdk_name: str) -> str:
        if not xcode_available():
            msg = "Xcode not available"
            raise ToolchainUnavailable(msg)
        if kind == "compiler":
            cmd = ["xcrun", "--sdk", sdk_name, "--find", "clang"]
            placeholder = f"clang-{sdk_name}"
        else:
            cmd = ["xcrun", "--sdk", sdk_name, "--show-sdk-path"]
            placeholder = sdk_name
        if self.flags.should_print:
            printcmd(" ".join(cmd))
        if not self.flags.should_run:
            return placeholder
        try:
            r = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            msg = f"xcrun {cmd[3]}: {e}"
            raise ToolchainUnavailable(msg) from e
        if r.returncode != 0:
            msg = f"xcrun {cmd[3]}: exit status {r.returncode}\n{r.stdout}{r.stderr}"
            raise ToolchainUnavailable(msg)
        return r.stdout.strip()

    def _ndk_lookup(self, kind: str) -> str:
        if self._ndk_root is None:
            self._ndk_root = find_ndk_root()
        prebuilt = self._ndk_root / "toolchains" / "llvm" / "prebuilt" / ndk_host_tag()
        if kind == "compiler":
            return str(prebuilt / "bin" / "clang")
        return str(prebuilt / "sysroot")


# --- Go toolchain ---


def go_env(name: str) -> str:
    """Value of a Go environment variable: os.environ first, then `go env NAME`."""
    val = os.environ.get(name)
    if val:
        return val
    try:
        r = subprocess.run(["go", "env", name], capture_output=True, text=True)
    except OSError as e:
        msg = f"go not found: {e}"
        raise ToolchainUnavailable(msg) from e
    if r.returncode != 0:
        msg = f"go env {name} failed: {r.stderr.strip()}"
        raise ToolchainUnavailable(msg)
    return r.stdout.strip()


def gomobile_path() -> Path:
    """$GOPATH/pkg/gomobile, preferring the first GOPATH entry where it already exists."""
    gopaths = [p for p in go_env("GOPATH").split(os.pathsep) if p]
    if not gopaths:
        msg = "GOPATH is not set"
        raise ToolchainUnavailable(msg)
    for p in gopaths:
        candidate = Path(p) / "pkg" / "gomobile"
        if candidate.exists():
            return candidate
    return Path(gopaths[0]) / "pkg" / "gomobile"


def go_version() -> str:
    """Full `go version` output. Raises ToolchainUnavailable if go is missing or older than 1.7."""
    gobin = shutil.which("go")
    if gobin is None:
        msg = "go not found"
        raise ToolchainUnavailable(msg)
    r = subprocess.run([gobin, "version"], capture_output=True, text=True)
    output = (r.stdout or "") + (r.stderr or "")
    if r.returncode != 0:
        msg = f"'go version' failed: exit status {r.returncode}, {output}"
        raise ToolchainUnavailable(msg)
    try:
        version = parse_go_version(output)
    except ValueError as e:
        raise ToolchainUnavailable(str(e)) from e
    if compare_versions(version, MIN_GO_VERSION) < 0:
        msg = f"Go {MIN_GO_VERSION} or newer is required (found {version})"
        raise ToolchainUnavailable(msg)
    return output


def check_installed_toolchain(flags: BuildFlags, gomobile: Path) -> None:
    """Verify `matcha init` ran with the current Go. Skipped in dry-run."""
    if not flags.should_run:
        return
    verpath = gomobile / VERSION_FILE
    try:
        installed = verpath.read_text()
    except OSError as e:
        msg = "toolchain partially installed, run `matcha init`"
        raise ToolchainUnavailable(msg) from e
    if installed != go_version():
        msg = "toolchain out of date, run `matcha init`"
        raise ToolchainUnavailable(msg)


def write_installed_version(flags: BuildFlags, gomobile: Path) -> None:
    verpath = gomobile / VERSION_FILE
    if flags.should_print:
        printcmd(f"go version > {verpath}")
    if flags.should_run:
        version = go_version()
        try:
            verpath.write_text(version)
        except OSError as e:
            raise FilesystemError("write", verpath, e) from e
