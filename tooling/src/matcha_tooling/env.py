"""Per-architecture cross-compile environments for the Go toolchain.

A BuildEnvironment is a typed, frozen record. It becomes KEY=VALUE pairs only
at the subprocess boundary (environ()).
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass

from matcha_tooling.config import MatchaConfig
from matcha_tooling.errors import UnsupportedArch, UnsupportedPlatform
from matcha_tooling.target import TARGET_OS

# GOARCH -> clang -arch value (iOS).
CLANG_ARCHS = {
    "arm": "armv7",
    "arm64": "arm64",
    "386": "i386",
    "amd64": "x86_64",
}

# GOARCH -> clang target triple prefix (Android); the API level is appended.
ANDROID_TRIPLES = {
    "arm": "armv7a-linux-androideabi",
    "arm64": "aarch64-linux-android",
    "386": "i686-linux-android",
    "amd64": "x86_64-linux-android",
}

IOS_DEVICE_ARCHS = ("arm", "arm64")

_TYPED_KEYS = ("GOOS", "GOARCH", "CC", "CXX", "CGO_CFLAGS", "CGO_LDFLAGS")


@dataclass(frozen=True)
class BuildEnvironment:
    goos: str
    goarch: str
    cc: str
    cxx: str
    cflags: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()
    extra: tuple[tuple[str, str], ...] = ()

    def environ(self) -> dict[str, str]:
        """Ordered variable mapping passed to one compile invocation."""
        out = {
            "GOOS": self.goos,
            "GOARCH": self.goarch,
            "CC": self.cc,
            "CXX": self.cxx,
            "CGO_CFLAGS": shlex.join(self.cflags),
            "CGO_LDFLAGS": shlex.join(self.ldflags),
        }
        out.update(self.extra)
        return out

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> BuildEnvironment:
        """Build from KEY=VALUE mapping; flag strings are split shell-style."""
        return cls(
            goos=values["GOOS"],
            goarch=values["GOARCH"],
            cc=values.get("CC", ""),
            cxx=values.get("CXX", ""),
            cflags=tuple(shlex.split(values.get("CGO_CFLAGS", ""))),
            ldflags=tuple(shlex.split(values.get("CGO_LDFLAGS", ""))),
            extra=tuple((k, v) for k, v in values.items() if k not in _TYPED_KEYS),
        )


def ios_sdk_name(arch: str) -> str:
    return "iphoneos" if arch in IOS_DEVICE_ARCHS else "iphonesimulator"


def clang_arch(arch: str) -> str:
    """Map GOARCH to the clang/lipo architecture name. Raises UnsupportedArch if unmapped."""
    try:
        return CLANG_ARCHS[arch]
    except KeyError:
        raise UnsupportedArch(arch) from None


def _ios_base(arch: str, locator, config: MatchaConfig) -> dict[str, str]:
    sdk_name = ios_sdk_name(arch)
    clang = locator.find_compiler("ios", sdk_name)
    sdk = locator.find_sdk_root("ios", sdk_name)
    if sdk_name == "iphoneos":
        min_version = f"-miphoneos-version-min={config.ios_min_version}"
    else:
        min_version = f"-mios-simulator-version-min={config.ios_min_version}"
    flags = shlex.join(["-isysroot", sdk, min_version, "-arch", clang_arch(arch)])
    return {
        "GOOS": TARGET_OS["ios"],
        "GOARCH": arch,
        "CC": clang,
        "CXX": clang,
        "CGO_CFLAGS": flags,
        "CGO_LDFLAGS": flags,
    }


def _android_base(arch: str, locator, config: MatchaConfig) -> dict[str, str]:
    if arch not in ANDROID_TRIPLES:
        raise UnsupportedArch(arch, "android")
    clang = locator.find_compiler("android", ANDROID_TRIPLES[arch])
    sysroot = locator.find_sdk_root("android", ANDROID_TRIPLES[arch])
    triple = f"{ANDROID_TRIPLES[arch]}{config.android_api}"
    flags = shlex.join(["-target", triple, "--sysroot", sysroot])
    return {
        "GOOS": TARGET_OS["android"],
        "GOARCH": arch,
        "CC": clang,
        "CXX": clang + "++",
        "CGO_CFLAGS": flags,
        "CGO_LDFLAGS": flags,
    }


def build_environment(
    arch: str,
    platform: str,
    locator,
    *,
    config: MatchaConfig,
    overrides: Mapping[str, str] | None = None,
) -> BuildEnvironment:
    """Build the environment for one architecture. Does not run a build.

    locator provides find_compiler(platform, sdk) and find_sdk_root(platform, sdk)
    and raises ToolchainUnavailable. overrides win over computed values.
    """
    if platform == "ios":
        values = _ios_base(arch, locator, config)
    elif platform == "android":
        values = _android_base(arch, locator, config)
    else:
        raise UnsupportedPlatform(platform)
    if arch == "arm":
        values["GOARM"] = "7"
    values["CGO_ENABLED"] = "1"
    values["GO111MODULE"] = "off"
    if overrides:
        values.update(overrides)
    return BuildEnvironment.from_mapping(values)
