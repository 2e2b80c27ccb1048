"""Parse -target values such as "ios", "android/arm,android/386" into a TargetSpec."""

from __future__ import annotations

from dataclasses import dataclass

from matcha_tooling.errors import (
    EmptySpec,
    MixedPlatforms,
    UnsupportedArch,
    UnsupportedPlatform,
)

# Canonical order; a bare platform token expands to this list.
SUPPORTED_ARCHS: dict[str, tuple[str, ...]] = {
    "ios": ("arm", "arm64", "amd64"),
    "android": ("arm", "arm64", "386", "amd64"),
}

TARGET_OS = {
    "ios": "darwin",
    "android": "android",
}


@dataclass(frozen=True)
class TargetSpec:
    platform: str
    archs: tuple[str, ...]

    @property
    def target_os(self) -> str:
        """GOOS for this platform (darwin for ios)."""
        return TARGET_OS[self.platform]


def parse_target(spec: str) -> TargetSpec:
    """Parse a comma-separated list of platform or platform/arch tokens.

    Raises EmptySpec, UnsupportedPlatform, MixedPlatforms or UnsupportedArch.
    """
    if not spec:
        raise EmptySpec()

    platform = ""
    all_archs = False
    requested: list[str] = []
    for i, token in enumerate(spec.split(",")):
        os_arch = token.split("/", 1)
        if os_arch[0] not in SUPPORTED_ARCHS:
            raise UnsupportedPlatform(os_arch[0])
        if i == 0:
            platform = os_arch[0]
        if os_arch[0] != platform:
            raise MixedPlatforms(platform, os_arch[0])
        if len(os_arch) == 1:
            all_archs = True
        else:
            requested.append(os_arch[1])

    supported = SUPPORTED_ARCHS[platform]
    archs: list[str] = []
    for arch in requested:
        if arch in archs:
            continue
        if arch not in supported:
            raise UnsupportedArch(arch, platform)
        archs.append(arch)

    if all_archs:
        return TargetSpec(platform, supported)
    return TargetSpec(platform, tuple(archs))
