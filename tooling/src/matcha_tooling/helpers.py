"""Shared helpers for matcha_tooling (naming, version parsing/comparison)."""

from __future__ import annotations

import re

# --- Text ---


def to_pascal_case(name: str) -> str:
    """Convert kebab/snake-case to PascalCase (e.g. my-lib -> MyLib, matcha -> Matcha)."""
    return "".join(word.capitalize() for word in re.split(r"[-_]", name) if word)


def java_package_name(module_name: str) -> str:
    """Java package for a bound module: go.<name>, lowercased, non-identifier chars dropped."""
    ident = re.sub(r"[^a-z0-9_]", "", module_name.lower())
    return f"go.{ident or 'main'}"


# --- Version ---


def compare_versions(v1: str, v2: str) -> int:
    """Compare two version strings (semver). Returns positive if v1 > v2, negative if v1 < v2, zero if equal. Raises ValueError on invalid format."""
    v1 = v1.lstrip("v")
    v2 = v2.lstrip("v")

    def parse_version(v: str) -> tuple[int, int, int, str | None]:
        m = re.match(r"^(\d+)\.(\d+)(?:\.(\d+))?(?:-([\w.-]+))?$", v)
        if not m:
            msg = "Invalid version format: " + str(v)
            raise ValueError(msg)
        return (int(m.group(1)), int(m.group(2)), int(m.group(3) or 0), m.group(4))

    major1, minor1, patch1, prerelease1 = parse_version(v1)
    major2, minor2, patch2, prerelease2 = parse_version(v2)

    if major1 != major2:
        return major1 - major2
    if minor1 != minor2:
        return minor1 - minor2
    if patch1 != patch2:
        return patch1 - patch2

    if prerelease1 is None and prerelease2 is not None:
        return 1
    if prerelease1 is not None and prerelease2 is None:
        return -1
    if prerelease1 is None and prerelease2 is None:
        return 0

    if prerelease1 < prerelease2:
        return -1
    if prerelease1 > prerelease2:
        return 1
    return 0


_GO_VERSION_RE = re.compile(r"go version go(\d+\.\d+(?:\.\d+)?)(\S*)")


def parse_go_version(output: str) -> str:
    """Extract X.Y[.Z] from `go version` output (e.g. 'go version go1.21.3 linux/amd64' -> '1.21.3').

    Development builds ('go version devel ...') are treated as newest and return '999.0.0'.
    Raises ValueError if the output is not recognised.
    """
    s = output.strip()
    if s.startswith("go version devel"):
        return "999.0.0"
    m = _GO_VERSION_RE.match(s)
    if not m:
        msg = f"Unrecognised go version output: {s!r}"
        raise ValueError(msg)
    return m.group(1)
