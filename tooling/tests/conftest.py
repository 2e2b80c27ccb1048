"""Pytest fixtures for matcha tooling tests."""

from pathlib import Path

import pytest

from matcha_tooling.config import MatchaConfig
from matcha_tooling.errors import ToolchainUnavailable
from matcha_tooling.flags import BuildFlags


class FakeLocator:
    """Toolchain locator returning fixed paths; fails for platforms in `missing`."""

    def __init__(self, missing: tuple[str, ...] = ()) -> None:
        self.missing = missing
        self.calls: list[tuple[str, str, str]] = []

    def find_compiler(self, platform: str, sdk_name: str) -> str:
        self.calls.append(("compiler", platform, sdk_name))
        if platform in self.missing:
            raise ToolchainUnavailable(f"{platform} toolchain not installed")
        return f"/toolchain/{sdk_name}/clang"

    def find_sdk_root(self, platform: str, sdk_name: str) -> str:
        self.calls.append(("sdk", platform, sdk_name))
        if platform in self.missing:
            raise ToolchainUnavailable(f"{platform} toolchain not installed")
        return f"/sdk/{sdk_name}"


@pytest.fixture
def flags() -> BuildFlags:
    return BuildFlags()


@pytest.fixture
def dry_flags() -> BuildFlags:
    return BuildFlags(dry_run=True)


@pytest.fixture
def config() -> MatchaConfig:
    return MatchaConfig()


@pytest.fixture
def locator() -> FakeLocator:
    return FakeLocator()


@pytest.fixture
def support_dir(tmp_path: Path, config: MatchaConfig) -> Path:
    """Directory holding <name>.support for every configured support file."""
    d = tmp_path / "support"
    d.mkdir()
    for name in config.support_files:
        (d / f"{name}.support").write_text(f"// {name}\n")
    return d


@pytest.fixture
def locator_factory() -> type[FakeLocator]:
    return FakeLocator
