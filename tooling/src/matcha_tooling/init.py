"""`matcha init`: rebuild $GOPATH/pkg/gomobile with the standard library for each target arch."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from matcha_tooling.compile import go_command
from matcha_tooling.config import MatchaConfig
from matcha_tooling.env import build_environment, ios_sdk_name
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import mkdir, new_work_dir, printcmd, remove_all, run_cmd
from matcha_tooling.target import parse_target
from matcha_tooling.toolchain import (
    ToolchainLocator,
    go_version,
    gomobile_path,
    write_installed_version,
)

log = logging.getLogger(__name__)

GOMOBILE_PLACEHOLDER = Path("$GOMOBILE")


def init_toolchain(
    flags: BuildFlags,
    *,
    config: MatchaConfig,
    target: str = "ios",
    locator: ToolchainLocator | None = None,
) -> Path:
    """Install std for every arch of target and write the version marker. Returns the gomobile dir."""
    start = time.monotonic()
    spec = parse_target(target)
    if flags.should_run:
        go_version()
        gomobile = gomobile_path()
    else:
        gomobile = GOMOBILE_PLACEHOLDER
    if flags.should_print:
        printcmd(f"GOMOBILE={gomobile}")

    locator = locator or ToolchainLocator(flags)
    envs = [build_environment(arch, spec.platform, locator, config=config) for arch in spec.archs]

    remove_all(flags, gomobile)
    mkdir(flags, gomobile)
    work_dir = new_work_dir(flags, parent=gomobile, prefix="work-")
    try:
        for env in envs:
            extra: list[str] = []
            if spec.platform == "ios" and ios_sdk_name(env.goarch) == "iphonesimulator":
                extra.append("-tags=ios")
            if flags.verbose:
                print(f"\n# Installing std for {env.goos}/{env.goarch}.")
            cmd = go_command(flags, "install", ["std"], env, gomobile, *extra)
            run_cmd(flags, cmd, env=env.environ(), work_dir=work_dir)
        write_installed_version(flags, gomobile)
    finally:
        remove_all(flags, work_dir)

    if flags.verbose:
        print(f"\nDone, build took {int(time.monotonic() - start)}s.")
    return gomobile
