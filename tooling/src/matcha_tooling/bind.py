"""`matcha bind`: compile a Go package for every target arch and package it as a framework or .aar.

Pipeline: parse -target, check the installed toolchain, write the binding
main package and support files into a scratch dir, build all archs
concurrently, then (iOS) lipo + framework or (Android) .aar.

Dry-run (-n) goes through exactly the same steps; only the side effects in
fsops/toolchain/compile are suppressed. The `package main` check then reads
the package clause from the sources, so it only covers packages found under
the project root or $GOPATH/src.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path

from matcha_tooling.bundle import BundleConfig, assemble_aar, assemble_framework
from matcha_tooling.bundle.aar import AAR_SUFFIX
from matcha_tooling.bundle.framework import FRAMEWORK_SUFFIX, validate_root
from matcha_tooling.compile import (
    ARTIFACT_SUFFIX,
    SHARED_LIBRARY,
    STATIC_ARCHIVE,
    check_packages,
    go_build,
    go_list,
    package_dir,
)
from matcha_tooling.config import MatchaConfig
from matcha_tooling.dispatch import dispatch_all
from matcha_tooling.env import build_environment
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import copy_file, mkdir, new_work_dir, remove_all, write_file
from matcha_tooling.merge import merge_archives
from matcha_tooling.target import TargetSpec, parse_target
from matcha_tooling.toolchain import ToolchainLocator, check_installed_toolchain, go_env, gomobile_path

log = logging.getLogger(__name__)

GOMOBILE_PLACEHOLDER = Path("$GOMOBILE")

MAIN_TEMPLATE = """package main

import (
    _ "{bridge}"
    _ "{package}"
)

import "C"

func main() {{}}
"""


def default_output(spec: TargetSpec, config: MatchaConfig, project_root: Path) -> Path:
    if spec.platform == "ios":
        return project_root / f"{config.title}{FRAMEWORK_SUFFIX}"
    return project_root / f"{config.name}{AAR_SUFFIX}"


def resolve_output(flags: BuildFlags, spec: TargetSpec, config: MatchaConfig, project_root: Path) -> Path:
    """Bundle root from -o (relative to project_root) or the default; suffix is validated here."""
    if flags.output is None:
        out = default_output(spec, config, project_root)
    else:
        out = flags.output if flags.output.is_absolute() else project_root / flags.output
    validate_root(out, FRAMEWORK_SUFFIX if spec.platform == "ios" else AAR_SUFFIX)
    return out


def with_platform_tags(flags: BuildFlags, platform: str) -> BuildFlags:
    """flags with the `ios` build tag appended for iOS targets (GOOS=darwin alone selects macOS code)."""
    if platform != "ios" or "ios" in flags.tags:
        return flags
    return replace(flags, tags=(*flags.tags, "ios"))


def _bind_import_path(flags: BuildFlags, packages: list[str], project_root: Path) -> str:
    if packages:
        return packages[0]
    lines = go_list(flags, "{{.ImportPath}}", ["."], cwd=project_root)
    return lines[0] if lines else "."


def bind(
    flags: BuildFlags,
    packages: list[str],
    *,
    config: MatchaConfig,
    project_root: Path,
    locator: ToolchainLocator | None = None,
    overrides: Mapping[str, str] | None = None,
) -> Path:
    """Build the bundle for flags.target. Returns the bundle path. Raises MatchaError subclasses."""
    spec = parse_target(flags.target)
    output = resolve_output(flags, spec, config, project_root)
    log.debug("bind %s for %s/%s -> %s", packages or ["."], spec.platform, ",".join(spec.archs), output)

    gomobile = gomobile_path() if flags.should_run else GOMOBILE_PLACEHOLDER
    check_installed_toolchain(flags, gomobile)
    check_packages(flags, packages, project_root)
    import_path = _bind_import_path(flags, packages, project_root)

    work_dir = new_work_dir(flags)
    try:
        return _bind_in(flags, spec, import_path, output, work_dir, gomobile, config, locator, overrides)
    finally:
        if flags.keep_work:
            print(f"WORK={work_dir}")
        else:
            remove_all(flags, work_dir)


def _bind_in(
    flags: BuildFlags,
    spec: TargetSpec,
    import_path: str,
    output: Path,
    work_dir: Path,
    gomobile: Path,
    config: MatchaConfig,
    locator: ToolchainLocator | None,
    overrides: Mapping[str, str] | None,
) -> Path:
    gen_dir = work_dir / "gen"
    bridge_dir = gen_dir / "src" / config.bridge_import
    mkdir(flags, bridge_dir)

    main_path = work_dir / "src" / "matchabin" / "main.go"
    write_file(flags, main_path, MAIN_TEMPLATE.format(bridge=config.bridge_import, package=import_path))

    support_dir = config.support_dir or package_dir(flags, config.support_import)
    for name in config.support_files:
        copy_file(flags, bridge_dir / name, support_dir / f"{name}.support")

    if flags.should_run:
        gopath = os.pathsep.join([str(gen_dir), go_env("GOPATH")])
    else:
        gopath = f"{gen_dir}{os.pathsep}$GOPATH"

    locator = locator or ToolchainLocator(flags)
    mode = STATIC_ARCHIVE if spec.platform == "ios" else SHARED_LIBRARY
    build_flags = with_platform_tags(flags, spec.platform)

    def env_factory(arch: str):
        return build_environment(arch, spec.platform, locator, config=config, overrides=overrides)

    def compile_fn(env, out: Path) -> Path:
        return go_build(build_flags, env, main_path, out, mode, gomobile=gomobile, work_dir=work_dir, gopath=gopath)

    results = dispatch_all(
        spec.archs,
        env_factory,
        compile_fn,
        work_dir,
        flags=flags,
        name=config.name,
        suffix=ARTIFACT_SUFFIX[mode],
    )

    if spec.platform == "ios":
        merged = merge_archives(flags, results, work_dir / config.title, work_dir)
        headers = [bridge_dir / h for h in config.headers]
        bundle = BundleConfig(root=output, title=config.title, module_name=config.title)
        assemble_framework(flags, bundle, merged, headers)
    else:
        bundle = BundleConfig(root=output, title=config.name, module_name=config.name)
        assemble_aar(flags, bundle, results, min_sdk=config.android_api)

    if flags.should_run:
        print(f"✅ Built {output}")
    return output
