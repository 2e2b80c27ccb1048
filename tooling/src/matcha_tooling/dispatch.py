"""Fan out one compile per architecture and join on all of them.

Environments are built for every architecture before any task is submitted;
a failing environment aborts with no compile started. Once running, every
task is waited for even if another has already failed. The error reported is
the first by architecture order, not by completion order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from matcha_tooling.env import BuildEnvironment
from matcha_tooling.errors import CompileFailed, MatchaError
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import remove_all

log = logging.getLogger(__name__)

EnvFactory = Callable[[str], BuildEnvironment]
CompileFn = Callable[[BuildEnvironment, Path], Path]


@dataclass(frozen=True)
class BuildResult:
    arch: str
    artifact_path: Path
    error: MatchaError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def artifact_path(work_dir: Path, name: str, arch: str, suffix: str = ".a") -> Path:
    return work_dir / f"{name}-{arch}{suffix}"


def _run_one(compile_fn: CompileFn, env: BuildEnvironment, arch: str, output: Path) -> BuildResult:
    try:
        path = compile_fn(env, output)
    except CompileFailed as e:
        return BuildResult(arch, output, e)
    except (MatchaError, OSError) as e:
        return BuildResult(arch, output, CompileFailed(arch, str(e)))
    return BuildResult(arch, path)


def dispatch_all(
    archs: Sequence[str],
    env_factory: EnvFactory,
    compile_fn: CompileFn,
    work_dir: Path,
    *,
    flags: BuildFlags,
    name: str,
    suffix: str = ".a",
) -> list[BuildResult]:
    """Build every arch concurrently. Returns one BuildResult per arch, in arch order.

    Raises the first failing arch's error after all tasks finished; artifacts of
    the successful tasks are removed first.
    """
    envs = [(arch, env_factory(arch)) for arch in archs]
    if not envs:
        return []

    with ThreadPoolExecutor(max_workers=len(envs)) as executor:
        futures = {
            arch: executor.submit(
                _run_one, compile_fn, env, arch, artifact_path(work_dir, name, arch, suffix)
            )
            for arch, env in envs
        }
    # Leaving the with-block joins every task.
    results: list[BuildResult] = []
    errors: list[tuple[str, BaseException]] = []
    for arch in archs:
        try:
            r = futures[arch].result()
        except Exception as e:
            errors.append((arch, e))
            continue
        results.append(r)
        if not r.ok:
            errors.append((arch, r.error))

    if errors:
        for r in results:
            if r.ok:
                remove_all(flags, r.artifact_path)
        for arch, err in errors[1:]:
            log.debug("additional build failure for %s: %s", arch, err)
        raise errors[0][1]
    return results
