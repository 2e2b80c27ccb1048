"""Build flags shared by bind and init (-n, -x, -v, -work, -o, -target, ...)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class BuildFlags:
    """Immutable command-line options, passed explicitly to every step.

    dry_run (-n) prints commands without running them; print_commands (-x)
    prints and runs; verbose (-v) streams compiler output; keep_work (-work)
    keeps the scratch directory and prints its location.
    """

    dry_run: bool = False
    print_commands: bool = False
    verbose: bool = False
    keep_work: bool = False
    output: Path | None = None
    target: str = "ios"
    gcflags: str = ""
    ldflags: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def should_print(self) -> bool:
        return self.dry_run or self.print_commands

    @property
    def should_run(self) -> bool:
        return not self.dry_run
