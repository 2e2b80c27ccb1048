"""Assemble a static iOS framework: <Title>.framework with a versioned layout.

    <Title>.framework/
        Versions/A/{Headers,Resources,Modules,<Title>}
        Versions/Current -> A
        Headers -> Versions/Current/Headers
        Resources -> Versions/Current/Resources
        Modules -> Versions/Current/Modules
        <Title> -> Versions/Current/<Title>

Directories are created first, then symlinks, then files. The root is removed
before anything is written, so re-running produces the same tree.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from matcha_tooling.errors import InvalidBundleName
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import copy_file, mkdir, remove_all, symlink, write_file

FRAMEWORK_SUFFIX = ".framework"

INFO_PLIST = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
  <dict>
  </dict>
</plist>
"""


@dataclass(frozen=True)
class BundleConfig:
    root: Path
    title: str
    module_name: str
    version_tag: str = "A"


@dataclass(frozen=True)
class ModuleManifest:
    module_name: str
    header_names: tuple[str, ...]

    def render(self) -> str:
        lines = [f'framework module "{self.module_name}" {{']
        lines += [f'    header "{h}"' for h in self.header_names]
        lines += ["", "    export *", "}", ""]
        return "\n".join(lines)


def validate_root(root: Path, suffix: str = FRAMEWORK_SUFFIX) -> None:
    if not root.name.endswith(suffix) or root.name == suffix:
        raise InvalidBundleName(root, suffix)


def assemble(
    flags: BuildFlags,
    config: BundleConfig,
    merged_binary: Path,
    headers: Sequence[Path],
    resources: Sequence[tuple[str, bytes]] = (("Info.plist", INFO_PLIST.encode()),),
) -> Path:
    """Create the framework at config.root. Returns config.root.

    Raises InvalidBundleName if the root lacks the .framework suffix, FilesystemError otherwise.
    """
    root = config.root
    validate_root(root)

    remove_all(flags, root)

    versions = root / "Versions"
    version_dir = versions / config.version_tag
    headers_dir = version_dir / "Headers"
    resources_dir = version_dir / "Resources"
    modules_dir = version_dir / "Modules"
    for d in (headers_dir, resources_dir, modules_dir):
        mkdir(flags, d)

    current = Path("Versions") / "Current"
    symlink(flags, config.version_tag, versions / "Current")
    for entry in ("Headers", "Resources", "Modules", config.title):
        symlink(flags, current / entry, root / entry)

    header_names: list[str] = []
    for h in headers:
        copy_file(flags, headers_dir / h.name, h)
        header_names.append(h.name)
    for name, data in resources:
        write_file(flags, resources_dir / name, data)
    copy_file(flags, version_dir / config.title, merged_binary)

    manifest = ModuleManifest(config.module_name, tuple(header_names))
    write_file(flags, modules_dir / "module.modulemap", manifest.render())
    return root
