"""Assemble an Android archive (.aar): manifest plus jni/<abi>/lib<name>.so per architecture.

Entries are written in a fixed order with a fixed timestamp, so the same
inputs always produce the same bytes.
"""

from __future__ import annotations

import io
import zipfile
from collections.abc import Sequence
from pathlib import Path

from matcha_tooling.bundle.framework import BundleConfig, validate_root
from matcha_tooling.dispatch import BuildResult
from matcha_tooling.errors import UnsupportedArch
from matcha_tooling.flags import BuildFlags
from matcha_tooling.fsops import read_file, remove_all, write_file
from matcha_tooling.helpers import java_package_name

AAR_SUFFIX = ".aar"

# GOARCH -> Android ABI directory.
ANDROID_ABIS = {
    "arm": "armeabi-v7a",
    "arm64": "arm64-v8a",
    "386": "x86",
    "amd64": "x86_64",
}

ZIP_DATE = (1980, 1, 1, 0, 0, 0)

MANIFEST_TEMPLATE = """<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="{package}">
  <uses-sdk android:minSdkVersion="{min_sdk}"/>
</manifest>
"""


def android_abi(arch: str) -> str:
    try:
        return ANDROID_ABIS[arch]
    except KeyError:
        raise UnsupportedArch(arch, "android") from None


def android_manifest(module_name: str, min_sdk: int) -> str:
    return MANIFEST_TEMPLATE.format(package=java_package_name(module_name), min_sdk=min_sdk)


def _add(zf: zipfile.ZipFile, name: str, data: bytes) -> None:
    info = zipfile.ZipInfo(name, date_time=ZIP_DATE)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    zf.writestr(info, data)


def assemble(
    flags: BuildFlags,
    config: BundleConfig,
    libraries: Sequence[BuildResult],
    resources: Sequence[tuple[str, bytes]] = (),
    *,
    min_sdk: int = 16,
) -> Path:
    """Write the .aar at config.root from per-arch shared libraries. Returns config.root.

    resources are extra archive entries (e.g. ("classes.jar", data)), written verbatim.
    """
    root = config.root
    validate_root(root, AAR_SUFFIX)
    entries: list[tuple[str, bytes]] = [
        ("AndroidManifest.xml", android_manifest(config.module_name, min_sdk).encode()),
        ("R.txt", b""),
        ("proguard.txt", b""),
    ]
    entries += list(resources)
    lib_name = f"lib{config.title.lower()}.so"
    for r in libraries:
        entries.append((f"jni/{android_abi(r.arch)}/{lib_name}", read_file(flags, r.artifact_path)))

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries:
            _add(zf, name, data)

    remove_all(flags, root)
    write_file(flags, root, buf.getvalue())
    return root
