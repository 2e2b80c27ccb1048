"""Tests for matcha_tooling.bundle (framework and .aar assembly)."""

import os
import zipfile
from pathlib import Path

import pytest

from matcha_tooling.bundle import BundleConfig, ModuleManifest, assemble_aar, assemble_framework
from matcha_tooling.bundle.aar import android_abi, android_manifest
from matcha_tooling.dispatch import BuildResult
from matcha_tooling.errors import InvalidBundleName, UnsupportedArch
from matcha_tooling.flags import BuildFlags


def _tree(root: Path) -> dict[str, str | bytes]:
    """Relative path -> file bytes, or '-> target' for symlinks."""
    out: dict[str, str | bytes] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            p = Path(dirpath) / name
            rel = str(p.relative_to(root))
            if p.is_symlink():
                out[rel] = "-> " + os.readlink(p)
            elif p.is_file():
                out[rel] = p.read_bytes()
    return out


@pytest.fixture
def inputs(tmp_path: Path) -> tuple[Path, list[Path]]:
    src = tmp_path / "src"
    src.mkdir()
    binary = src / "Matcha"
    binary.write_bytes(b"\xca\xfe\xba\xbe fat")
    headers = []
    for name in ("matchaobjc.h", "matchago.h"):
        h = src / name
        h.write_text(f"// {name}\n")
        headers.append(h)
    return binary, headers


class TestModuleManifest:
    def test_render(self) -> None:
        text = ModuleManifest("Matcha", ("a.h", "b.h")).render()
        assert text == 'framework module "Matcha" {\n    header "a.h"\n    header "b.h"\n\n    export *\n}\n'

    def test_render_without_headers(self) -> None:
        assert ModuleManifest("M", ()).render() == 'framework module "M" {\n\n    export *\n}\n'


class TestAssembleFramework:
    def test_layout(self, tmp_path: Path, inputs, flags: BuildFlags) -> None:
        binary, headers = inputs
        root = tmp_path / "Matcha.framework"
        cfg = BundleConfig(root=root, title="Matcha", module_name="Matcha")
        assert assemble_framework(flags, cfg, binary, headers) == root

        assert os.readlink(root / "Versions" / "Current") == "A"
        for entry in ("Headers", "Resources", "Modules", "Matcha"):
            assert os.readlink(root / entry) == os.path.join("Versions", "Current", entry)
        assert (root / "Matcha").read_bytes() == binary.read_bytes()
        assert (root / "Headers" / "matchago.h").read_text() == "// matchago.h\n"
        assert (root / "Resources" / "Info.plist").read_text().startswith("<?xml")
        modulemap = (root / "Modules" / "module.modulemap").read_text()
        assert 'framework module "Matcha"' in modulemap
        assert 'header "matchaobjc.h"' in modulemap
        assert 'header "matchago.h"' in modulemap

    def test_rerun_produces_identical_tree(self, tmp_path: Path, inputs, flags: BuildFlags) -> None:
        binary, headers = inputs
        cfg = BundleConfig(root=tmp_path / "Matcha.framework", title="Matcha", module_name="Matcha")
        assemble_framework(flags, cfg, binary, headers)
        first = _tree(cfg.root)
        assemble_framework(flags, cfg, binary, headers)
        assert _tree(cfg.root) == first

    def test_replaces_existing_bundle(self, tmp_path: Path, inputs, flags: BuildFlags) -> None:
        binary, headers = inputs
        root = tmp_path / "Matcha.framework"
        (root / "Versions" / "B").mkdir(parents=True)
        (root / "stale.txt").write_text("old")
        (root / "Headers").write_text("not a symlink")
        cfg = BundleConfig(root=root, title="Matcha", module_name="Matcha")
        assemble_framework(flags, cfg, binary, headers)
        assert not (root / "stale.txt").exists()
        assert not (root / "Versions" / "B").exists()
        assert (root / "Headers").is_symlink()

    def test_custom_resources(self, tmp_path: Path, inputs, flags: BuildFlags) -> None:
        binary, headers = inputs
        cfg = BundleConfig(root=tmp_path / "X.framework", title="X", module_name="X")
        assemble_framework(flags, cfg, binary, headers, resources=[("data.bin", b"\x00\x01")])
        assert (cfg.root / "Resources" / "data.bin").read_bytes() == b"\x00\x01"
        assert not (cfg.root / "Resources" / "Info.plist").exists()

    def test_missing_suffix_rejected_before_touching_disk(
        self, tmp_path: Path, inputs, flags: BuildFlags
    ) -> None:
        binary, headers = inputs
        root = tmp_path / "Matcha"
        root.mkdir()
        (root / "keep.txt").write_text("keep")
        with pytest.raises(InvalidBundleName):
            assemble_framework(flags, BundleConfig(root=root, title="Matcha", module_name="Matcha"), binary, headers)
        assert (root / "keep.txt").exists()

    def test_bare_suffix_rejected(self, tmp_path: Path, inputs, flags: BuildFlags) -> None:
        binary, headers = inputs
        cfg = BundleConfig(root=tmp_path / ".framework", title="M", module_name="M")
        with pytest.raises(InvalidBundleName):
            assemble_framework(flags, cfg, binary, headers)

    def test_dry_run_touches_nothing(self, tmp_path: Path, inputs, dry_flags: BuildFlags, capsys) -> None:
        binary, headers = inputs
        cfg = BundleConfig(root=tmp_path / "Matcha.framework", title="Matcha", module_name="Matcha")
        assemble_framework(dry_flags, cfg, binary, headers)
        assert not cfg.root.exists()
        err = capsys.readouterr().err
        assert "ln -s A" in err
        assert "module.modulemap" in err


class TestAssembleAar:
    @pytest.fixture
    def libraries(self, tmp_path: Path) -> list[BuildResult]:
        out = []
        for arch in ("arm", "arm64", "386", "amd64"):
            p = tmp_path / f"matcha-{arch}.so"
            p.write_bytes(f"ELF {arch}".encode())
            out.append(BuildResult(arch, p))
        return out

    def test_entries(self, tmp_path: Path, libraries, flags: BuildFlags) -> None:
        cfg = BundleConfig(root=tmp_path / "matcha.aar", title="matcha", module_name="matcha")
        assemble_aar(flags, cfg, libraries, min_sdk=21)
        with zipfile.ZipFile(cfg.root) as zf:
            names = zf.namelist()
            assert names[:3] == ["AndroidManifest.xml", "R.txt", "proguard.txt"]
            assert names[3:] == [
                "jni/armeabi-v7a/libmatcha.so",
                "jni/arm64-v8a/libmatcha.so",
                "jni/x86/libmatcha.so",
                "jni/x86_64/libmatcha.so",
            ]
            assert zf.read("jni/x86/libmatcha.so") == b"ELF 386"
            manifest = zf.read("AndroidManifest.xml").decode()
        assert 'package="go.matcha"' in manifest
        assert 'android:minSdkVersion="21"' in manifest

    def test_deterministic_bytes(self, tmp_path: Path, libraries, flags: BuildFlags) -> None:
        a = BundleConfig(root=tmp_path / "a" / "matcha.aar", title="matcha", module_name="matcha")
        b = BundleConfig(root=tmp_path / "b" / "matcha.aar", title="matcha", module_name="matcha")
        assemble_aar(flags, a, libraries)
        assemble_aar(flags, b, libraries)
        assert a.root.read_bytes() == b.root.read_bytes()

    def test_extra_resources_follow_metadata(self, tmp_path: Path, libraries, flags: BuildFlags) -> None:
        cfg = BundleConfig(root=tmp_path / "m.aar", title="m", module_name="m")
        assemble_aar(flags, cfg, libraries[:1], resources=[("classes.jar", b"PK")])
        with zipfile.ZipFile(cfg.root) as zf:
            assert zf.namelist()[3] == "classes.jar"

    def test_wrong_suffix(self, tmp_path: Path, libraries, flags: BuildFlags) -> None:
        cfg = BundleConfig(root=tmp_path / "matcha.zip", title="matcha", module_name="matcha")
        with pytest.raises(InvalidBundleName):
            assemble_aar(flags, cfg, libraries)

    def test_dry_run_writes_nothing(self, tmp_path: Path, libraries, dry_flags: BuildFlags) -> None:
        cfg = BundleConfig(root=tmp_path / "matcha.aar", title="matcha", module_name="matcha")
        assemble_aar(dry_flags, cfg, libraries)
        assert not cfg.root.exists()

    def test_abi_mapping(self) -> None:
        assert android_abi("arm64") == "arm64-v8a"
        with pytest.raises(UnsupportedArch):
            android_abi("mips")

    def test_manifest_package_is_sanitised(self) -> None:
        assert 'package="go.mylib"' in android_manifest("my-lib", 16)
