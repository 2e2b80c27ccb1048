"""Tests for matcha_tooling.merge (lipo_command, merge_archives)."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from matcha_tooling.dispatch import BuildResult
from matcha_tooling.errors import CompileFailed, MergeFailed
from matcha_tooling.flags import BuildFlags
from matcha_tooling.merge import lipo_command, merge_archives


def _results(*archs: str) -> list[BuildResult]:
    return [BuildResult(a, Path(f"/w/matcha-{a}.a")) for a in archs]


class TestLipoCommand:
    def test_tags_and_paths_in_input_order(self) -> None:
        cmd = lipo_command(_results("arm", "arm64", "amd64"), Path("/w/Matcha"))
        assert cmd == [
            "xcrun",
            "lipo",
            "-create",
            "-arch",
            "armv7",
            "/w/matcha-arm.a",
            "-arch",
            "arm64",
            "/w/matcha-arm64.a",
            "-arch",
            "x86_64",
            "/w/matcha-amd64.a",
            "-o",
            "/w/Matcha",
        ]

    def test_386_maps_to_i386(self) -> None:
        cmd = lipo_command(_results("386"), Path("/w/out"))
        assert cmd[3:5] == ["-arch", "i386"]

    def test_unmapped_arch_fails(self) -> None:
        with pytest.raises(MergeFailed, match="mips"):
            lipo_command(_results("arm64", "mips"), Path("/w/out"))


class TestMergeArchives:
    def test_runs_lipo_and_returns_output(self, flags: BuildFlags) -> None:
        ok = MagicMock(returncode=0, stdout="")
        with patch("matcha_tooling.fsops.subprocess.run", return_value=ok) as run:
            out = merge_archives(flags, _results("arm64", "amd64"), Path("/w/Matcha"))
        assert out == Path("/w/Matcha")
        cmd = run.call_args[0][0]
        assert cmd[:3] == ["xcrun", "lipo", "-create"]
        assert cmd[-2:] == ["-o", "/w/Matcha"]

    def test_non_zero_exit_is_merge_failed_with_output(self, flags: BuildFlags) -> None:
        bad = MagicMock(returncode=1, stdout="fatal error: can't figure out the architecture type")
        with patch("matcha_tooling.fsops.subprocess.run", return_value=bad):
            with pytest.raises(MergeFailed, match="architecture type") as exc:
                merge_archives(flags, _results("arm64"), Path("/w/Matcha"))
        assert "architecture type" in exc.value.diagnostic

    def test_failed_result_is_rejected_before_running(self, flags: BuildFlags) -> None:
        results = [
            BuildResult("arm64", Path("/w/a.a")),
            BuildResult("amd64", Path("/w/b.a"), CompileFailed("amd64", "x")),
        ]
        with patch("matcha_tooling.fsops.subprocess.run") as run:
            with pytest.raises(MergeFailed, match="amd64"):
                merge_archives(flags, results, Path("/w/Matcha"))
        run.assert_not_called()

    def test_empty_input(self, flags: BuildFlags) -> None:
        with pytest.raises(MergeFailed, match="nothing to merge"):
            merge_archives(flags, [], Path("/w/Matcha"))

    def test_dry_run_prints_without_running(self, dry_flags: BuildFlags, capsys) -> None:
        with patch("matcha_tooling.fsops.subprocess.run") as run:
            merge_archives(dry_flags, _results("arm64"), Path("$WORK/Matcha"))
        run.assert_not_called()
        assert "xcrun lipo -create -arch arm64" in capsys.readouterr().err
