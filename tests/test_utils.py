"""Unit tests for bazelmod.utils: file helpers and Rich output."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from bazelmod.errors import AlreadyExists, FilesystemError
from bazelmod.utils import (
    atomic_write_text,
    console,
    ensure_dir,
    print_error,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
    read_text,
    relative_to_root,
    write_if_absent,
)


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# ensure_dir / read_text
# ---------------------------------------------------------------------------


class TestEnsureDir:
    def test_creates_nested(self, tmp_path: Path):
        target = tmp_path / "a" / "b" / "c"
        assert ensure_dir(target) == target
        assert target.is_dir()

    def test_existing_is_fine(self, tmp_path: Path):
        ensure_dir(tmp_path)
        assert tmp_path.is_dir()

    def test_file_in_the_way(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(FilesystemError) as excinfo:
            ensure_dir(blocker / "child")
        assert isinstance(excinfo.value.error, OSError)


class TestReadText:
    def test_missing(self, tmp_path: Path):
        with pytest.raises(FilesystemError):
            read_text(tmp_path / "nope")


# ---------------------------------------------------------------------------
# write_if_absent
# ---------------------------------------------------------------------------


class TestWriteIfAbsent:
    def test_creates_with_parents(self, tmp_path: Path):
        target = tmp_path / "Sources" / "A.swift"
        assert write_if_absent(target, "struct A {}\n") == target
        assert target.read_text(encoding="utf-8") == "struct A {}\n"

    def test_existing_file_is_kept(self, tmp_path: Path):
        target = tmp_path / "BUILD.bazel"
        target.write_text("# hand written\n", encoding="utf-8")

        with pytest.raises(AlreadyExists) as excinfo:
            write_if_absent(target, "# generated\n")

        assert excinfo.value.path == target
        assert target.read_text(encoding="utf-8") == "# hand written\n"


# ---------------------------------------------------------------------------
# atomic_write_text
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_replaces_content(self, tmp_path: Path):
        target = tmp_path / "BUILD.bazel"
        target.write_text("old\n", encoding="utf-8")
        atomic_write_text(target, "new\n")
        assert target.read_text(encoding="utf-8") == "new\n"
        assert [p.name for p in tmp_path.iterdir()] == ["BUILD.bazel"]

    def test_preserves_mode(self, tmp_path: Path):
        target = tmp_path / "BUILD.bazel"
        target.write_text("old\n", encoding="utf-8")
        os.chmod(target, 0o640)
        atomic_write_text(target, "new\n")
        assert stat.S_IMODE(target.stat().st_mode) == 0o640

    def test_keeps_newlines_verbatim(self, tmp_path: Path):
        target = tmp_path / "BUILD.bazel"
        target.write_text("old\n", encoding="utf-8")
        atomic_write_text(target, "a\r\nb\n")
        assert target.read_bytes() == b"a\r\nb\n"

    def test_failure_leaves_original(self, tmp_path: Path):
        target = tmp_path / "BUILD.bazel"
        target.write_bytes(b"original\n")

        with patch("bazelmod.utils.os.replace", side_effect=OSError(13, "Permission denied")):
            with pytest.raises(FilesystemError, match="Permission denied"):
                atomic_write_text(target, "new\n")

        assert target.read_bytes() == b"original\n"
        assert [p.name for p in tmp_path.iterdir()] == ["BUILD.bazel"]

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FilesystemError):
            atomic_write_text(tmp_path / "missing" / "BUILD.bazel", "x\n")


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class TestRelativeToRoot:
    def test_inside(self, tmp_path: Path):
        assert relative_to_root(tmp_path / "App" / "BUILD.bazel", tmp_path) == Path("App/BUILD.bazel")

    def test_outside(self, tmp_path: Path):
        other = Path("/elsewhere/BUILD.bazel")
        assert relative_to_root(other, tmp_path) == other


class TestPrintHelpers:
    def test_markup_in_messages_is_escaped(self):
        with console.capture() as capture:
            print_error("bad [red]label[/red]")
            print_warning("careful")
            print_success("done")
            print_info("//Features/Login:Login")
        output = capture.get()
        assert "bad [red]label[/red]" in output
        assert "careful" in output
        assert "//Features/Login:Login" in output

    def test_summary_table(self):
        with console.capture() as capture:
            print_summary_table({"Type": "feature", "Label": "//Features/Login:Login"}, title="Module")
        output = capture.get()
        assert "feature" in output
        assert "Module" in output
