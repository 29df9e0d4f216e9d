"""Tests for the argparse entry point (bazelmod.cli)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bazelmod.cli import build_parser, main
from bazelmod.config import CONFIG_FILENAME


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


def _run(root: Path, *args: str) -> None:
    main(["--root", str(root), *args])


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestParser:
    def test_command_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_link_module_archetype_is_optional(self):
        args = build_parser().parse_args(["link-module", "Features/Login", "Login"])
        assert args.archetype is None
        assert args.target is None

    def test_create_module_target(self):
        args = build_parser().parse_args(["create-module", "feature", "Login", "--target", "AppLib"])
        assert (args.archetype, args.name, args.target) == ("feature", "Login", "AppLib")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommands:
    def test_init(self, tmp_project_dir: Path):
        _run(tmp_project_dir, "init", "--project-name", "Shop")

        assert (tmp_project_dir / "App" / "BUILD.bazel").is_file()
        saved = json.loads((tmp_project_dir / CONFIG_FILENAME).read_text(encoding="utf-8"))
        assert saved["app"]["project_name"] == "Shop"

    def test_create_module(self, tmp_project_dir: Path):
        _run(tmp_project_dir, "init")
        _run(tmp_project_dir, "create-module", "feature", "Login")

        assert (tmp_project_dir / "Features/Login/BUILD.bazel").is_file()
        assert '"//Features/Login:Login"' in (tmp_project_dir / "App/BUILD.bazel").read_text(encoding="utf-8")
        assert '"//Features/Login:LoginDevApp"' in (tmp_project_dir / "BUILD.bazel").read_text(
            encoding="utf-8"
        )

    def test_link_module_is_idempotent(self, tmp_project_dir: Path, app_build: Path):
        _run(tmp_project_dir, "link-module", "Common/Utils", "Utils")
        once = app_build.read_bytes()
        _run(tmp_project_dir, "link-module", "Common/Utils", "Utils")
        assert app_build.read_bytes() == once

    def test_setup_core_and_prune(self, tmp_project_dir: Path):
        _run(tmp_project_dir, "init")
        _run(tmp_project_dir, "setup-core")
        _run(tmp_project_dir, "prune-targets")
        assert (tmp_project_dir / "Core/Presentation/BUILD.bazel").is_file()


# ---------------------------------------------------------------------------
# Exit status
# ---------------------------------------------------------------------------


class TestExitStatus:
    def test_invalid_archetype(self, tmp_project_dir: Path, capsys: pytest.CaptureFixture[str]):
        with pytest.raises(SystemExit) as excinfo:
            _run(tmp_project_dir, "create-module", "widget", "Login")
        assert excinfo.value.code == 1
        out = capsys.readouterr().out
        assert "widget" in out
        assert "Features" not in [p.name for p in tmp_project_dir.iterdir()]

    def test_link_without_app_build(self, tmp_project_dir: Path):
        with pytest.raises(SystemExit) as excinfo:
            _run(tmp_project_dir, "link-module", "Data/Net", "Net")
        assert excinfo.value.code == 1

    def test_link_into_file_without_deps(self, tmp_project_dir: Path, write_file):
        write_file("App/BUILD.bazel", 'exports_files(["Info.plist"])\n')
        with pytest.raises(SystemExit) as excinfo:
            _run(tmp_project_dir, "link-module", "Data/Net", "Net")
        assert excinfo.value.code == 1

    def test_unknown_link_category(self, tmp_project_dir: Path, app_build: Path):
        with pytest.raises(SystemExit) as excinfo:
            _run(tmp_project_dir, "link-module", "Data/Net", "Net", "widget")
        assert excinfo.value.code == 1

    def test_broken_saved_config(self, tmp_project_dir: Path):
        (tmp_project_dir / CONFIG_FILENAME).write_text('{"bazel_version": "latest"}', encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            _run(tmp_project_dir, "init")
        assert excinfo.value.code == 1
