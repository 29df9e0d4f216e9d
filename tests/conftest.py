"""Shared pytest fixtures for the bazelmod test suite.

Provides reusable fixtures for:
- Temporary project checkouts
- App and root declaration files in the shapes the linker edits
- A ``Config`` pointing at the temporary checkout
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from bazelmod.config import Config


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary project checkout (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BAZELMOD_* variables from the developer's shell out of the tests."""
    for name in (
        "BAZELMOD_PROJECT_ROOT",
        "BAZELMOD_PROJECT_NAME",
        "BAZELMOD_BUNDLE_ID",
        "BAZELMOD_DEV_BUNDLE_PREFIX",
        "BAZELMOD_MIN_OS",
        "BAZELMOD_BAZEL_VERSION",
        "BAZELMOD_XCODE_VERSION",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_project_dir: Path) -> Config:
    """Default configuration rooted at the temporary checkout."""
    return Config(project_root=tmp_project_dir)


# ---------------------------------------------------------------------------
# Declaration files
# ---------------------------------------------------------------------------

@pytest.fixture
def app_build_text() -> str:
    """App declaration with Core and Feature sections only."""
    return textwrap.dedent("""\
        load("@rules_swift//swift:swift.bzl", "swift_library")
        load("@rules_apple//apple:ios.bzl", "ios_application")

        swift_library(
            name = "AppLib",
            srcs = glob(["Sources/**/*.swift"]),
            module_name = "App",
            deps = [
                # Core modules
                "//Core/Domain:CoreDomain",

                # Feature modules
                "//Features/Home:Home",
            ],
        )

        ios_application(
            name = "App",
            bundle_id = "com.example.bazelapp",
            deps = [":AppLib"],
        )
    """)


@pytest.fixture
def app_build(tmp_project_dir: Path, app_build_text: str) -> Path:
    """``App/BUILD.bazel`` written into the temporary checkout."""
    path = tmp_project_dir / "App" / "BUILD.bazel"
    path.parent.mkdir(parents=True)
    path.write_text(app_build_text, encoding="utf-8")
    return path


@pytest.fixture
def root_build_text() -> str:
    """Root declaration with the xcodeproj target."""
    return textwrap.dedent("""\
        load("@rules_xcodeproj//xcodeproj:defs.bzl", "xcodeproj")

        xcodeproj(
            name = "xcodeproj",
            project_name = "BzlmodApp",
            tags = ["manual"],
            top_level_targets = [
                "//App:App",
            ],
        )
    """)


@pytest.fixture
def root_build(tmp_project_dir: Path, root_build_text: str) -> Path:
    """Root ``BUILD.bazel`` written into the temporary checkout."""
    path = tmp_project_dir / "BUILD.bazel"
    path.write_text(root_build_text, encoding="utf-8")
    return path


@pytest.fixture
def write_file(tmp_project_dir: Path):
    """Return a helper writing dedented text under the temporary checkout."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_project_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write
