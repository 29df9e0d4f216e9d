"""Scaffolding orchestrators.

``ModuleGenerator`` renders one archetype into ``<Parent>/<Name>/``;
``ProjectGenerator`` writes the workspace files and the host ``App/`` module.
Both follow the same policy for every file: create it when missing, leave it
alone (and report ``AlreadyExists``) when present. Directory creation is
idempotent. Nothing here edits files that already exist; that is the
linker's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bazelmod.errors import AlreadyExists
from bazelmod.scaffolder.archetypes import (
    CORE_LAYERS,
    DEV_APP_TEMPLATE,
    CoreLayerSpec,
    Module,
    ModuleArchetype,
    make_label,
)
from bazelmod.scaffolder.templates import TemplateRenderer
from bazelmod.utils import ensure_dir, write_if_absent

if TYPE_CHECKING:
    from bazelmod.config import Config

BUILD_FILENAME = "BUILD.bazel"

# (template, output path relative to the project root)
WORKSPACE_FILES: tuple[tuple[str, str], ...] = (
    ("project/bazelversion.j2", ".bazelversion"),
    ("project/MODULE.bazel.j2", "MODULE.bazel"),
    ("project/bazelrc.j2", ".bazelrc"),
    ("project/BUILD.bazel.j2", "BUILD.bazel"),
)

APP_FILES: tuple[tuple[str, str], ...] = (
    ("project/App/BUILD.bazel.j2", "App/BUILD.bazel"),
    ("project/App/App.swift.j2", "App/Sources/App.swift"),
    ("project/App/ContentView.swift.j2", "App/Sources/ContentView.swift"),
    ("project/App/Info.plist.j2", "App/Info.plist"),
    ("project/App/AppTests.swift.j2", "App/Tests/AppTests.swift"),
    ("project/gitignore.j2", ".gitignore"),
    ("project/Makefile.j2", "Makefile"),
)

APP_DIRS: tuple[str, ...] = ("App/Sources", "App/Resources", "App/Tests")


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class ScaffoldResult:
    """Files touched by one scaffolding run.

    ``skipped`` holds the ``AlreadyExists`` warnings: files that were on disk
    already and were not overwritten.
    """

    root: Path
    label: str | None = None
    created: list[Path] = field(default_factory=list)
    skipped: list[AlreadyExists] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)

    @property
    def skipped_paths(self) -> list[Path]:
        return [warning.path for warning in self.skipped]


def _emit(result: ScaffoldResult, path: Path, content: str) -> None:
    try:
        result.created.append(write_if_absent(path, content))
    except AlreadyExists as warning:
        result.skipped.append(warning)


# ---------------------------------------------------------------------------
# Module generator
# ---------------------------------------------------------------------------


class ModuleGenerator:
    """Renders module archetypes into the project tree."""

    def __init__(self, config: Config, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    def scaffold(self, archetype: str | ModuleArchetype, name: str) -> ScaffoldResult:
        """Create the directories and files of a new module.

        Args:
            archetype: One of ``core``, ``data``, ``feature``, ``common``.
            name: Module name, used verbatim as Swift module and target name.

        Returns:
            A ``ScaffoldResult``; files that already existed are listed in
            ``skipped`` and left untouched.

        Raises:
            InvalidArchetype: Unknown archetype.
            InvalidModuleName: Empty name.
            FilesystemError: A directory or file could not be created. Files
                written before the failure stay on disk; re-running is safe.
        """
        module = Module.create(archetype, name)
        spec = module.spec
        root = self.config.module_path(module.archetype, module.name)
        result = ScaffoldResult(root=root, label=module.label)

        for subdir in spec.subdirs:
            result.directories.append(ensure_dir(root / subdir))

        context = self.module_context(module)
        build = self.renderer.render(spec.build_template, context)
        if spec.has_dev_app:
            build += self.renderer.render(DEV_APP_TEMPLATE, context)
        _emit(result, root / BUILD_FILENAME, build)

        for template, pattern in spec.sample_files:
            content = self.renderer.render(template, context)
            _emit(result, root / pattern.format(name=module.name), content)

        return result

    def scaffold_core_layer(self, layer: CoreLayerSpec) -> ScaffoldResult:
        """Create one of the shared ``Core/*`` layers."""
        root = self.config.project_root / layer.path
        result = ScaffoldResult(root=root, label=make_label(layer.path, layer.name))
        context = {"name": layer.name, "module_path": layer.path, "app": self.config.app.model_dump()}

        _emit(result, root / BUILD_FILENAME, self.renderer.render(layer.build_template, context))
        for template, relative in layer.files:
            result.directories.append(ensure_dir((root / relative).parent))
            _emit(result, root / relative, self.renderer.render(template, context))
        return result

    def scaffold_core_layers(self) -> list[ScaffoldResult]:
        """Create ``Core/Domain``, ``Core/Data`` and ``Core/Presentation``."""
        return [self.scaffold_core_layer(layer) for layer in CORE_LAYERS]

    def module_context(self, module: Module) -> dict[str, Any]:
        """Template variables for *module*."""
        return {
            "name": module.name,
            "archetype": module.archetype.value,
            "module_path": str(module.path),
            "label": module.label,
            "dev_app_name": module.dev_app_name,
            "app": self.config.app.model_dump(),
        }


# ---------------------------------------------------------------------------
# Project generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Writes the workspace files and the host application module."""

    def __init__(self, config: Config, renderer: TemplateRenderer | None = None) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()

    def ensure_workspace(self) -> ScaffoldResult:
        """Create ``BUILD.bazel``, ``MODULE.bazel``, ``.bazelversion`` and ``.bazelrc`` if missing."""
        result = ScaffoldResult(root=self.config.project_root)
        ensure_dir(self.config.project_root)
        self._render_all(result, WORKSPACE_FILES)
        return result

    def generate(self) -> ScaffoldResult:
        """Bootstrap a complete project: workspace files plus ``App/``."""
        result = self.ensure_workspace()
        for directory in APP_DIRS:
            result.directories.append(ensure_dir(self.config.project_root / directory))
        self._render_all(result, APP_FILES)
        return result

    def project_context(self) -> dict[str, Any]:
        return {
            "app": self.config.app.model_dump(),
            "rules": self.config.rules.as_dict(),
            "bazel_version": self.config.bazel_version,
            "xcode_version": self.config.xcode_version,
        }

    def _render_all(self, result: ScaffoldResult, files: tuple[tuple[str, str], ...]) -> None:
        context = self.project_context()
        for template, relative in files:
            target = self._target_path(relative)
            _emit(result, target, self.renderer.render(template, context))

    def _target_path(self, relative: str) -> Path:
        # Declaration files honour the configured locations.
        if relative == "BUILD.bazel":
            return self.config.root_build_path
        if relative == "App/BUILD.bazel":
            return self.config.app_build_path
        return self.config.project_root / relative
