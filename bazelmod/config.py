"""bazelmod configuration.

Typed settings for a scaffolded checkout. All settings use Pydantic v2 models
so they are validated at construction time and can be persisted next to the
project as ``.bazelmod.json`` or supplied through environment variables.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from bazelmod.scaffolder.archetypes import ModuleArchetype
from bazelmod.utils import atomic_write_text, ensure_dir, read_text

CONFIG_FILENAME = ".bazelmod.json"

_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")


class RulesConfig(BaseModel):
    """Pinned ``bazel_dep`` versions written into ``MODULE.bazel``."""

    rules_apple: str = Field(default="4.2.0")
    rules_swift: str = Field(default="3.1.2")
    apple_support: str = Field(default="1.23.1")
    bazel_skylib: str = Field(default="1.8.1")
    platforms: str = Field(default="1.0.0")
    rules_xcodeproj: str = Field(default="3.2.0")
    rules_cc: str = Field(default="0.2.8")

    def as_dict(self) -> dict[str, str]:
        """Return a plain ``{repository: version}`` mapping in declaration order."""
        return self.model_dump()


class AppConfig(BaseModel):
    """Settings for the host application and per-feature development apps."""

    project_name: str = Field(default="BzlmodApp", min_length=1)
    bundle_id: str = Field(default="com.example.bazelapp")
    dev_bundle_id_prefix: str = Field(
        default="com.example.dev",
        description="Prefix for the bundle id of each feature's dev app",
    )
    minimum_os_version: str = Field(default="16.0")
    families: list[str] = Field(default_factory=lambda: ["iphone", "ipad"])

    @field_validator("minimum_os_version")
    @classmethod
    def _check_os_version(cls, value: str) -> str:
        if not _VERSION_RE.match(value):
            raise ValueError(f"not a version number: {value!r}")
        return value


class Config(BaseModel):
    """Global bazelmod configuration.

    Created once by the CLI entry point and passed to the generators and the
    linker. Paths of the two declaration files that get edited are stored
    relative to ``project_root``.
    """

    project_root: Path = Field(default=Path("."))
    bazel_version: str = Field(default="8.4.1")
    xcode_version: str = Field(default="16.4")
    app_build_file: str = Field(default="App/BUILD.bazel")
    root_build_file: str = Field(default="BUILD.bazel")
    app: AppConfig = Field(default_factory=AppConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)

    @field_validator("bazel_version", "xcode_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if not _VERSION_RE.match(value):
            raise ValueError(f"not a version number: {value!r}")
        return value

    @field_validator("app_build_file", "root_build_file")
    @classmethod
    def _check_relative(cls, value: str) -> str:
        if Path(value).is_absolute():
            raise ValueError(f"must be relative to the project root: {value!r}")
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def app_build_path(self) -> Path:
        """Declaration file of the host app (receives module deps)."""
        return self.project_root / self.app_build_file

    @property
    def root_build_path(self) -> Path:
        """Root declaration file holding the ``xcodeproj`` target."""
        return self.project_root / self.root_build_file

    @property
    def config_path(self) -> Path:
        """Where :meth:`save` writes by default."""
        return self.project_root / CONFIG_FILENAME

    def module_path(self, archetype: "str | ModuleArchetype", name: str) -> Path:
        """Directory of module *name*, e.g. ``<root>/Features/Login``."""
        return self.project_root / ModuleArchetype.parse(archetype).spec.parent_dir / name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        ``project_root`` is not written: a saved config always applies to the
        directory it lives in.

        Args:
            path: Destination file. Defaults to ``<project_root>/.bazelmod.json``.

        Returns:
            The path that was written.
        """
        target = Path(path) if path is not None else self.config_path
        ensure_dir(target.parent)
        return atomic_write_text(
            target, self.model_dump_json(indent=2, exclude={"project_root"}) + "\n"
        )

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration.

        ``project_root`` is set to the directory containing *path*.
        """
        path = Path(path)
        data = cls.model_validate_json(read_text(path))
        data.project_root = path.parent
        return data

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            BAZELMOD_PROJECT_ROOT, BAZELMOD_PROJECT_NAME, BAZELMOD_BUNDLE_ID,
            BAZELMOD_DEV_BUNDLE_PREFIX, BAZELMOD_MIN_OS, BAZELMOD_BAZEL_VERSION,
            BAZELMOD_XCODE_VERSION.
        """
        app_kwargs: dict[str, Any] = {}
        if os.environ.get("BAZELMOD_PROJECT_NAME"):
            app_kwargs["project_name"] = os.environ["BAZELMOD_PROJECT_NAME"]
        if os.environ.get("BAZELMOD_BUNDLE_ID"):
            app_kwargs["bundle_id"] = os.environ["BAZELMOD_BUNDLE_ID"]
        if os.environ.get("BAZELMOD_DEV_BUNDLE_PREFIX"):
            app_kwargs["dev_bundle_id_prefix"] = os.environ["BAZELMOD_DEV_BUNDLE_PREFIX"]
        if os.environ.get("BAZELMOD_MIN_OS"):
            app_kwargs["minimum_os_version"] = os.environ["BAZELMOD_MIN_OS"]

        kwargs: dict[str, Any] = {}
        if os.environ.get("BAZELMOD_BAZEL_VERSION"):
            kwargs["bazel_version"] = os.environ["BAZELMOD_BAZEL_VERSION"]
        if os.environ.get("BAZELMOD_XCODE_VERSION"):
            kwargs["xcode_version"] = os.environ["BAZELMOD_XCODE_VERSION"]

        return cls(
            project_root=Path(os.environ.get("BAZELMOD_PROJECT_ROOT", ".")),
            app=AppConfig(**app_kwargs),
            **kwargs,
        )

    @classmethod
    def discover(cls, root: Path | None = None) -> "Config":
        """Resolve the configuration for a checkout.

        Loads ``<root>/.bazelmod.json`` when present, otherwise falls back to
        :meth:`from_env`. An explicit *root* always wins over
        ``BAZELMOD_PROJECT_ROOT``.
        """
        if root is None:
            root = Path(os.environ.get("BAZELMOD_PROJECT_ROOT", "."))
        saved = Path(root) / CONFIG_FILENAME
        if saved.is_file():
            return cls.load(saved)
        config = cls.from_env()
        config.project_root = Path(root)
        return config
