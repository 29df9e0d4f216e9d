"""Module archetypes and the table that drives scaffolding.

Each archetype is one record in :data:`ARCHETYPES`: where its modules live,
which directories and files they get, and where their label is linked inside
the app's ``deps`` list. Adding a kind of module means adding a record here
(and its templates), nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator

from bazelmod.errors import InvalidArchetype, InvalidModuleName


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class InsertionCategory(str, Enum):
    """Where in a ``deps`` list a new label belongs."""

    CORE = "core"
    DATA = "data"
    COMMON = "common"
    FEATURE = "feature"
    OTHER = "other"

    @property
    def marker(self) -> str | None:
        """Section comment text (without ``#``), or ``None`` for OTHER."""
        if self is InsertionCategory.OTHER:
            return None
        return f"{self.value.capitalize()} modules"

    @property
    def rank(self) -> int:
        """Position of the section in a deps list (core first, feature last)."""
        return _SECTION_ORDER.index(self) if self in _SECTION_ORDER else len(_SECTION_ORDER)

    @classmethod
    def sections(cls) -> list["InsertionCategory"]:
        """Categories that have a section marker, in list order."""
        return list(_SECTION_ORDER)


_SECTION_ORDER = (
    InsertionCategory.CORE,
    InsertionCategory.DATA,
    InsertionCategory.COMMON,
    InsertionCategory.FEATURE,
)


class ModuleArchetype(str, Enum):
    """The closed set of module kinds."""

    CORE = "core"
    DATA = "data"
    FEATURE = "feature"
    COMMON = "common"

    @classmethod
    def parse(cls, value: "str | ModuleArchetype") -> "ModuleArchetype":
        """Convert user input to an archetype.

        Raises:
            InvalidArchetype: If *value* names no archetype.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidArchetype(str(value), [a.value for a in cls]) from None

    @property
    def spec(self) -> "ArchetypeSpec":
        return ARCHETYPES[self]


# ---------------------------------------------------------------------------
# Archetype table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArchetypeSpec:
    """Everything the scaffolder needs to know about one archetype.

    ``sample_files`` pairs a template path with an output path pattern
    relative to the module root; ``{name}`` in the pattern is replaced with
    the module name.
    """

    archetype: ModuleArchetype
    parent_dir: str
    description: str
    subdirs: tuple[str, ...]
    build_template: str
    sample_files: tuple[tuple[str, str], ...]
    category: InsertionCategory
    has_dev_app: bool = False


ARCHETYPES: dict[ModuleArchetype, ArchetypeSpec] = {
    ModuleArchetype.CORE: ArchetypeSpec(
        archetype=ModuleArchetype.CORE,
        parent_dir="Core",
        description="Core business logic module (Domain layer)",
        subdirs=(
            "Sources/Entities",
            "Sources/UseCases",
            "Sources/Repositories",
            "Tests",
        ),
        build_template="module/core/BUILD.bazel.j2",
        sample_files=(
            ("module/core/Entity.swift.j2", "Sources/Entities/{name}.swift"),
            ("module/core/Repository.swift.j2", "Sources/Repositories/{name}Repository.swift"),
            ("module/core/UseCase.swift.j2", "Sources/UseCases/{name}UseCase.swift"),
            ("module/core/Tests.swift.j2", "Tests/{name}Tests.swift"),
        ),
        category=InsertionCategory.CORE,
    ),
    ModuleArchetype.DATA: ArchetypeSpec(
        archetype=ModuleArchetype.DATA,
        parent_dir="Data",
        description="Data layer module (Repository implementations)",
        subdirs=(
            "Sources/Repositories",
            "Sources/DataSources/Remote",
            "Sources/DataSources/Local",
            "Sources/Models",
            "Tests",
        ),
        build_template="module/data/BUILD.bazel.j2",
        sample_files=(
            ("module/data/RepositoryImpl.swift.j2", "Sources/Repositories/{name}RepositoryImpl.swift"),
            ("module/data/Model.swift.j2", "Sources/Models/{name}Model.swift"),
            (
                "module/data/RemoteDataSource.swift.j2",
                "Sources/DataSources/Remote/{name}RemoteDataSource.swift",
            ),
            ("module/data/RepositoryTests.swift.j2", "Tests/{name}RepositoryTests.swift"),
        ),
        category=InsertionCategory.DATA,
    ),
    ModuleArchetype.FEATURE: ArchetypeSpec(
        archetype=ModuleArchetype.FEATURE,
        parent_dir="Features",
        description="Feature module (Presentation layer)",
        subdirs=(
            "Sources/Views",
            "Sources/ViewModels",
            "Sources/Coordinators",
            "Resources",
            "Tests",
        ),
        build_template="module/feature/BUILD.bazel.j2",
        sample_files=(
            ("module/feature/View.swift.j2", "Sources/Views/{name}View.swift"),
            ("module/feature/ViewModel.swift.j2", "Sources/ViewModels/{name}ViewModel.swift"),
            ("module/feature/Coordinator.swift.j2", "Sources/Coordinators/{name}Coordinator.swift"),
            ("module/feature/Info.plist.j2", "Info.plist"),
            ("module/feature/ViewModelTests.swift.j2", "Tests/{name}ViewModelTests.swift"),
        ),
        category=InsertionCategory.FEATURE,
        has_dev_app=True,
    ),
    ModuleArchetype.COMMON: ArchetypeSpec(
        archetype=ModuleArchetype.COMMON,
        parent_dir="Common",
        description="Shared utilities module",
        subdirs=(
            "Sources/Extensions",
            "Sources/Utils",
            "Tests",
        ),
        build_template="module/common/BUILD.bazel.j2",
        sample_files=(
            ("module/common/StringExtensions.swift.j2", "Sources/Extensions/String+Extensions.swift"),
            ("module/common/Logger.swift.j2", "Sources/Utils/Logger.swift"),
            ("module/common/Tests.swift.j2", "Tests/{name}Tests.swift"),
        ),
        category=InsertionCategory.COMMON,
    ),
}

DEV_APP_TEMPLATE = "module/dev_app.bazel.j2"


@dataclass(frozen=True)
class CoreLayerSpec:
    """One of the shared ``Core/*`` layers created by ``setup-core``."""

    path: str
    name: str
    build_template: str
    files: tuple[tuple[str, str], ...]


CORE_LAYERS: tuple[CoreLayerSpec, ...] = (
    CoreLayerSpec(
        path="Core/Domain",
        name="CoreDomain",
        build_template="core_layers/domain/BUILD.bazel.j2",
        files=(
            ("core_layers/domain/User.swift.j2", "Sources/Entities/User.swift"),
            ("core_layers/domain/UserRepository.swift.j2", "Sources/Repositories/UserRepository.swift"),
            ("core_layers/domain/GetUserUseCase.swift.j2", "Sources/UseCases/GetUserUseCase.swift"),
        ),
    ),
    CoreLayerSpec(
        path="Core/Data",
        name="CoreData",
        build_template="core_layers/data/BUILD.bazel.j2",
        files=(
            ("core_layers/data/UserRepositoryImpl.swift.j2", "Sources/Repositories/UserRepositoryImpl.swift"),
            (
                "core_layers/data/UserRemoteDataSource.swift.j2",
                "Sources/DataSources/Remote/UserRemoteDataSource.swift",
            ),
            (
                "core_layers/data/UserLocalDataSource.swift.j2",
                "Sources/DataSources/Local/UserLocalDataSource.swift",
            ),
        ),
    ),
    CoreLayerSpec(
        path="Core/Presentation",
        name="CorePresentation",
        build_template="core_layers/presentation/BUILD.bazel.j2",
        files=(
            ("core_layers/presentation/BaseViewModel.swift.j2", "Sources/ViewModels/BaseViewModel.swift"),
            ("core_layers/presentation/Coordinator.swift.j2", "Sources/Coordinators/Coordinator.swift"),
            ("core_layers/presentation/LoadingView.swift.j2", "Sources/Views/LoadingView.swift"),
            ("core_layers/presentation/ErrorView.swift.j2", "Sources/Views/ErrorView.swift"),
        ),
    ),
)


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------


class Module(BaseModel):
    """One instantiation of an archetype.

    The name is used verbatim as a Swift module name and Bazel target name;
    callers are responsible for passing an identifier-safe value.
    """

    name: str = Field(..., description="Module / target name")
    archetype: ModuleArchetype

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value or not value.strip():
            raise InvalidModuleName("Module name must not be empty")
        return value

    @classmethod
    def create(cls, archetype: "str | ModuleArchetype", name: str) -> "Module":
        """Validate user input and build a ``Module``.

        Raises:
            InvalidArchetype: Unknown archetype.
            InvalidModuleName: Empty name.
        """
        kind = ModuleArchetype.parse(archetype)
        if not name or not name.strip():
            raise InvalidModuleName("Module name must not be empty")
        return cls(name=name, archetype=kind)

    @property
    def spec(self) -> ArchetypeSpec:
        return ARCHETYPES[self.archetype]

    @property
    def path(self) -> PurePosixPath:
        """Package path relative to the project root, e.g. ``Features/Login``."""
        return PurePosixPath(self.spec.parent_dir) / self.name

    @property
    def label(self) -> str:
        return make_label(str(self.path), self.name)

    @property
    def dev_app_name(self) -> str:
        return f"{self.name}DevApp"

    @property
    def dev_app_label(self) -> str:
        return make_label(str(self.path), self.dev_app_name)


def make_label(package: str, target: str) -> str:
    """Build an absolute Bazel label: ``//<package>:<target>``."""
    return f"//{package.strip('/')}:{target}"


def infer_category(path: str) -> InsertionCategory:
    """Guess the insertion category from a module's package path.

    ``Features/*`` maps to feature, ``Data/*`` to data, ``Common/*`` to
    common and ``Core/*`` to core; anything else is OTHER.
    """
    first = PurePosixPath(path.strip("/")).parts[:1]
    if not first:
        return InsertionCategory.OTHER
    for spec in ARCHETYPES.values():
        if first[0] == spec.parent_dir:
            return spec.category
    return InsertionCategory.OTHER
