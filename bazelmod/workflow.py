"""High-level operations behind the CLI commands.

Chains the template engine and the dependency linker and reports progress on
the shared Rich console:

- ``create_module``: workspace files -> module scaffold -> link into App
  (-> link the dev app into ``top_level_targets`` for features).
- ``link_module``: linker only.
- ``init_project``: workspace files and the host ``App/`` module.
- ``setup_core``: the shared ``Core/*`` layers, linked into App.
- ``prune_targets``: keep only application targets in ``top_level_targets``.

Operations run to completion one at a time; the files they edit are shared
and there is no locking.
"""

from __future__ import annotations

from bazelmod.config import Config
from bazelmod.editor.linker import DependencyLinker, LinkOutcome
from bazelmod.editor.parser import parse_file
from bazelmod.errors import InvalidArchetype
from bazelmod.scaffolder.archetypes import (
    ARCHETYPES,
    InsertionCategory,
    Module,
    infer_category,
    make_label,
)
from bazelmod.scaffolder.generator import (
    BUILD_FILENAME,
    ModuleGenerator,
    ProjectGenerator,
    ScaffoldResult,
)
from bazelmod.utils import (
    print_header,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
    relative_to_root,
)


def parse_category(value: str) -> InsertionCategory:
    """Map a CLI archetype argument to an insertion category.

    Accepts the four archetypes plus ``other``.

    Raises:
        InvalidArchetype: For anything else.
    """
    try:
        return InsertionCategory(value.strip().lower())
    except ValueError:
        raise InvalidArchetype(value, [c.value for c in InsertionCategory]) from None


def archetype_usage() -> str:
    """One line per archetype, for error and help output."""
    return "\n".join(
        f"  {kind.value:<8} {spec.description}" for kind, spec in ARCHETYPES.items()
    )


class Workflow:
    """Runs scaffolding and linking against one project checkout.

    Attributes:
        config: Resolved configuration (``project_root`` decides where files go).
        modules: Template engine for modules and core layers.
        project: Template engine for workspace and App files.
        linker: Dependency graph editor.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.modules = ModuleGenerator(config)
        self.project = ProjectGenerator(config, self.modules.renderer)
        self.linker = DependencyLinker()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_module(self, archetype: str, name: str, target: str | None = None) -> list[LinkOutcome]:
        """Scaffold a module and link it into the app.

        Raises:
            InvalidArchetype, InvalidModuleName: Bad input (nothing written).
            NotFound: The app declaration file is missing.
            StructureNotFound: The app declaration file has no deps list.
            FilesystemError: I/O failure.
        """
        module = Module.create(archetype, name)
        print_header(f"Creating {module.archetype.value} module: {module.name}")
        print_summary_table(
            {"Type": module.archetype.value, "Path": str(module.path), "Label": module.label},
            title="Module",
        )

        self._report(self.project.ensure_workspace())
        self._report(self.modules.scaffold(module.archetype, module.name))
        print_success(f"Module '{module.name}' created at {module.path}")

        outcomes = self.link_module(str(module.path), module.name, module.archetype.value, target)
        self._print_next_steps(module)
        return outcomes

    def link_module(
        self,
        module_path: str,
        name: str,
        archetype: str | None = None,
        target: str | None = None,
    ) -> list[LinkOutcome]:
        """Link ``//<module_path>:<name>`` into the app's deps.

        Feature modules also get their dev app added to the root
        ``top_level_targets`` when their BUILD file declares it.
        """
        module_path = module_path.strip("/")
        category = parse_category(archetype) if archetype else infer_category(module_path)
        label = make_label(module_path, name)
        print_info(f"Linking {category.value} module '{name}' into {self.config.app_build_file}")

        outcome = self.linker.link_module(
            self.config.app_build_path, label, category, target=target
        )
        self._report_link(outcome)
        outcomes = [outcome]

        if category is InsertionCategory.FEATURE:
            dev_outcome = self._link_dev_app(module_path, name)
            if dev_outcome is not None:
                outcomes.append(dev_outcome)
        else:
            print_info(f"{category.value} modules reach Xcode through the App dependencies")
        return outcomes

    def init_project(self) -> ScaffoldResult:
        """Write workspace files and the App module; save ``.bazelmod.json``."""
        print_header(f"Initialising {self.config.app.project_name}")
        result = self.project.generate()
        self._report(result)
        if not self.config.config_path.exists():
            self.config.save()
            result.created.append(self.config.config_path)
            print_info(f"  created {relative_to_root(self.config.config_path, self.config.project_root)}")
        print_success("Project setup complete")
        print_info("Next: bazelmod create-module feature Login")
        return result

    def setup_core(self) -> list[LinkOutcome]:
        """Scaffold ``Core/Domain``, ``Core/Data``, ``Core/Presentation`` and link them."""
        print_header("Setting up Core layers")
        outcomes: list[LinkOutcome] = []
        for result in self.modules.scaffold_core_layers():
            self._report(result)
            outcome = self.linker.link_module(
                self.config.app_build_path, result.label, InsertionCategory.CORE
            )
            self._report_link(outcome)
            outcomes.append(outcome)
        print_success("Core layers ready")
        return outcomes

    def prune_targets(self) -> list[str]:
        """Remove non-application labels from the root ``top_level_targets``."""
        print_header("Pruning xcodeproj top_level_targets")
        removed = self.linker.prune_top_level_targets(
            self.config.root_build_path, self.config.project_root
        )
        if not removed:
            print_info("Nothing to prune: only application targets are listed")
        for label in removed:
            print_warning(f"  removed {label}")
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _link_dev_app(self, module_path: str, name: str) -> LinkOutcome | None:
        module_build = self.config.project_root / module_path / BUILD_FILENAME
        dev_app = f"{name}DevApp"
        if module_build.is_file() and parse_file(module_build).find_block(dev_app) is None:
            print_warning(f"{module_path}/{BUILD_FILENAME} declares no {dev_app}; not adding it to xcodeproj")
            return None
        outcome = self.linker.link_dev_app(self.config.root_build_path, module_path, name)
        self._report_link(outcome)
        return outcome

    def _report(self, result: ScaffoldResult) -> None:
        root = self.config.project_root
        for path in result.created:
            print_info(f"  created {relative_to_root(path, root)}")
        for warning in result.skipped:
            print_warning(f"  exists, kept {relative_to_root(warning.path, root)}")

    def _report_link(self, outcome: LinkOutcome) -> None:
        where = relative_to_root(outcome.path, self.config.project_root)
        if outcome.inserted:
            print_success(f"Added {outcome.reference} to {where} ({outcome.strategy.value})")
        else:
            print_warning(f"{outcome.reference} already in {where}")

    @staticmethod
    def _print_next_steps(module: Module) -> None:
        print_info("")
        print_info("Next steps:")
        print_info("  1. Generate Xcode project:  bazelisk run //:xcodeproj")
        print_info(f"  2. Build the module:        bazelisk build {module.label}")
        print_info("  3. Build the app:           bazelisk build //App:App --config=sim_debug")
        if module.spec.has_dev_app:
            print_info(f"  4. Run the dev app:         bazelisk run {module.dev_app_label}")
