"""Command-line entry point for ``bazelmod`` / ``python -m bazelmod``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError

from bazelmod import __version__
from bazelmod.config import Config
from bazelmod.errors import BazelModError, InvalidArchetype
from bazelmod.scaffolder.archetypes import ModuleArchetype
from bazelmod.utils import console, print_error
from bazelmod.workflow import Workflow, archetype_usage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bazelmod",
        description="bazelmod -- scaffold Bazel iOS modules and link them into the app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  bazelmod init --project-name MyApp\n"
            "  bazelmod setup-core\n"
            "  bazelmod create-module feature Login\n"
            "  bazelmod create-module data Network\n"
            "  bazelmod link-module Features/Login Login\n"
            "  bazelmod prune-targets\n"
        ),
    )
    parser.add_argument(
        "--root",
        default=None,
        help="Project checkout to operate on (default: current directory)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    init = commands.add_parser("init", help="Write workspace files and the App module")
    init.add_argument(
        "--project-name",
        default=None,
        help="Application name (default: from .bazelmod.json or BzlmodApp)",
    )

    create = commands.add_parser(
        "create-module",
        help="Scaffold a module and link it into the app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Module types:\n" + archetype_usage(),
    )
    create.add_argument(
        "archetype",
        metavar="TYPE",
        help=f"Module type ({', '.join(kind.value for kind in ModuleArchetype)})",
    )
    create.add_argument("name", help="Module name, used verbatim as the Bazel target name")
    create.add_argument(
        "--target",
        default=None,
        help="Name of the app block whose deps receive the module (default: the one with section markers)",
    )

    link = commands.add_parser("link-module", help="Link an existing module into the app")
    link.add_argument("path", help="Package path of the module, e.g. Features/Login")
    link.add_argument("name", help="Target name inside that package")
    link.add_argument(
        "archetype",
        nargs="?",
        default=None,
        help="Insertion category (inferred from the path prefix if omitted)",
    )
    link.add_argument("--target", default=None, help="Name of the app block to edit")

    commands.add_parser("setup-core", help="Scaffold Core/Domain, Core/Data and Core/Presentation")
    commands.add_parser(
        "prune-targets",
        help="Drop non-application labels from the root top_level_targets",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.discover(Path(args.root) if args.root else None)
        if args.command == "init" and args.project_name:
            config.app.project_name = args.project_name
        workflow = Workflow(config)

        if args.command == "init":
            workflow.init_project()
        elif args.command == "create-module":
            workflow.create_module(args.archetype, args.name, target=args.target)
        elif args.command == "link-module":
            workflow.link_module(args.path, args.name, args.archetype, target=args.target)
        elif args.command == "setup-core":
            workflow.setup_core()
        elif args.command == "prune-targets":
            workflow.prune_targets()
    except InvalidArchetype as exc:
        print_error(f"Error: {exc}")
        console.print("Module types:", highlight=False)
        console.print(archetype_usage(), highlight=False, markup=False)
        sys.exit(1)
    except BazelModError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except ValidationError as exc:
        print_error(f"Invalid configuration: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
