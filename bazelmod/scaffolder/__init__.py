"""Template engine -- renders module archetypes into directory trees.

Quick usage::

    from bazelmod.config import Config
    from bazelmod.scaffolder import ModuleGenerator

    generator = ModuleGenerator(Config(project_root=Path("MyApp")))
    result = generator.scaffold("feature", "Login")
"""

from bazelmod.scaffolder.archetypes import (
    ARCHETYPES,
    InsertionCategory,
    Module,
    ModuleArchetype,
    infer_category,
)
from bazelmod.scaffolder.generator import ModuleGenerator, ProjectGenerator, ScaffoldResult
from bazelmod.scaffolder.templates import TemplateRenderer

__all__ = [
    "ARCHETYPES",
    "InsertionCategory",
    "Module",
    "ModuleArchetype",
    "ModuleGenerator",
    "ProjectGenerator",
    "ScaffoldResult",
    "TemplateRenderer",
    "infer_category",
]
