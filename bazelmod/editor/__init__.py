"""Dependency graph editor -- links module labels into BUILD files."""

from bazelmod.editor.linker import (
    DependencyLinker,
    InsertionStrategy,
    LinkOutcome,
    LinkResult,
    category_for_label,
    split_label,
)
from bazelmod.editor.parser import DeclarationFile, ListField, parse, parse_file

__all__ = [
    "DeclarationFile",
    "DependencyLinker",
    "InsertionStrategy",
    "LinkOutcome",
    "LinkResult",
    "ListField",
    "category_for_label",
    "parse",
    "parse_file",
    "split_label",
]
