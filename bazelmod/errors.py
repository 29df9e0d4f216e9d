"""Exception types shared by the scaffolder, the editor and the CLI."""

from __future__ import annotations

from pathlib import Path


class BazelModError(Exception):
    """Base class for every error reported to the CLI user."""


class InvalidArchetype(BazelModError):
    """Raised when a module kind is not one of the known archetypes."""

    def __init__(self, value: str, choices: list[str]) -> None:
        self.value = value
        self.choices = choices
        super().__init__(
            f"Invalid module type '{value}' (expected one of: {', '.join(choices)})"
        )


class InvalidModuleName(BazelModError):
    """Raised when a module name is empty."""


class AlreadyExists(BazelModError):
    """A generated file is already on disk and was left untouched.

    Informational only: the scaffolder records it and keeps going.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Already exists, skipped: {path}")


class FilesystemError(BazelModError):
    """Wraps an ``OSError`` raised while reading or writing project files."""

    def __init__(self, path: Path, error: OSError) -> None:
        self.path = path
        self.error = error
        super().__init__(f"{path}: {error.strerror or error}")


class LinkError(BazelModError):
    """Base class for dependency-linking failures."""


class NotFound(LinkError):
    """Raised when the declaration file to edit does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Declaration file not found: {path}")


class StructureNotFound(LinkError):
    """Raised when a declaration file has no usable insertion point."""


class DeclarationSyntaxError(StructureNotFound):
    """Raised when a declaration file cannot be tokenised (unbalanced brackets etc.)."""

    def __init__(self, message: str, line: int) -> None:
        self.line = line
        super().__init__(f"line {line}: {message}")
