"""Shared utility functions for bazelmod.

Provides Rich-based console reporting and the file-system helpers used by
both the scaffolder and the editor: directory creation, skip-if-exists file
creation and atomic replacement of existing files.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from bazelmod.errors import AlreadyExists, FilesystemError

console = Console()

# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Raises:
        FilesystemError: If the directory cannot be created, or a regular file
            is in the way.
    """
    dir_path = Path(path)
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(dir_path, exc) from exc
    return dir_path


def read_text(path: str | Path) -> str:
    """Read a UTF-8 text file, wrapping I/O errors in ``FilesystemError``."""
    file_path = Path(path)
    try:
        return file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(file_path, exc) from exc


def write_if_absent(path: str | Path, content: str) -> Path:
    """Create *path* with *content* unless it already exists.

    Uses exclusive-create mode so an existing file is never truncated, even
    if it appears between the check and the write.

    Raises:
        AlreadyExists: The file is already present; nothing was written.
        FilesystemError: Any other I/O failure.
    """
    file_path = Path(path)
    ensure_dir(file_path.parent)
    try:
        with open(file_path, "x", encoding="utf-8") as fh:
            fh.write(content)
    except FileExistsError as exc:
        raise AlreadyExists(file_path) from exc
    except OSError as exc:
        raise FilesystemError(file_path, exc) from exc
    return file_path


def atomic_write_text(path: str | Path, content: str) -> Path:
    """Replace *path* with *content* atomically.

    The content goes to a temporary file in the same directory which is then
    moved over the target with ``os.replace``. On any failure the temporary
    file is removed and the original file is left as it was.

    Raises:
        FilesystemError: If writing or replacing fails.
    """
    file_path = Path(path)
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent
        )
    except OSError as exc:
        raise FilesystemError(file_path, exc) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        if file_path.exists():
            os.chmod(tmp_name, file_path.stat().st_mode & 0o7777)
        os.replace(tmp_name, file_path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise FilesystemError(file_path, exc) from exc
    return file_path


def relative_to_root(path: Path, root: Path) -> Path:
    """Return *path* relative to *root* when possible, else unchanged."""
    try:
        return path.relative_to(root)
    except ValueError:
        return path


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a full-width rule announcing an operation."""
    console.print()
    console.print(Rule(f"[bold blue] {title} [/bold blue]", style="blue"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_info(message: str) -> None:
    """Print an unstyled informational line."""
    console.print(escape(message), highlight=False)
