"""Dependency linking: splice module labels into existing declaration files.

``DependencyLinker`` edits the consuming project's ``BUILD.bazel`` files in
place. Every edit follows the same steps:

1. Read and parse the file (missing file -> ``NotFound``).
2. Return ``ALREADY_LINKED`` if the label is already an element of the
   target list, so re-running converges to the same content.
3. Pick the insertion point, in order of precedence:
   a. directly under the category's section marker (``# Feature modules``);
   b. a new section for the category, synthesised before the next later
      section marker (core -> data -> common -> feature) or at the list tail;
   c. as the last element of the list for uncategorised labels, matching
      the siblings' layout.
4. Re-parse the edited text and write it back with an atomic replace.

Nothing is written unless every step succeeds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from bazelmod.editor.parser import Comment, DeclarationFile, ListField, ListItem, parse_file
from bazelmod.errors import DeclarationSyntaxError, LinkError, NotFound, StructureNotFound
from bazelmod.scaffolder.archetypes import InsertionCategory, infer_category, make_label
from bazelmod.utils import atomic_write_text

DEFAULT_INDENT = "    "

Edit = tuple[int, int, str]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class LinkResult(str, Enum):
    """Outcome of a link operation. Both values count as success."""

    INSERTED = "inserted"
    ALREADY_LINKED = "already_linked"


class InsertionStrategy(str, Enum):
    """How a new label was placed in the list."""

    MARKER = "marker"
    SECTION = "section"
    APPEND = "append"


@dataclass
class LinkOutcome:
    """What :class:`DependencyLinker` did to one declaration file."""

    result: LinkResult
    reference: str
    path: Path
    strategy: InsertionStrategy | None = None

    @property
    def inserted(self) -> bool:
        return self.result is LinkResult.INSERTED


# ---------------------------------------------------------------------------
# Label helpers
# ---------------------------------------------------------------------------


def split_label(label: str) -> tuple[str, str]:
    """Split ``//pkg/path:target`` into ``("pkg/path", "target")``.

    A label without ``:`` names the target after the last package component
    (``//Core/Net`` -> ``("Core/Net", "Net")``).
    """
    body = label[2:] if label.startswith("//") else label.lstrip(":")
    if ":" in body:
        package, target = body.split(":", 1)
    else:
        package, target = body, body.rsplit("/", 1)[-1]
    return package, target


def category_for_label(label: str) -> InsertionCategory:
    """Infer the insertion category from a label's package path."""
    package, _ = split_label(label)
    return infer_category(package)


# ---------------------------------------------------------------------------
# DependencyLinker
# ---------------------------------------------------------------------------


class DependencyLinker:
    """Idempotent editor for ``deps`` and ``top_level_targets`` lists."""

    def __init__(self, indent: str = DEFAULT_INDENT) -> None:
        self.indent = indent

    # -- Public API ----------------------------------------------------------

    def link_module(
        self,
        declaration_file: str | Path,
        reference: str,
        category: InsertionCategory | str | None = None,
        *,
        field: str = "deps",
        target: str | None = None,
    ) -> LinkOutcome:
        """Insert *reference* into the ``field`` list of *declaration_file*.

        Args:
            declaration_file: The consuming ``BUILD.bazel`` file.
            reference: Label to add, e.g. ``//Features/Login:Login``.
            category: Insertion category; inferred from the label's package
                when omitted.
            field: Name of the list attribute to edit.
            target: Only consider the block with this ``name``. By default the
                list carrying section markers wins, then the first one found.

        Returns:
            A ``LinkOutcome`` (``INSERTED`` or ``ALREADY_LINKED``).

        Raises:
            NotFound: The file does not exist.
            StructureNotFound: No matching list exists, or the file does not
                parse.
            FilesystemError: Reading or writing failed.
        """
        path = Path(declaration_file)
        if category is None:
            category = category_for_label(reference)
        category = InsertionCategory(category)

        decl = self._load(path)
        lst = self._select_list(decl, field, target)
        if lst.contains(reference):
            return LinkOutcome(LinkResult.ALREADY_LINKED, reference, path)

        edits, strategy = self.plan_insertion(decl, lst, reference, category)
        self._commit(decl, edits, field, target, reference)
        return LinkOutcome(LinkResult.INSERTED, reference, path, strategy)

    def link_dev_app(
        self,
        root_file: str | Path,
        module_path: str,
        name: str,
    ) -> LinkOutcome:
        """Add a feature's ``<name>DevApp`` target to ``top_level_targets``."""
        reference = make_label(module_path, f"{name}DevApp")
        return self.link_module(
            root_file, reference, InsertionCategory.OTHER, field="top_level_targets"
        )

    def prune_top_level_targets(
        self,
        root_file: str | Path,
        project_root: str | Path,
    ) -> list[str]:
        """Drop labels that are not application targets from ``top_level_targets``.

        A label is removed when its package's declaration file defines the
        target with a rule other than ``*_application`` (typically a
        ``swift_library``). Labels whose package or target cannot be found or
        parsed are kept.

        Returns:
            The removed labels, in list order. The file is only rewritten
            when this is non-empty.
        """
        path = Path(root_file)
        root = Path(project_root)
        decl = self._load(path)
        fields = decl.list_fields("top_level_targets")
        if not fields:
            raise StructureNotFound(f"No top_level_targets list found in {path}")

        # One removal per pass: offsets are only valid for the text they came from.
        removed: list[str] = []
        while True:
            found = self._next_prunable(decl, root)
            if found is None:
                break
            lst, item = found
            decl = decl.apply([self._removal_edit(decl, lst, item)])
            removed.append(item.value or item.raw)

        if removed:
            atomic_write_text(path, decl.text)
        return removed

    # -- Insertion planning --------------------------------------------------

    def plan_insertion(
        self,
        decl: DeclarationFile,
        lst: ListField,
        reference: str,
        category: InsertionCategory,
    ) -> tuple[list[Edit], InsertionStrategy]:
        """Compute the text edits that add *reference* to *lst*.

        Pure function of the parsed file; nothing is written.
        """
        literal = f'"{reference}"'

        marker_text = category.marker
        if marker_text is not None:
            marker = lst.find_marker(marker_text)
            if marker is not None:
                return self._insert_after_marker(decl, lst, marker, literal), InsertionStrategy.MARKER
            return self._insert_section(decl, lst, category, literal), InsertionStrategy.SECTION

        return self._append(decl, lst, literal), InsertionStrategy.APPEND

    def _insert_after_marker(
        self, decl: DeclarationFile, lst: ListField, marker: Comment, literal: str
    ) -> list[Edit]:
        if decl.starts_line(marker.start):
            indent = decl.indent_at(marker.start)
        else:
            indent = self._item_indent(decl, lst)
        pos = decl.line_end(marker.end) + 1
        edits = self._comma_fix(lst, marker.start)
        edits.append((pos, pos, f"{indent}{literal},\n"))
        return edits

    def _insert_section(
        self,
        decl: DeclarationFile,
        lst: ListField,
        category: InsertionCategory,
        literal: str,
    ) -> list[Edit]:
        anchor = self._section_anchor(lst, category)
        if anchor is not None:
            section = f"# {category.marker}\n"
            edits = self._comma_fix(lst, anchor.start)
            if decl.starts_line(anchor.start):
                indent = decl.indent_at(anchor.start)
                pos = decl.line_start(anchor.start)
                edits.append((pos, pos, f"{indent}{section}{indent}{literal},\n\n"))
                return edits
            # Trailing marker (``deps = [  # Feature modules``): move it onto its own line.
            indent = self._item_indent(decl, lst)
            gap = anchor.start
            while decl.text[gap - 1] in " \t":
                gap -= 1
            edits.append((gap, anchor.start, f"\n{indent}{section}{indent}{literal},\n\n{indent}"))
            return edits

        indent = self._item_indent(decl, lst)
        lines = [f"{indent}# {category.marker}\n", f"{indent}{literal},\n"]
        if lst.items or lst.comments:
            lines.insert(0, "\n")
        edits = self._comma_fix(lst, lst.close)
        edits.append(self._before_close(decl, lst, "".join(lines)))
        return edits

    def _append(self, decl: DeclarationFile, lst: ListField, literal: str) -> list[Edit]:
        if "\n" not in decl.text[lst.open:lst.close]:
            return [self._append_inline(lst, literal)]

        indent = self._item_indent(decl, lst)
        edits = self._comma_fix(lst, lst.close)
        edits.append(self._before_close(decl, lst, f"{indent}{literal},\n"))
        return edits

    @staticmethod
    def _append_inline(lst: ListField, literal: str) -> Edit:
        if not lst.items:
            return (lst.open + 1, lst.close, literal)
        last = lst.items[-1]
        if last.trailing_comma:
            return (last.span_end, last.span_end, f" {literal},")
        return (last.end, last.end, f", {literal}")

    # -- Layout helpers ------------------------------------------------------

    @staticmethod
    def _has_section_markers(lst: ListField) -> bool:
        return any(
            lst.find_marker(cat.marker) is not None
            for cat in InsertionCategory.sections()
        )

    @staticmethod
    def _section_anchor(lst: ListField, category: InsertionCategory) -> Comment | None:
        """Marker of the nearest section that must come after *category*."""
        for later in InsertionCategory.sections():
            if later.rank <= category.rank:
                continue
            marker = lst.find_marker(later.marker)
            if marker is not None:
                return marker
        return None

    def _item_indent(self, decl: DeclarationFile, lst: ListField) -> str:
        """Indentation used by existing elements, or one level past the close."""
        for node in reversed(lst.items):
            if decl.starts_line(node.start):
                return decl.indent_at(node.start)
        for comment in reversed(lst.comments):
            if decl.starts_line(comment.start):
                return decl.indent_at(comment.start)
        return decl.indent_at(lst.close) + self.indent

    @staticmethod
    def _comma_fix(lst: ListField, offset: int) -> list[Edit]:
        """Add the separator missing after the last element before *offset*."""
        before = lst.items_before(offset)
        if before and not before[-1].trailing_comma:
            end = before[-1].end
            return [(end, end, ",")]
        return []

    @staticmethod
    def _before_close(decl: DeclarationFile, lst: ListField, block: str) -> Edit:
        """Insert whole lines right before the closing bracket."""
        if decl.starts_line(lst.close):
            pos = decl.line_start(lst.close)
            return (pos, pos, block)
        # ``"a"]`` style: break the close bracket onto its own line.
        close_indent = decl.indent_at(lst.open)
        return (lst.close, lst.close, "\n" + block + close_indent)

    @staticmethod
    def _removal_edit(decl: DeclarationFile, lst: ListField, item: ListItem) -> Edit:
        span_end = item.span_end
        line_start = decl.line_start(item.start)
        line_end = decl.line_end(span_end)
        rest = decl.text[span_end:line_end].strip()
        if decl.starts_line(item.start) and (not rest or rest.startswith("#")):
            return (line_start, min(line_end + 1, len(decl.text)), "")
        if item.trailing_comma:
            end = span_end
            while end < len(decl.text) and decl.text[end] == " ":
                end += 1
            return (item.start, end, "")
        index = lst.items.index(item)
        if index > 0:
            return (lst.items[index - 1].end, item.end, "")
        return (item.start, item.end, "")

    # -- Internals -----------------------------------------------------------

    @staticmethod
    def _load(path: Path) -> DeclarationFile:
        if not path.is_file():
            raise NotFound(path)
        return parse_file(path)

    @staticmethod
    def _select_list(decl: DeclarationFile, field: str, target: str | None) -> ListField:
        candidates = decl.list_fields(field, target)
        if not candidates:
            where = f" of target '{target}'" if target else ""
            raise StructureNotFound(f"No '{field} = [...]' list{where} found in {decl.path}")
        for _, lst in candidates:
            if DependencyLinker._has_section_markers(lst):
                return lst
        return candidates[0][1]

    def _commit(
        self,
        decl: DeclarationFile,
        edits: list[Edit],
        field: str,
        target: str | None,
        reference: str,
    ) -> None:
        updated = decl.apply(edits)
        lst = self._select_list(updated, field, target)
        if lst.values().count(reference) != 1:
            raise LinkError(
                f"Refusing to write {decl.path}: '{reference}' did not land in the {field} list"
            )
        atomic_write_text(decl.path, updated.text)

    @staticmethod
    def _next_prunable(decl: DeclarationFile, root: Path) -> tuple[ListField, ListItem] | None:
        for _, lst in decl.list_fields("top_level_targets"):
            for item in lst.items:
                if item.value is None or not item.value.startswith("//"):
                    continue
                if not _is_application_label(item.value, root):
                    return lst, item
        return None


def _is_application_label(label: str, root: Path) -> bool:
    """False only when the label provably names a non-application rule."""
    package, target = split_label(label)
    for filename in ("BUILD.bazel", "BUILD"):
        build = root / package / filename
        if build.is_file():
            try:
                block = parse_file(build).find_block(target)
            except DeclarationSyntaxError:
                return True
            if block is None or block.kind is None:
                return True
            return block.kind.endswith("_application")
    return True
