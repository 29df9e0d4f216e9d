"""Structured parser for Bazel declaration files.

Turns a ``BUILD.bazel`` file into a small typed tree: top-level call blocks
(``swift_library(name = ..., deps = [...])``) and bare list assignments
(``top_level_targets = [...]``), each with their keyword list fields, list
elements and the comments inside those lists. Every node keeps its source
offsets so edits can be spliced into the original text, leaving everything
else byte-for-byte untouched.

Only the Starlark subset that build declarations use is understood:
identifiers, strings (single, double, triple-quoted, ``r``/``b`` prefixes),
comments and brackets. Everything else is carried as opaque tokens.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path

from bazelmod.errors import DeclarationSyntaxError
from bazelmod.utils import read_text


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

NAME = "NAME"
STRING = "STRING"
COMMENT = "COMMENT"
OP = "OP"

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}
_STRING_PREFIXES = {"r", "b", "rb", "br", "R", "B"}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int


def _line_number(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def _scan_string(text: str, start: int) -> int:
    """Return the offset just past the string literal opening at *start*."""
    quote = text[start]
    triple = text.startswith(quote * 3, start)
    closer = quote * 3 if triple else quote
    i = start + len(closer)
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if not triple and ch == "\n":
            break
        if text.startswith(closer, i):
            return i + len(closer)
        i += 1
    raise DeclarationSyntaxError("unterminated string literal", _line_number(text, start))


def tokenize(text: str) -> list[Token]:
    """Split declaration text into tokens (whitespace is dropped)."""
    tokens: list[Token] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in " \t\r\n\f":
            i += 1
        elif ch == "\\" and text.startswith("\n", i + 1):
            i += 2
        elif ch == "#":
            end = text.find("\n", i)
            end = n if end == -1 else end
            tokens.append(Token(COMMENT, text[i:end].rstrip("\r"), i, end))
            i = end
        elif ch in "'\"":
            end = _scan_string(text, i)
            tokens.append(Token(STRING, text[i:end], i, end))
            i = end
        elif ch.isalpha() or ch == "_":
            j = i + 1
            while j < n and (text[j].isalnum() or text[j] == "_"):
                j += 1
            if text[i:j] in _STRING_PREFIXES and j < n and text[j] in "'\"":
                end = _scan_string(text, j)
                tokens.append(Token(STRING, text[i:end], i, end))
                i = end
            else:
                tokens.append(Token(NAME, text[i:j], i, j))
                i = j
        else:
            tokens.append(Token(OP, ch, i, i + 1))
            i += 1
    return tokens


def unquote(literal: str) -> str:
    """Return the value of a string literal token."""
    try:
        value = ast.literal_eval(literal)
    except (ValueError, SyntaxError):
        value = None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    body = literal.lstrip("rbRB")
    quote = body[:3] if body[:3] in ('"""', "'''") else body[:1]
    return body[len(quote):-len(quote)]


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


@dataclass
class Comment:
    """A ``#`` comment inside a list."""

    text: str
    start: int
    end: int

    @property
    def body(self) -> str:
        return self.text.lstrip("#").strip()


@dataclass
class ListItem:
    """One element of a list field.

    ``value`` is set when the element is a single string literal; complex
    expressions only keep their ``raw`` text.
    """

    raw: str
    start: int
    end: int
    value: str | None = None
    trailing_comma: bool = False
    comma_end: int | None = None

    @property
    def span_end(self) -> int:
        """End offset including the trailing comma, if any."""
        return self.comma_end if self.comma_end is not None else self.end


@dataclass
class ListField:
    """A ``name = [ ... ]`` value with its elements and comments."""

    name: str
    open: int
    close: int
    items: list[ListItem] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)

    def values(self) -> list[str]:
        return [item.value for item in self.items if item.value is not None]

    def contains(self, value: str) -> bool:
        return value in self.values()

    def find_marker(self, marker: str) -> Comment | None:
        """First comment whose text starts with *marker* (case-insensitive)."""
        wanted = marker.lower()
        for comment in self.comments:
            if comment.body.lower().startswith(wanted):
                return comment
        return None

    def items_before(self, offset: int) -> list[ListItem]:
        return [item for item in self.items if item.end <= offset]


@dataclass
class Block:
    """A top-level declaration.

    Calls like ``swift_library(...)`` have a ``kind``; bare assignments such
    as ``top_level_targets = [...]`` have ``kind=None`` and are named after
    the assigned variable.
    """

    kind: str | None
    name: str | None
    start: int
    end: int
    attrs: dict[str, str] = field(default_factory=dict)
    lists: dict[str, ListField] = field(default_factory=dict)


@dataclass
class DeclarationFile:
    """Parsed view of one declaration file."""

    text: str
    blocks: list[Block]
    path: Path | None = None

    # -- Queries -------------------------------------------------------------

    def find_block(self, name: str) -> Block | None:
        for block in self.blocks:
            if block.name == name:
                return block
        return None

    def list_fields(self, field_name: str, target: str | None = None) -> list[tuple[Block, ListField]]:
        """All ``field_name`` lists, optionally restricted to the block named *target*."""
        found: list[tuple[Block, ListField]] = []
        for block in self.blocks:
            if target is not None and block.name != target:
                continue
            lst = block.lists.get(field_name)
            if lst is not None:
                found.append((block, lst))
        return found

    def line_of(self, offset: int) -> int:
        """1-based line number of *offset*."""
        return _line_number(self.text, offset)

    def line_start(self, offset: int) -> int:
        return self.text.rfind("\n", 0, offset) + 1

    def line_end(self, offset: int) -> int:
        """Offset of the newline ending the line containing *offset* (or EOF)."""
        end = self.text.find("\n", offset)
        return len(self.text) if end == -1 else end

    def indent_at(self, offset: int) -> str:
        """Leading whitespace of the line containing *offset*."""
        start = self.line_start(offset)
        line = self.text[start:self.line_end(offset)]
        return line[: len(line) - len(line.lstrip(" \t"))]

    def starts_line(self, offset: int) -> bool:
        """True when only whitespace precedes *offset* on its line."""
        return self.text[self.line_start(offset):offset].strip() == ""

    # -- Editing -------------------------------------------------------------

    def apply(self, edits: list[tuple[int, int, str]]) -> "DeclarationFile":
        """Apply non-overlapping ``(start, end, replacement)`` edits and re-parse.

        Insertions at the same offset end up in the order they were given.

        Raises:
            DeclarationSyntaxError: If the edited text no longer parses.
        """
        text = self.text
        ordered = sorted(enumerate(edits), key=lambda e: (e[1][0], e[1][1], e[0]), reverse=True)
        for _, (start, end, replacement) in ordered:
            text = text[:start] + replacement + text[end:]
        return parse(text, self.path)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _match_brackets(text: str, tokens: list[Token]) -> tuple[dict[int, int], list[int]]:
    """Pair bracket tokens and compute the nesting depth of every token.

    Returns:
        ``(matches, depths)`` where ``matches`` maps opener index to closer
        index and ``depths[i]`` is the depth of token *i* (an opener and its
        closer share a depth; their contents are one deeper).
    """
    matches: dict[int, int] = {}
    depths: list[int] = []
    stack: list[int] = []
    for idx, tok in enumerate(tokens):
        if tok.kind == OP and tok.text in _OPENERS:
            depths.append(len(stack))
            stack.append(idx)
        elif tok.kind == OP and tok.text in _CLOSERS:
            if not stack or tokens[stack[-1]].text != _CLOSERS[tok.text]:
                raise DeclarationSyntaxError(
                    f"unexpected '{tok.text}'", _line_number(text, tok.start)
                )
            opener = stack.pop()
            matches[opener] = idx
            depths.append(len(stack))
        else:
            depths.append(len(stack))
    if stack:
        opener = tokens[stack[-1]]
        raise DeclarationSyntaxError(
            f"'{opener.text}' is never closed", _line_number(text, opener.start)
        )
    return matches, depths


def _next_code(tokens: list[Token], idx: int) -> int | None:
    """Index of the first non-comment token at or after *idx*."""
    while idx < len(tokens):
        if tokens[idx].kind != COMMENT:
            return idx
        idx += 1
    return None


def _parse_list(
    name: str,
    text: str,
    tokens: list[Token],
    depths: list[int],
    open_idx: int,
    close_idx: int,
) -> ListField:
    inner_depth = depths[open_idx] + 1
    lst = ListField(name=name, open=tokens[open_idx].start, close=tokens[close_idx].start)
    current: list[Token] = []

    def flush(comma: Token | None) -> None:
        if not current:
            return
        start, end = current[0].start, current[-1].end
        value = None
        if len(current) == 1 and current[0].kind == STRING:
            value = unquote(current[0].text)
        lst.items.append(
            ListItem(
                raw=text[start:end],
                start=start,
                end=end,
                value=value,
                trailing_comma=comma is not None,
                comma_end=comma.end if comma is not None else None,
            )
        )
        current.clear()

    for k in range(open_idx + 1, close_idx):
        tok = tokens[k]
        if tok.kind == COMMENT:
            if depths[k] == inner_depth:
                lst.comments.append(Comment(tok.text, tok.start, tok.end))
            continue
        if tok.kind == OP and tok.text == "," and depths[k] == inner_depth:
            flush(tok)
            continue
        current.append(tok)
    flush(None)
    return lst


def _parse_call_args(
    block: Block,
    text: str,
    tokens: list[Token],
    depths: list[int],
    matches: dict[int, int],
    open_idx: int,
    close_idx: int,
) -> None:
    arg_depth = depths[open_idx] + 1
    k = open_idx + 1
    while k < close_idx:
        tok = tokens[k]
        if depths[k] != arg_depth or tok.kind != NAME:
            k += 1
            continue
        eq = _next_code(tokens, k + 1)
        if eq is None or eq >= close_idx or tokens[eq].text != "=":
            k += 1
            continue
        value_idx = _next_code(tokens, eq + 1)
        if value_idx is None or value_idx >= close_idx:
            break
        value = tokens[value_idx]
        if value.kind == OP and value.text == "[":
            end_idx = matches[value_idx]
            after = _next_code(tokens, end_idx + 1)
            # Only plain lists; ``deps = [...] + select(...)`` is left alone.
            if after is None or after >= close_idx or tokens[after].text == ",":
                block.lists[tok.text] = _parse_list(
                    tok.text, text, tokens, depths, value_idx, end_idx
                )
            k = end_idx + 1
            continue
        if value.kind == STRING:
            block.attrs[tok.text] = unquote(value.text)
        k = value_idx + 1


def parse(text: str, path: Path | None = None) -> DeclarationFile:
    """Parse declaration text into a :class:`DeclarationFile`.

    Raises:
        DeclarationSyntaxError: On unbalanced brackets or unterminated strings.
    """
    tokens = tokenize(text)
    matches, depths = _match_brackets(text, tokens)
    blocks: list[Block] = []

    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if depths[i] != 0 or tok.kind != NAME:
            i += 1
            continue
        nxt = _next_code(tokens, i + 1)
        if nxt is None:
            break
        if tokens[nxt].text == "(":
            close_idx = matches[nxt]
            block = Block(kind=tok.text, name=None, start=tok.start, end=tokens[close_idx].end)
            _parse_call_args(block, text, tokens, depths, matches, nxt, close_idx)
            block.name = block.attrs.get("name")
            blocks.append(block)
            i = close_idx + 1
            continue
        if tokens[nxt].text == "=":
            value_idx = _next_code(tokens, nxt + 1)
            if value_idx is not None and tokens[value_idx].text == "[":
                close_idx = matches[value_idx]
                block = Block(kind=None, name=tok.text, start=tok.start, end=tokens[close_idx].end)
                block.lists[tok.text] = _parse_list(
                    tok.text, text, tokens, depths, value_idx, close_idx
                )
                blocks.append(block)
                i = close_idx + 1
                continue
        i += 1

    return DeclarationFile(text=text, blocks=blocks, path=path)


def parse_file(path: str | Path) -> DeclarationFile:
    """Read and parse a declaration file.

    Raises:
        FilesystemError: If the file cannot be read.
        DeclarationSyntaxError: If it cannot be parsed.
    """
    file_path = Path(path)
    return parse(read_text(file_path), file_path)
