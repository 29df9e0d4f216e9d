"""Jinja2 template rendering for module scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``bazelmod/scaffolder/templates/`` directory and renders them with a module
or project context. Rendering never touches the file system; writing is left
to the generators so they can apply the skip-if-exists policy.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for module and project scaffolding.

    Templates use ``StrictUndefined``: a missing context key is an error
    rather than an empty string silently baked into a BUILD file.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["starlark_list"] = _starlark_list_filter
        self.env.filters["camel_case"] = _camel_case_filter

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"module/core/BUILD.bazel.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _starlark_list_filter(values: list[str]) -> str:
    """Render a list of strings as an inline Starlark list: ``["a", "b"]``."""
    return "[" + ", ".join(f'"{v}"' for v in values) + "]"


def _camel_case_filter(value: str) -> str:
    """Convert ``SomeThing`` to ``someThing``."""
    parts = re.split(r"[-_\s]+", value)
    pascal = "".join(word[:1].upper() + word[1:] for word in parts if word)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
