"""
Jinja2 environment for companion artifacts.

Client, config, migrate and seed files are rendered from per-backend
template directories. Rendering is strict: a context key missing from
a template is an error, never an empty string.
"""

from typing import Dict, Any, Optional
from pathlib import Path

from jinja2 import (
    Environment,
    FileSystemLoader,
    DictLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
    select_autoescape,
)

from .literals import prisma_literal, ts_literal
from .naming import to_snake_case, to_camel_case, to_pascal_case


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Jinja2 environment configured for emitting TypeScript and Prisma source."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Args:
            template_dir: Backend template directory; None for in-memory templates only
        """
        self.template_dir = template_dir
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        if self.template_dir and self.template_dir.exists():
            loader = FileSystemLoader(str(self.template_dir))
        else:
            loader = DictLoader({})

        # Block tags own their line; generated files keep their final newline
        self._env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml"], default_for_string=False),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

        self._env.filters.update(
            {
                "snake_case": to_snake_case,
                "camel_case": to_camel_case,
                "pascal_case": to_pascal_case,
                "ts_literal": ts_literal,
                "prisma_literal": prisma_literal,
                "indent_lines": self._indent_filter,
                "comment": self._comment_filter,
            }
        )

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a named template.

        Raises:
            TemplateError: If the template is missing, malformed or uses an
                undefined variable
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def render_string(self, template_string: str, context: Dict[str, Any]) -> str:
        """Render template source given inline."""
        try:
            template = self._env.from_string(template_string)
            return template.render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template string: {e}") from e

    def template_exists(self, template_name: str) -> bool:
        return template_name in self._env.list_templates()

    def add_template(self, name: str, content: str):
        """
        Register an in-memory template.

        A file-backed engine switches to in-memory templates on the first
        call; its directory templates are no longer visible afterwards.
        """
        if not isinstance(self._env.loader, DictLoader):
            self._env.loader = DictLoader({})

        self._env.loader.mapping[name] = content

    # Filters

    @staticmethod
    def _indent_filter(value: str, spaces: int = 2) -> str:
        """Indent non-blank lines."""
        indent = " " * spaces
        lines = str(value).split("\n")
        return "\n".join(indent + line if line.strip() else line for line in lines)

    @staticmethod
    def _comment_filter(value: str, style: str = "//") -> str:
        lines = str(value).split("\n")
        return "\n".join(f"{style} {line}" if line.strip() else line for line in lines)


def create_template_engine(template_dir: Optional[Path] = None) -> TemplateEngine:
    """Create a template engine, file-backed when template_dir is given."""
    return TemplateEngine(template_dir)
