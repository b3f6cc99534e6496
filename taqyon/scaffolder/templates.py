"""Jinja2 rendering for generated helper files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``taqyon/scaffolder/templates/`` directory.  These are the files Taqyon
writes itself (build helper scripts, README); the framework template library
under ``library/`` goes through :class:`~taqyon.scaffolder.composer.TemplateComposer`
instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates with a context dictionary."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["batch_escape"] = _batch_escape_filter
        self.env.filters["sh_quote"] = _sh_quote_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"scripts/build.sh.j2"``).
            context: Dictionary of variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
        *,
        newline: str | None = None,
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  *newline* translates
        ``\\n`` on write (``"\\r\\n"`` for batch files).
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8", newline=newline) as handle:
            handle.write(content)
        return out


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _sh_quote_filter(value: str) -> str:
    """Quote a value for a double-quoted POSIX shell string."""
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("`", "\\`")
    )
    return f'"{escaped}"'


def _batch_escape_filter(value: str) -> str:
    """Escape ``%`` for a quoted ``set "VAR=value"`` line in a batch file."""
    return str(value).replace("%", "%%")
