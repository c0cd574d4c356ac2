"""Rich Console factory and theme for imgroute output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

ROUTE_THEME = Theme(
    {
        "route.ok": "bold green",
        "route.error": "bold red",
        "route.warning": "bold yellow",
        "route.op": "bold cyan",
        "route.key": "dim",
        "route.id": "bold blue",
        "route.name": "bold",
        "route.pattern": "magenta",
        "route.default": "bold green",
        "route.kind.origin": "green",
        "route.kind.policy": "yellow",
        "route.kind.mapping": "cyan",
    }
)

_KIND_STYLES: dict[str, str] = {
    "origin": "route.kind.origin",
    "policy": "route.kind.policy",
    "mapping": "route.kind.mapping",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=ROUTE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for an entity kind."""
    return _KIND_STYLES.get(kind, "")
