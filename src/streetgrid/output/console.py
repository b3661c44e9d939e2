"""Rich Console factory and theme for streetgrid output.

Consoles render into a StringIO buffer so renderers keep a
``render_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich disables color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

SG_THEME = Theme(
    {
        "sg.ok": "bold green",
        "sg.error": "bold red",
        "sg.warning": "bold yellow",
        "sg.op": "bold cyan",
        "sg.key": "dim",
        "sg.id": "bold blue",
        "sg.zone": "bold",
        "sg.pending": "italic yellow",
        "sg.action.move": "green",
        "sg.action.swap": "magenta",
        "sg.action.blocked": "red",
        "sg.cat.gogo": "magenta",
        "sg.cat.beer": "yellow",
        "sg.cat.pub": "dark_orange",
        "sg.cat.massage": "cyan",
        "sg.cat.nightclub": "blue",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=SG_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_category(category: str) -> str:
    return f"sg.cat.{category}" if category else ""


def style_for_action(action: str) -> str:
    if action in ("move", "swap", "blocked"):
        return f"sg.action.{action}"
    return ""
