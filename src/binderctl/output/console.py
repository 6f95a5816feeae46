"""Rich Console factory and theme for binderctl output.

Consoles render to a StringIO buffer so renderers keep a ``-> str``
contract. In non-TTY environments (tests, pipes) Rich drops color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BINDER_THEME = Theme(
    {
        "binder.ok": "bold green",
        "binder.error": "bold red",
        "binder.warning": "bold yellow",
        "binder.op": "bold cyan",
        "binder.key": "dim",
        "binder.id": "bold blue",
        "binder.slot": "magenta",
        "binder.holo": "italic cyan",
        "binder.local": "yellow",
        "binder.overflow": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=BINDER_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
