"""Commands: grid geometry. Pure arithmetic, no workspace is opened."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binderctl.commands._base import BinderCommand

if TYPE_CHECKING:
    from binderctl.commands._context import AppContext


@click.command(
    cls=BinderCommand,
    examples="""\
  binderctl grid 3x3
  binderctl --json grid 4x3""",
)
@click.argument("token")
@click.pass_obj
def grid(app: AppContext, token: str) -> None:
    """Describe a grid size token such as 3x3."""
    from binderctl.services.layout import describe_grid

    app.emit(describe_grid(token))


@click.command(
    cls=BinderCommand,
    examples="""\
  binderctl slots 3x3 --pages 1
  binderctl slots 2x2 --pages 5""",
)
@click.argument("token")
@click.option(
    "--pages", "page_count", type=int, default=1, show_default=True, help="Binder page count."
)
@click.pass_obj
def slots(app: AppContext, token: str, page_count: int) -> None:
    """Total slot capacity for a grid size and page count."""
    from binderctl.services.layout import compute_slots

    app.emit(compute_slots(token, page_count))
