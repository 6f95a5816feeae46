"""Command: show the rendered page layout of a binder."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binderctl.commands._base import BinderCommand, binder_id_argument

if TYPE_CHECKING:
    from binderctl.commands._context import AppContext


@click.command(
    cls=BinderCommand,
    examples="""\
  binderctl layout binder_1a2b3c4d5e6f
  binderctl layout binder_1a2b3c4d5e6f --reverse-holo
  binderctl --json layout binder_1a2b3c4d5e6f --no-reverse-holo""",
)
@binder_id_argument
@click.option(
    "--reverse-holo/--no-reverse-holo",
    "reverse_holo",
    default=None,
    help="Override the binder's reverse-holo preference.",
)
@click.pass_obj
def layout(app: AppContext, binder_id: str, reverse_holo: bool | None) -> None:
    """Show cards page by page, with reverse-holo variants when enabled."""
    from binderctl.services.layout import LayoutService

    app.emit(LayoutService(app.workspace).render(binder_id, reverse_holo=reverse_holo))
