"""Command group: create, pull, inspect, and configure binders."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binderctl.commands._base import BinderGroup, binder_id_argument

if TYPE_CHECKING:
    from binderctl.commands._context import AppContext

_BINDER_EXAMPLES = """\
  binderctl binder create --name "Surging Sparks" --grid 3x3 --pages 4
  binderctl binder pull binder_1a2b3c4d5e6f
  binderctl binder show binder_1a2b3c4d5e6f
  binderctl binder set binder_1a2b3c4d5e6f --pages 6 --reverse-holo
  binderctl binder list"""


@click.group(cls=BinderGroup, examples=_BINDER_EXAMPLES)
def binder() -> None:
    """Create, pull, inspect, and configure binders."""


@binder.command(
    examples="""\
  binderctl binder create
  binderctl binder create --name Trainers --grid 4x3 --pages 2"""
)
@click.option("--name", default=None, help="Binder name.")
@click.option("--grid", "grid_size", default=None, help="Grid size token, e.g. 3x3.")
@click.option("--pages", "page_count", type=int, default=None, help="Binder page count.")
@click.option("--reverse-holo", is_flag=True, help="Show reverse-holo variants.")
@click.pass_obj
def create(
    app: AppContext,
    name: str | None,
    grid_size: str | None,
    page_count: int | None,
    reverse_holo: bool,
) -> None:
    """Create an empty binder on the remote store and pull it."""
    from binderctl.services.sync import SyncService

    svc = SyncService(app.workspace)
    app.emit(
        app.run(
            svc.create_binder(
                name=name,
                grid_size=grid_size,
                page_count=page_count,
                show_reverse_holos=reverse_holo,
            )
        )
    )


@binder.command(examples="  binderctl binder pull binder_1a2b3c4d5e6f")
@binder_id_argument
@click.pass_obj
def pull(app: AppContext, binder_id: str) -> None:
    """Replace the local snapshot with the remote binder."""
    from binderctl.services.sync import SyncService

    app.emit(app.run(SyncService(app.workspace).pull(binder_id)))


@binder.command(
    examples="""\
  binderctl binder show binder_1a2b3c4d5e6f
  binderctl --json binder show binder_1a2b3c4d5e6f"""
)
@binder_id_argument
@click.pass_obj
def show(app: AppContext, binder_id: str) -> None:
    """Show the effective binder: snapshot plus pending changes."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).effective_state(binder_id))


@binder.command(name="list", examples="  binderctl binder list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List binders pulled into this workspace."""
    from binderctl.services.result import ServiceResult

    ws = app.workspace
    binders = [
        {
            "binder_id": s.binder_id,
            "name": s.preferences.name,
            "grid": s.preferences.grid_size,
            "page_count": s.preferences.page_count,
            "cards": len(s.placements),
            "revision": s.revision,
        }
        for s in ws.snapshots.list_all(ws.owner_id)
    ]
    app.emit(
        ServiceResult(ok=True, op="list_binders", data={"count": len(binders), "binders": binders})
    )


@binder.command(
    name="set",
    examples="""\
  binderctl binder set binder_1a2b3c4d5e6f --grid 4x4
  binderctl binder set binder_1a2b3c4d5e6f --pages 3 --no-reverse-holo""",
)
@binder_id_argument
@click.option("--name", default=None, help="New binder name.")
@click.option("--grid", "grid_size", default=None, help="New grid size token.")
@click.option("--pages", "page_count", type=int, default=None, help="New page count.")
@click.option(
    "--reverse-holo/--no-reverse-holo",
    "show_reverse_holos",
    default=None,
    help="Toggle reverse-holo variants.",
)
@click.pass_obj
def set_cmd(
    app: AppContext,
    binder_id: str,
    name: str | None,
    grid_size: str | None,
    page_count: int | None,
    show_reverse_holos: bool | None,
) -> None:
    """Stage binder preference changes for the next sync."""
    from binderctl.services.ledger import LedgerService

    app.emit(
        LedgerService(app.workspace).set_preferences(
            binder_id,
            name=name,
            grid_size=grid_size,
            page_count=page_count,
            show_reverse_holos=show_reverse_holos,
        )
    )
