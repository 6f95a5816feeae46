"""Commands: commit pending changes to the remote store, or discard them."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binderctl.commands._base import BinderCommand, binder_id_argument

if TYPE_CHECKING:
    from binderctl.commands._context import AppContext


@click.command(
    cls=BinderCommand,
    examples="""\
  binderctl sync binder_1a2b3c4d5e6f
  binderctl --json sync binder_1a2b3c4d5e6f""",
)
@binder_id_argument
@click.pass_obj
def sync(app: AppContext, binder_id: str) -> None:
    """Commit pending changes, subject to the save-rate gate."""
    from binderctl.services.sync import SyncService

    svc = SyncService(app.workspace)
    app.emit(app.run(app.gate.try_commit(lambda: svc.sync_to_remote(binder_id))))


@click.command(
    cls=BinderCommand,
    examples="  binderctl revert binder_1a2b3c4d5e6f --yes",
)
@binder_id_argument
@click.confirmation_option(prompt="Discard local changes and return to the last synced state?")
@click.pass_obj
def revert(app: AppContext, binder_id: str) -> None:
    """Discard local changes without contacting the remote store."""
    from binderctl.services.sync import SyncService

    app.emit(SyncService(app.workspace).revert_to_remote(binder_id))
