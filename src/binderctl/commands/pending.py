"""Command group: inspect or discard the pending-change ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from binderctl.commands._base import BinderGroup, binder_id_argument

if TYPE_CHECKING:
    from binderctl.commands._context import AppContext

_PENDING_EXAMPLES = """\
  binderctl pending list binder_1a2b3c4d5e6f
  binderctl pending summary binder_1a2b3c4d5e6f
  binderctl pending clear binder_1a2b3c4d5e6f --yes"""


@click.group(cls=BinderGroup, examples=_PENDING_EXAMPLES)
def pending() -> None:
    """Inspect or discard uncommitted changes."""


@pending.command(name="list", examples="  binderctl --json pending list binder_1a2b3c4d5e6f")
@binder_id_argument
@click.pass_obj
def list_cmd(app: AppContext, binder_id: str) -> None:
    """Pending changes in commit order."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).list_changes(binder_id))


@pending.command(examples="  binderctl pending summary binder_1a2b3c4d5e6f")
@binder_id_argument
@click.pass_obj
def summary(app: AppContext, binder_id: str) -> None:
    """Counts of pending changes per kind."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).summarize(binder_id))


@pending.command(examples="  binderctl pending clear binder_1a2b3c4d5e6f --yes")
@binder_id_argument
@click.confirmation_option(prompt="Discard all pending changes?")
@click.pass_obj
def clear(app: AppContext, binder_id: str) -> None:
    """Discard pending changes and preference overrides."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).clear(binder_id))
