"""Subcommand modules for binderctl.

Provides register_commands() which uses deferred imports to keep
``binderctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    from binderctl.commands.binder import binder
    from binderctl.commands.card import card
    from binderctl.commands.pending import pending

    cli.add_command(binder)
    cli.add_command(card)
    cli.add_command(pending)

    from binderctl.commands.grid import grid, slots
    from binderctl.commands.layout import layout
    from binderctl.commands.sync import revert, sync

    cli.add_command(grid)
    cli.add_command(slots)
    cli.add_command(layout)
    cli.add_command(sync)
    cli.add_command(revert)
