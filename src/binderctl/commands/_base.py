"""Shared pieces for binderctl commands.

Every binder command takes a ``BINDER_ID`` first; :data:`binder_id_argument`
declares it once and lets ``BINDERCTL_CURRENT_BINDER`` stand in for it.
Commands and groups built on :class:`BinderCommand` and :class:`BinderGroup`
also take an ``examples`` text printed by ``--examples``.
"""

from __future__ import annotations

from typing import Any

import click

CURRENT_BINDER_ENV_VAR = "BINDERCTL_CURRENT_BINDER"

binder_id_argument = click.argument(
    "binder_id",
    metavar="BINDER_ID",
    envvar=CURRENT_BINDER_ENV_VAR,
)


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show example invocations and exit.",
        )
    )


class BinderCommand(click.Command):
    """Command with an optional ``--examples`` text."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class BinderGroup(click.Group):
    """Group whose subcommands are :class:`BinderCommand` unless told otherwise."""

    command_class = BinderCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
