"""``binderctl`` entry point.

The root group only resolves settings and builds the :class:`AppContext`;
binder, card, grid and sync commands are attached by ``register_commands``.
"""

from __future__ import annotations

from pathlib import Path

import click

from binderctl import __version__
from binderctl.commands import register_commands
from binderctl.commands._context import AppContext
from binderctl.config.settings import BinderSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="binderctl")
@click.option(
    "-w",
    "--workspace",
    "workspace_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Binder workspace directory (default: nearest binderctl.toml, else cwd).",
)
@click.option("-c", "--config", "config_path", default=None, help="Use this binderctl.toml.")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON on stdout.")
@click.option("-q", "--quiet", is_flag=True, help="One status line, or ids for lists.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logs and sync timings on stderr.")
@click.option("--log-json", is_flag=True, help="Write stderr logs as JSON lines.")
@click.pass_context
def cli(
    ctx: click.Context,
    workspace_dir: Path | None,
    config_path: str | None,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
) -> None:
    """binderctl lays out trading-card binders locally and syncs them to the remote store."""
    ctx.obj = AppContext(
        BinderSettings.from_cli(
            config_path=config_path,
            root=workspace_dir,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
        )
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
