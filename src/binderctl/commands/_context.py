"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Provides lazy Workspace initialization, the session's
save gate, and centralized result emission (stdout/stderr routing and exit
codes).
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

import click

from binderctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from binderctl.config.settings import BinderSettings
    from binderctl.infrastructure.workspace import Workspace
    from binderctl.services.result import ServiceResult
    from binderctl.services.save_gate import SaveGate


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The workspace is created on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: BinderSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None
        self._gate: SaveGate | None = None

        from binderctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from binderctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        if self._workspace is None:
            from binderctl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
        return self._workspace

    @property
    def gate(self) -> SaveGate:
        """Save gate for this session, policy picked by ``[workspace] user_type``."""
        if self._gate is None:
            from binderctl.services.save_gate import SaveGate

            policy = self.settings.save_rate.policy_for(self.settings.workspace.user_type)
            self._gate = SaveGate(policy, self.workspace.save_state)
        return self._gate

    def run(self, coro: Coroutine[Any, Any, ServiceResult]) -> ServiceResult:
        """Drive an async service call to completion."""
        return asyncio.run(coro)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout; warnings go to stderr so they don't
          pollute piped output.
        * Failure: writes to stderr and exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
