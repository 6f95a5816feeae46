"""End-to-end tests for verbose telemetry.

Covers the full pipeline:
  CLI flag (-v) -> AppContext -> enable_telemetry() -> @traced service methods
  -> span tree in ServiceResult.meta -> renderer prints the span tree.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from click.testing import CliRunner

from binderctl.cli import cli
from binderctl.services.telemetry import _current_span, disable_telemetry
from tests.conftest import create_binder_cli


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """-v sets a ContextVar that would otherwise leak into later tests."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.mark.usefixtures("_isolated_workspace")
class TestVerboseTelemetry:
    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_verbose_add_shows_telemetry(self) -> None:
        binder_id = create_binder_cli(self.runner)
        result = self.runner.invoke(cli, ["-v", "card", "add", binder_id, "--name", "Zubat"])
        assert result.exit_code == 0
        assert "meta:" in result.output
        assert "LedgerService.add_cards" in result.output
        assert "allocate" in result.output
        assert "ms" in result.output

    def test_verbose_sync_shows_remote_write(self) -> None:
        binder_id = create_binder_cli(self.runner)
        self.runner.invoke(cli, ["card", "add", binder_id, "--name", "Golbat"])
        result = self.runner.invoke(cli, ["-v", "sync", binder_id])
        assert result.exit_code == 0
        assert "SyncService.sync_to_remote" in result.output
        assert "remote_write" in result.output

    def test_non_verbose_no_telemetry(self) -> None:
        binder_id = create_binder_cli(self.runner)
        result = self.runner.invoke(cli, ["card", "add", binder_id, "--name", "Crobat"])
        assert result.exit_code == 0
        assert "meta:" not in result.output
        assert "LedgerService" not in result.output
