"""Tests for the sync, revert, pending and layout commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from binderctl.cli import cli
from tests.conftest import create_binder_cli, invoke_json


@pytest.mark.usefixtures("_isolated_workspace")
class TestSyncCommand:
    def test_sync_commits_pending(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner)
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Mew")
        payload = invoke_json(cli_runner, "sync", binder_id)
        assert payload["ok"] is True
        assert payload["data"]["applied"] == 1
        assert payload["data"]["revision"] == 1

        summary = invoke_json(cli_runner, "pending", "summary", binder_id)
        assert summary["data"]["total_changes"] == 0
        shown = invoke_json(cli_runner, "binder", "show", binder_id)
        assert [c["origin"] for c in shown["data"]["cards"]] == ["remote"]

    def test_sync_unknown_binder(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["sync", "binder_nope"])
        assert result.exit_code == 1
        assert "NO_SNAPSHOT" in result.output

    def test_revert(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner)
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Mew")
        payload = invoke_json(cli_runner, "revert", binder_id, "--yes")
        assert payload["data"]["discarded"] == 1
        shown = invoke_json(cli_runner, "binder", "show", binder_id)
        assert shown["data"]["cards"] == []

    def test_revert_prompt_declined(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner)
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Mew")
        result = cli_runner.invoke(cli, ["revert", binder_id], input="n\n")
        assert result.exit_code == 1
        summary = invoke_json(cli_runner, "pending", "summary", binder_id)
        assert summary["data"]["total_changes"] == 1


@pytest.mark.usefixtures("_isolated_workspace")
class TestPendingCommands:
    def test_list(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner)
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Mew")
        result = cli_runner.invoke(cli, ["pending", "list", binder_id])
        assert result.exit_code == 0
        assert "add" in result.output
        assert "-> 1:1" in result.output

    def test_clear(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner)
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Mew")
        payload = invoke_json(cli_runner, "pending", "clear", binder_id, "--yes")
        assert payload["data"]["cleared"] == 1

    def test_current_binder_from_env(
        self, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        binder_id = create_binder_cli(cli_runner)
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Mew")
        monkeypatch.setenv("BINDERCTL_CURRENT_BINDER", binder_id)
        summary = invoke_json(cli_runner, "pending", "summary")
        assert summary["data"]["total_changes"] == 1


@pytest.mark.usefixtures("_isolated_workspace")
class TestLayoutCommand:
    def test_reverse_holo_layout(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner, "--grid", "2x2", "--pages", "2")
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Oddish", "--rarity", "Common")
        invoke_json(
            cli_runner, "card", "add", binder_id, "--name", "Mew ex", "--rarity", "Double Rare"
        )
        payload = invoke_json(cli_runner, "layout", binder_id, "--reverse-holo")
        entries = payload["data"]["entries"]
        assert [e["name"] for e in entries] == ["Oddish", "Oddish", "Mew ex"]
        assert [e["reverse_holo"] for e in entries] == [False, True, False]

    def test_rich_output(self, cli_runner: CliRunner) -> None:
        binder_id = create_binder_cli(cli_runner, "--name", "Fossil")
        invoke_json(cli_runner, "card", "add", binder_id, "--name", "Kabuto")
        result = cli_runner.invoke(cli, ["layout", binder_id])
        assert result.exit_code == 0
        assert "Fossil" in result.output
        assert "Page 1 (right, spread 1)" in result.output
        assert "Kabuto" in result.output
