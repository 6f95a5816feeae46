"""Help and examples output for every command."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from binderctl import __version__
from binderctl.cli import cli

HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["--help"], ["binder", "card", "pending", "grid", "slots", "layout", "sync", "revert"]),
    (["binder", "--help"], ["create", "pull", "show", "list", "set"]),
    (["binder", "create", "--help"], ["--name", "--grid", "--pages", "--reverse-holo"]),
    (["binder", "set", "--help"], ["--pages", "--no-reverse-holo"]),
    (["card", "--help"], ["add", "remove", "move", "swap", "update", "free"]),
    (["card", "add", "--help"], ["--file", "--start", "--api-id"]),
    (["card", "update", "--help"], ["--set"]),
    (["pending", "--help"], ["list", "summary", "clear"]),
    (["slots", "--help"], ["--pages"]),
    (["layout", "--help"], ["--reverse-holo"]),
    (["revert", "--help"], ["--yes"]),
]


class TestHelp:
    @pytest.mark.parametrize(("args", "keywords"), HELP_COMMANDS, ids=lambda v: " ".join(v))
    def test_help(self, cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0
        for keyword in keywords:
            assert keyword in result.output

    @pytest.mark.parametrize("args", [["card"], ["binder", "create"], ["sync"], ["grid"]])
    def test_examples(self, cli_runner: CliRunner, args: list[str]) -> None:
        result = cli_runner.invoke(cli, [*args, "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output
        assert "binderctl" in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert __version__ in result.output
