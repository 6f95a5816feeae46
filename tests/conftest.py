"""Shared pytest fixtures and test helpers for binderctl tests."""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from binderctl.cli import cli
from binderctl.config.settings import BinderSettings
from binderctl.domain.grid import SlotAddress
from binderctl.domain.placements import BinderPreferences, BinderSnapshot, CardPlacement, Origin
from binderctl.infrastructure.database.engine import init_database
from binderctl.infrastructure.remote import InMemoryRemoteStore
from binderctl.infrastructure.workspace import Workspace
from binderctl.services.result import ServiceResult


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own config out of the tests."""
    monkeypatch.delenv("BINDERCTL_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized workspace database with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest.fixture
def settings(tmp_path: Path) -> BinderSettings:
    return BinderSettings.from_cli(root=tmp_path)


@pytest.fixture
def workspace(settings: BinderSettings, remote: InMemoryRemoteStore) -> Iterator[Workspace]:
    """Workspace on a temp directory backed by the in-memory remote store."""
    ws = Workspace(settings, remote=remote)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the CLI from a temp directory so it creates an isolated workspace."""
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_card(
    card_id: str,
    page: int = 1,
    slot: int = 1,
    *,
    rarity: str | None = None,
    origin: Origin = Origin.REMOTE,
    **card_data: Any,
) -> CardPlacement:
    """Build a placement; ``name`` defaults to the card ID."""
    data: dict[str, Any] = {"name": card_id, **card_data}
    if rarity is not None:
        data["rarity"] = rarity
    return CardPlacement(
        card_id=card_id,
        address=SlotAddress(page_number=page, slot_in_page=slot),
        origin=origin,
        card_data=data,
    )


def seed_binder(
    workspace: Workspace,
    remote: InMemoryRemoteStore,
    *,
    binder_id: str = "binder_test",
    grid_size: str = "3x3",
    page_count: int = 1,
    placements: Sequence[CardPlacement] = (),
    show_reverse_holos: bool = False,
) -> BinderSnapshot:
    """Put the same binder on the remote store and into the local snapshot."""
    snapshot = BinderSnapshot(
        binder_id=binder_id,
        owner_id=workspace.owner_id,
        preferences=BinderPreferences(
            name="Test Binder",
            grid_size=grid_size,
            page_count=page_count,
            show_reverse_holos=show_reverse_holos,
        ),
        placements=list(placements),
    )
    remote.seed(snapshot)
    return workspace.snapshots.replace(snapshot)


def assert_ok(result: ServiceResult) -> dict[str, Any]:
    """Assert success and return ``result.data``."""
    assert result.ok, result.error
    return result.data


def assert_error(result: ServiceResult, code: str) -> dict[str, Any]:
    """Assert failure with *code* and return the error detail."""
    assert not result.ok
    assert result.error is not None
    assert result.error.code == code, result.error
    return result.error.detail


def invoke_json(runner: CliRunner, *args: str) -> dict[str, Any]:
    """Invoke the CLI with ``--json`` and parse the emitted result."""
    result = runner.invoke(cli, ["--json", *args])
    assert result.output, result.exception
    return json.loads(result.output)


def create_binder_cli(runner: CliRunner, *args: str) -> str:
    """Create a binder through the CLI and return its ID."""
    payload = invoke_json(runner, "binder", "create", *args)
    assert payload["ok"], payload
    return payload["data"]["binder_id"]
