"""Tests for the snapshot store."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from binderctl.domain.placements import BinderPreferences, BinderSnapshot
from binderctl.infrastructure.snapshots import SnapshotStore
from tests.conftest import make_card


def _snapshot(binder_id: str, owner: str = "ash", revision: int = 0) -> BinderSnapshot:
    return BinderSnapshot(
        binder_id=binder_id,
        owner_id=owner,
        preferences=BinderPreferences(grid_size="4x3", page_count=2),
        placements=[make_card("a", 1, 1), make_card("b", 2, 5, rarity="Rare")],
        revision=revision,
    )


class TestSnapshotStore:
    def test_missing(self, db_engine: Engine) -> None:
        assert SnapshotStore(db_engine).get("nope") is None

    def test_replace_and_get(self, db_engine: Engine) -> None:
        store = SnapshotStore(db_engine)
        stamped = store.replace(_snapshot("b1"))
        assert stamped.pulled_at is not None
        loaded = store.get("b1")
        assert loaded == stamped
        assert loaded.grid.token == "4x3"
        assert loaded.placements[1].rarity == "Rare"

    def test_replace_is_wholesale(self, db_engine: Engine) -> None:
        store = SnapshotStore(db_engine)
        store.replace(_snapshot("b1"))
        store.replace(_snapshot("b1", revision=7).model_copy(update={"placements": []}))
        loaded = store.get("b1")
        assert loaded.revision == 7
        assert loaded.placements == []
        assert len(store.list_all()) == 1

    def test_list_all_by_owner(self, db_engine: Engine) -> None:
        store = SnapshotStore(db_engine)
        store.replace(_snapshot("b2", owner="ash"))
        store.replace(_snapshot("b1", owner="ash"))
        store.replace(_snapshot("b3", owner="misty"))
        assert [s.binder_id for s in store.list_all("ash")] == ["b1", "b2"]
        assert len(store.list_all()) == 3
