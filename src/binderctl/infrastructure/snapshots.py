"""Last-known-good remote state, one row per binder.

A snapshot is replaced wholesale on every successful pull or sync and
never partially mutated.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select

from binderctl.domain.placements import BinderSnapshot
from binderctl.infrastructure.database.schema import binder_snapshots

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class SnapshotStore:
    """Read and replace binder snapshots in the workspace database."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, binder_id: str) -> BinderSnapshot | None:
        with self._engine.connect() as conn:
            payload = conn.execute(
                select(binder_snapshots.c.payload).where(binder_snapshots.c.binder_id == binder_id)
            ).scalar_one_or_none()
        return None if payload is None else BinderSnapshot.model_validate_json(payload)

    def replace(self, snapshot: BinderSnapshot) -> BinderSnapshot:
        """Store *snapshot* in place of any previous one. Returns it with ``pulled_at`` set."""
        stamped = snapshot.model_copy(update={"pulled_at": datetime.now(UTC).isoformat()})
        with self._engine.begin() as conn:
            conn.execute(
                delete(binder_snapshots).where(binder_snapshots.c.binder_id == snapshot.binder_id)
            )
            conn.execute(
                insert(binder_snapshots).values(
                    binder_id=stamped.binder_id,
                    owner_id=stamped.owner_id,
                    revision=stamped.revision,
                    payload=stamped.model_dump_json(),
                    pulled_at=stamped.pulled_at,
                )
            )
        return stamped

    def list_all(self, owner_id: str | None = None) -> list[BinderSnapshot]:
        query = select(binder_snapshots.c.payload).order_by(binder_snapshots.c.binder_id)
        if owner_id is not None:
            query = query.where(binder_snapshots.c.owner_id == owner_id)
        with self._engine.connect() as conn:
            rows = conn.execute(query).scalars().all()
        return [BinderSnapshot.model_validate_json(p) for p in rows]
