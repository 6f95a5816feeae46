"""Remote persistence: the durable store a binder is reconciled against.

The reconciler only depends on the :class:`RemoteStore` protocol. Two
implementations ship:

- :class:`InMemoryRemoteStore` for tests and embedding. It can simulate
  latency and one-shot rejections, and records every batch it receives.
- :class:`SqliteRemoteStore`, a file-backed document store used by the CLI.

Both apply a batch atomically via :func:`apply_batch`: the whole ordered
change list plus preference overrides either lands or nothing does. Slot
uniqueness is checked once, against the final state, so a swap expressed
as two moves is accepted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError
from sqlalchemy import insert, select, update

from binderctl.domain.allocation import fits_in_binder
from binderctl.domain.changes import ChangeKind, find_collision
from binderctl.domain.errors import BinderError, RemoteRejected
from binderctl.domain.ids import new_binder_id
from binderctl.domain.placements import BinderPreferences, BinderSnapshot, Origin, sort_by_slot
from binderctl.infrastructure.database.engine import open_database
from binderctl.infrastructure.database.schema import remote_binders, remote_metadata

logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    """What the reconciler needs from remote storage."""

    async def create_binder(
        self, owner_id: str, preferences: BinderPreferences
    ) -> BinderSnapshot: ...

    async def read_binder(self, binder_id: str) -> BinderSnapshot | None: ...

    async def write_binder_batch(
        self,
        binder_id: str,
        changes: Sequence[Any],
        preferences: dict[str, Any] | None,
    ) -> BinderSnapshot: ...


def apply_batch(
    document: BinderSnapshot,
    changes: Sequence[Any],
    preferences: dict[str, Any] | None,
) -> BinderSnapshot:
    """Apply an ordered change batch to a stored binder document.

    Returns the post-write document with ``revision`` bumped.

    Raises:
        RemoteRejected: invalid preferences, an unknown or duplicate card,
            a slot collision, or a card outside the binder's capacity.
    """
    prefs = document.preferences
    if preferences:
        try:
            prefs = BinderPreferences.model_validate({**prefs.model_dump(), **preferences})
            grid = prefs.grid
        except (ValidationError, BinderError) as exc:
            msg = f"invalid preferences: {exc}"
            raise RemoteRejected(msg) from exc
    else:
        grid = prefs.grid

    cards = {p.card_id: p for p in document.placements}
    for change in sorted(changes, key=lambda c: c.seq):
        if change.kind == ChangeKind.ADD:
            if change.card_id in cards:
                msg = f"duplicate card id {change.card_id}"
                raise RemoteRejected(msg)
            if change.placement.is_derived_variant:
                msg = f"derived variant {change.card_id} cannot be stored"
                raise RemoteRejected(msg)
            cards[change.card_id] = change.placement.model_copy(
                update={"origin": Origin.REMOTE, "layout_origin": None}
            )
            continue

        current = cards.get(change.card_id)
        if current is None:
            msg = f"unknown card {change.card_id}"
            raise RemoteRejected(msg)
        if change.kind == ChangeKind.REMOVE:
            del cards[change.card_id]
        elif change.kind == ChangeKind.MOVE:
            cards[change.card_id] = current.at(change.to_slot)
        else:
            cards[change.card_id] = current.model_copy(
                update={"card_data": {**current.card_data, **change.fields}}
            )

    placements = sort_by_slot(list(cards.values()))
    collision = find_collision(placements)
    if collision is not None:
        address, first, second = collision
        msg = f"slot {address} claimed by both {first} and {second}"
        raise RemoteRejected(msg)
    for placement in placements:
        if not fits_in_binder(placement.address, grid=grid, page_count=prefs.page_count):
            msg = f"card {placement.card_id} at {placement.address} is outside the binder"
            raise RemoteRejected(msg)

    return document.model_copy(
        update={
            "preferences": prefs,
            "placements": placements,
            "revision": document.revision + 1,
        }
    )


class InMemoryRemoteStore:
    """Process-local remote store.

    Attributes:
        latency: Seconds each batch write waits before applying.
        batches: Every ``(binder_id, changes, preferences)`` batch received.
        reject_next: When set, the next batch is refused with this reason.
    """

    def __init__(self, *, latency: float = 0.0) -> None:
        self._binders: dict[str, BinderSnapshot] = {}
        self.latency = latency
        self.batches: list[tuple[str, list[Any], dict[str, Any] | None]] = []
        self.reject_next: str | None = None

    def seed(self, snapshot: BinderSnapshot) -> None:
        """Store *snapshot* directly, bypassing batch validation."""
        self._binders[snapshot.binder_id] = snapshot

    async def create_binder(self, owner_id: str, preferences: BinderPreferences) -> BinderSnapshot:
        snapshot = BinderSnapshot(
            binder_id=new_binder_id(), owner_id=owner_id, preferences=preferences
        )
        self._binders[snapshot.binder_id] = snapshot
        return snapshot

    async def read_binder(self, binder_id: str) -> BinderSnapshot | None:
        return self._binders.get(binder_id)

    async def write_binder_batch(
        self,
        binder_id: str,
        changes: Sequence[Any],
        preferences: dict[str, Any] | None,
    ) -> BinderSnapshot:
        self.batches.append((binder_id, list(changes), preferences))
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.reject_next is not None:
            reason, self.reject_next = self.reject_next, None
            raise RemoteRejected(reason)
        document = self._binders.get(binder_id)
        if document is None:
            msg = f"binder {binder_id} does not exist"
            raise RemoteRejected(msg)
        written = apply_batch(document, changes, preferences)
        self._binders[binder_id] = written
        return written


class SqliteRemoteStore:
    """File-backed remote store keeping one JSON document per binder.

    A batch is read, applied, and written back inside one
    ``engine.begin()`` transaction.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._engine = open_database(path, remote_metadata)

    @property
    def path(self) -> Path:
        return self._path

    def close(self) -> None:
        self._engine.dispose()

    async def create_binder(self, owner_id: str, preferences: BinderPreferences) -> BinderSnapshot:
        snapshot = BinderSnapshot(
            binder_id=new_binder_id(), owner_id=owner_id, preferences=preferences
        )
        with self._engine.begin() as conn:
            conn.execute(
                insert(remote_binders).values(
                    binder_id=snapshot.binder_id,
                    owner_id=owner_id,
                    revision=snapshot.revision,
                    document=snapshot.model_dump_json(),
                    modified=datetime.now(UTC).isoformat(),
                )
            )
        logger.debug("Created remote binder %s", snapshot.binder_id)
        return snapshot

    async def read_binder(self, binder_id: str) -> BinderSnapshot | None:
        with self._engine.connect() as conn:
            document = conn.execute(
                select(remote_binders.c.document).where(remote_binders.c.binder_id == binder_id)
            ).scalar_one_or_none()
        return None if document is None else BinderSnapshot.model_validate_json(document)

    async def write_binder_batch(
        self,
        binder_id: str,
        changes: Sequence[Any],
        preferences: dict[str, Any] | None,
    ) -> BinderSnapshot:
        with self._engine.begin() as conn:
            raw = conn.execute(
                select(remote_binders.c.document).where(remote_binders.c.binder_id == binder_id)
            ).scalar_one_or_none()
            if raw is None:
                msg = f"binder {binder_id} does not exist"
                raise RemoteRejected(msg)
            written = apply_batch(BinderSnapshot.model_validate_json(raw), changes, preferences)
            conn.execute(
                update(remote_binders)
                .where(remote_binders.c.binder_id == binder_id)
                .values(
                    revision=written.revision,
                    document=written.model_dump_json(),
                    modified=datetime.now(UTC).isoformat(),
                )
            )
        logger.debug("Wrote %d changes to %s (rev %d)", len(changes), binder_id, written.revision)
        return written
