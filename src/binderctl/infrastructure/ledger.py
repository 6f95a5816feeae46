"""Pending-change ledger persisted in the workspace database.

Each :meth:`LedgerStore.record` call reads the existing entries for the
card, asks :func:`binderctl.domain.changes.coalesce` for the net effect,
and applies it inside a single ``engine.begin()`` transaction, so the
ledger never holds a half-coalesced state.

While a sync is shipping a binder (:meth:`LedgerStore.shipping`), entries at
or below the shipped ``seq`` are frozen: new edits coalesce only with later
entries and otherwise append, so acknowledging the batch never loses them.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from sqlalchemy import delete, insert, select, update

from binderctl.domain.changes import (
    ChangeSummary,
    CoalesceStatus,
    PendingChange,
    coalesce,
    summarize,
)
from binderctl.infrastructure.database.schema import pending_changes, pending_preferences

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

_CHANGE: TypeAdapter[Any] = TypeAdapter(PendingChange)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _encode(change: Any) -> str:
    return change.model_dump_json(exclude={"seq"})


def _decode(seq: int, payload: str) -> Any:
    data = json.loads(payload)
    data["seq"] = seq
    return _CHANGE.validate_python(data)


class LedgerStore:
    """Ordered, coalescing store of uncommitted edits per binder."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._shipped: dict[str, int] = {}

    def record(self, change: Any) -> CoalesceStatus:
        """Fold *change* into the ledger.

        Raises:
            ValueError: the change targets a card already pending removal.
        """
        with self._engine.begin() as conn:
            existing = self._entries_for_card(
                conn,
                change.binder_id,
                change.card_id,
                after_seq=self._shipped.get(change.binder_id, 0),
            )
            outcome = coalesce(existing, change)

            if outcome.drop:
                conn.execute(delete(pending_changes).where(pending_changes.c.seq.in_(outcome.drop)))
            if outcome.replace is not None:
                conn.execute(
                    update(pending_changes)
                    .where(pending_changes.c.seq == outcome.replace.seq)
                    .values(payload=_encode(outcome.replace))
                )
            if outcome.append is not None:
                conn.execute(
                    insert(pending_changes).values(
                        binder_id=outcome.append.binder_id,
                        card_id=outcome.append.card_id,
                        kind=str(outcome.append.kind),
                        payload=_encode(outcome.append),
                        created=outcome.append.created or _now(),
                    )
                )
        return outcome.status

    def list(self, binder_id: str) -> list[Any]:
        """All pending changes for *binder_id*, ordered by ``seq``."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(pending_changes.c.seq, pending_changes.c.payload)
                .where(pending_changes.c.binder_id == binder_id)
                .order_by(pending_changes.c.seq)
            ).fetchall()
        return [_decode(row.seq, row.payload) for row in rows]

    def clear(self, binder_id: str) -> int:
        """Drop every pending change and preference override. Returns changes dropped."""
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(pending_changes).where(pending_changes.c.binder_id == binder_id)
            )
            conn.execute(
                delete(pending_preferences).where(pending_preferences.c.binder_id == binder_id)
            )
        return result.rowcount

    def acknowledge(
        self,
        binder_id: str,
        through_seq: int,
        preferences: dict[str, Any],
    ) -> int:
        """Drop what a successful sync committed.

        Entries recorded after the batch was read (``seq > through_seq``)
        stay, as do preference overrides edited in the meantime.
        """
        with self._engine.begin() as conn:
            result = conn.execute(
                delete(pending_changes).where(
                    pending_changes.c.binder_id == binder_id,
                    pending_changes.c.seq <= through_seq,
                )
            )
            payload = conn.execute(
                select(pending_preferences.c.payload).where(
                    pending_preferences.c.binder_id == binder_id
                )
            ).scalar_one_or_none()
            if payload is not None and json.loads(payload) == preferences:
                conn.execute(
                    delete(pending_preferences).where(
                        pending_preferences.c.binder_id == binder_id
                    )
                )
        return result.rowcount

    @contextmanager
    def shipping(self, binder_id: str, through_seq: int) -> Iterator[None]:
        """Freeze entries up to *through_seq* while they are on their way out."""
        self._shipped[binder_id] = through_seq
        try:
            yield
        finally:
            self._shipped.pop(binder_id, None)

    def summarize(self, binder_id: str) -> ChangeSummary:
        return summarize(self.list(binder_id))

    def pending_binders(self) -> list[str]:
        """Binder IDs holding pending changes or preference overrides."""
        with self._engine.connect() as conn:
            changed = conn.execute(select(pending_changes.c.binder_id).distinct()).scalars()
            prefs = conn.execute(select(pending_preferences.c.binder_id)).scalars()
            return sorted(set(changed) | set(prefs))

    # ------------------------------------------------------------------
    # Preference overrides
    # ------------------------------------------------------------------

    def get_preferences(self, binder_id: str) -> dict[str, Any]:
        """Pending preference overrides (empty when none)."""
        with self._engine.connect() as conn:
            payload = conn.execute(
                select(pending_preferences.c.payload).where(
                    pending_preferences.c.binder_id == binder_id
                )
            ).scalar_one_or_none()
        return {} if payload is None else json.loads(payload)

    def set_preferences(self, binder_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge *fields* into the pending overrides. Returns the merged overrides."""
        with self._engine.begin() as conn:
            payload = conn.execute(
                select(pending_preferences.c.payload).where(
                    pending_preferences.c.binder_id == binder_id
                )
            ).scalar_one_or_none()
            if payload is None:
                merged = dict(fields)
                conn.execute(
                    insert(pending_preferences).values(
                        binder_id=binder_id, payload=json.dumps(merged), modified=_now()
                    )
                )
            else:
                merged = {**json.loads(payload), **fields}
                conn.execute(
                    update(pending_preferences)
                    .where(pending_preferences.c.binder_id == binder_id)
                    .values(payload=json.dumps(merged), modified=_now())
                )
        return merged

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _entries_for_card(
        conn: Connection, binder_id: str, card_id: str, *, after_seq: int = 0
    ) -> list[Any]:
        rows = conn.execute(
            select(pending_changes.c.seq, pending_changes.c.payload)
            .where(
                pending_changes.c.binder_id == binder_id,
                pending_changes.c.card_id == card_id,
                pending_changes.c.seq > after_seq,
            )
            .order_by(pending_changes.c.seq)
        ).fetchall()
        return [_decode(row.seq, row.payload) for row in rows]
