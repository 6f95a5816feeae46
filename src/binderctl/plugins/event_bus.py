"""WAL-backed event dispatch via pluggy.

Events are written to the ``event_wal`` table before the hook runs, so an
event interrupted by a crash is still on record. Dispatch is synchronous:
the CLI is single-threaded and hooks are expected to be quick.
:meth:`EventBus.drain` retries pending and failed events.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from binderctl.infrastructure.database.schema import event_wal
from binderctl.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from binderctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Writes each event to the WAL, then calls the matching hook.

    Parameters:
        engine: SQLAlchemy engine holding the ``event_wal`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        max_retries: Attempts before an event is marked ``dead_letter``.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        max_retries: int = 3,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> int:
        """Record and run one event. Returns the WAL row id."""
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(event_wal).values(
                    hook_name=hook_name,
                    payload=json.dumps(payload),
                    status="pending",
                    retries=0,
                    created=now_iso(),
                )
            )
            event_id = result.lastrowid
        assert event_id is not None
        self._run(event_id, hook_name, payload)
        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Retry pending and failed events in WAL order.

        Returns ``{id, hook_name, status}`` for each retried event.
        """
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_wal.c.id, event_wal.c.hook_name, event_wal.c.payload)
                .where(event_wal.c.status.in_(["pending", "failed"]))
                .order_by(event_wal.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            status = self._run(row.id, row.hook_name, json.loads(row.payload))
            results.append({"id": row.id, "hook_name": row.hook_name, "status": status})
        return results

    def _run(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> str:
        hook_fn = getattr(self._pm.hook, hook_name, None)
        try:
            if hook_fn is not None:
                hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            return self._mark_failed(event_id, str(exc))

        with self._engine.begin() as conn:
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(status="completed", completed=now_iso())
            )
        return "completed"

    def _mark_failed(self, event_id: int, error: str) -> str:
        """Bump the retry count; past ``max_retries`` the event is dead-lettered."""
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_wal.c.retries).where(event_wal.c.id == event_id)
            ).scalar_one()
            retries += 1
            status = "dead_letter" if retries >= self._max_retries else "failed"
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(
                    status=status,
                    error=error,
                    retries=retries,
                    completed=now_iso() if status == "dead_letter" else None,
                )
            )
        return status
