"""SyncService: reconcile the local ledger with the remote store.

- :meth:`SyncService.pull` replaces the snapshot with the remote document.
- :meth:`SyncService.sync_to_remote` ships the whole ordered ledger plus
  preference overrides as one batch. The ledger is cleared only after the
  remote acknowledges; on rejection or timeout it is left untouched.
- :meth:`SyncService.revert_to_remote` discards local edits without any
  remote call.

INVARIANT: at most one sync per binder is in flight. The in-flight check
and the claim happen before the first ``await``, so a concurrent second
call is rejected without reaching the remote store.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from binderctl.config.logging import binder_log_context
from binderctl.domain.errors import BinderError, RemoteRejected, RevertError, SyncError
from binderctl.domain.placements import BinderPreferences
from binderctl.services._helpers import failure
from binderctl.services.base import BaseService
from binderctl.services.invalidation import Mutation
from binderctl.services.result import ServiceResult
from binderctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class SyncService(BaseService):
    """Remote reconciliation for one workspace."""

    @traced
    async def create_binder(
        self,
        *,
        name: str | None = None,
        grid_size: str | None = None,
        page_count: int | None = None,
        show_reverse_holos: bool = False,
    ) -> ServiceResult:
        """Create an empty binder on the remote store and pull it."""
        op = "create_binder"
        defaults = self._ws.settings.binder
        max_pages = self._ws.settings.max_pages
        pages = defaults.default_page_count if page_count is None else page_count
        if pages < 1 or pages > max_pages:
            return failure(
                op,
                code="PAGE_LIMIT",
                message=f"Page count must be between 1 and {max_pages}",
                page_count=pages,
                max_pages=max_pages,
            )
        try:
            preferences = BinderPreferences(
                name=name or BinderPreferences().name,
                grid_size=grid_size or defaults.default_grid_size,
                page_count=pages,
                show_reverse_holos=show_reverse_holos,
            )
            preferences = preferences.model_copy(update={"grid_size": preferences.grid.token})
        except BinderError as exc:
            return failure(op, exc)

        try:
            snapshot = await self._ws.remote.create_binder(self._ws.owner_id, preferences)
        except (OSError, SQLAlchemyError) as exc:
            logger.warning("Creating binder failed: %s", exc, exc_info=True)
            return failure(op, SyncError(str(exc)))
        stored = self._ws.snapshots.replace(snapshot)
        warnings: list[str] = []
        self._mark_stale(Mutation.PULL, stored.binder_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": stored.binder_id,
                "owner_id": stored.owner_id,
                "preferences": stored.preferences.model_dump(),
            },
            warnings=warnings,
        )

    @traced
    async def pull(self, binder_id: str) -> ServiceResult:
        """Replace the local snapshot with the remote binder document."""
        op = "pull"
        timeout = self._ws.settings.sync.timeout_seconds
        try:
            document = await asyncio.wait_for(self._ws.remote.read_binder(binder_id), timeout)
        except TimeoutError:
            return failure(op, SyncError(f"remote read timed out after {timeout}s"))
        except (OSError, SQLAlchemyError) as exc:
            logger.warning("Pull of %s failed: %s", binder_id, exc, exc_info=True)
            return failure(op, SyncError(str(exc)))
        if document is None:
            return failure(
                op,
                code="NOT_FOUND",
                message=f"Remote store has no binder {binder_id}",
                binder_id=binder_id,
            )

        stored = self._ws.snapshots.replace(document)
        warnings: list[str] = []
        pending = self._ws.ledger.summarize(binder_id).total_changes
        if pending:
            warnings.append(f"{pending} pending change(s) kept on top of the new snapshot")
        self._mark_stale(Mutation.PULL, binder_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": binder_id,
                "revision": stored.revision,
                "cards": len(stored.placements),
                "pulled_at": stored.pulled_at,
            },
            warnings=warnings,
        )

    @traced
    async def sync_to_remote(self, binder_id: str) -> ServiceResult:
        """Commit the ledger to the remote store as one batch."""
        op = "sync_to_remote"
        if binder_id in self._ws.syncs_in_flight:
            return failure(
                op,
                code="SYNC_IN_PROGRESS",
                message=f"A sync for binder {binder_id} is already running",
                binder_id=binder_id,
            )
        self._ws.syncs_in_flight.add(binder_id)
        try:
            with binder_log_context(binder_id, op=op):
                return await self._sync(op, binder_id)
        finally:
            self._ws.syncs_in_flight.discard(binder_id)

    async def _sync(self, op: str, binder_id: str) -> ServiceResult:
        snapshot = self._ws.snapshots.get(binder_id)
        if snapshot is None:
            return failure(
                op,
                code="NO_SNAPSHOT",
                message=f"Binder {binder_id} has not been pulled into this workspace",
                binder_id=binder_id,
            )

        changes = self._ws.ledger.list(binder_id)
        preferences = self._ws.ledger.get_preferences(binder_id)
        if not changes and not preferences:
            return ServiceResult(
                ok=True,
                op=op,
                data={"binder_id": binder_id, "applied": 0, "revision": snapshot.revision},
            )

        timeout = self._ws.settings.sync.timeout_seconds
        through_seq = max((c.seq for c in changes), default=0)
        with (
            trace_span("remote_write") as span,
            self._ws.ledger.shipping(binder_id, through_seq),
        ):
            if span is not None:
                span.annotate("changes", len(changes))
            try:
                written = await asyncio.wait_for(
                    self._ws.remote.write_binder_batch(binder_id, changes, preferences or None),
                    timeout,
                )
            except TimeoutError:
                logger.warning("Sync of %s timed out after %ss", binder_id, timeout)
                return failure(op, SyncError(f"remote write timed out after {timeout}s"))
            except RemoteRejected as exc:
                logger.warning("Sync of %s rejected: %s", binder_id, exc)
                return failure(op, SyncError(str(exc)))
            except (OSError, SQLAlchemyError) as exc:
                logger.warning("Sync of %s failed: %s", binder_id, exc, exc_info=True)
                return failure(op, SyncError(str(exc)))

        stored = self._ws.snapshots.replace(written)
        self._ws.ledger.acknowledge(binder_id, through_seq, preferences)

        warnings: list[str] = []
        self._dispatch_event(
            "post_sync",
            {"binder_id": binder_id, "revision": stored.revision, "changes_applied": len(changes)},
            warnings,
        )
        self._mark_stale(Mutation.SYNC, binder_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": binder_id,
                "applied": len(changes),
                "preferences": sorted(preferences),
                "revision": stored.revision,
                "cards": len(stored.placements),
            },
            warnings=warnings,
        )

    @traced
    def revert_to_remote(self, binder_id: str) -> ServiceResult:
        """Discard pending changes and preference overrides."""
        op = "revert_to_remote"
        if binder_id in self._ws.syncs_in_flight:
            return failure(
                op,
                code="SYNC_IN_PROGRESS",
                message=f"A sync for binder {binder_id} is already running",
                binder_id=binder_id,
            )
        snapshot = self._ws.snapshots.get(binder_id)
        if snapshot is None:
            return failure(op, RevertError(f"no snapshot of binder {binder_id} to revert to"))
        try:
            discarded = self._ws.ledger.clear(binder_id)
        except SQLAlchemyError as exc:
            return failure(op, RevertError(str(exc)))

        warnings: list[str] = []
        self._dispatch_event(
            "post_revert", {"binder_id": binder_id, "changes_discarded": discarded}, warnings
        )
        self._mark_stale(Mutation.REVERT, binder_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": binder_id,
                "discarded": discarded,
                "revision": snapshot.revision,
                "cards": len(snapshot.placements),
            },
            warnings=warnings,
        )
