"""BaseService: shared foundation for all binderctl services.

Every service receives a :class:`Workspace` at construction time and reads
the effective binder state through it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from binderctl.domain.allocation import occupied_addresses
from binderctl.domain.changes import apply_changes
from binderctl.domain.grid import GridSize, SlotAddress, pages_to_overall_slot_count
from binderctl.domain.placements import BinderPreferences, BinderSnapshot, CardPlacement
from binderctl.services.invalidation import Mutation, binder_key, stale_keys

if TYPE_CHECKING:
    from binderctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveBinder:
    """Snapshot plus pending changes and preference overrides, folded."""

    snapshot: BinderSnapshot
    preferences: BinderPreferences
    changes: list[Any]
    placements: list[CardPlacement]

    @property
    def binder_id(self) -> str:
        return self.snapshot.binder_id

    @property
    def grid(self) -> GridSize:
        return self.preferences.grid

    @property
    def page_count(self) -> int:
        return self.preferences.page_count

    @property
    def capacity(self) -> int:
        return pages_to_overall_slot_count(self.page_count, self.grid)

    @property
    def occupied(self) -> set[SlotAddress]:
        return occupied_addresses(self.placements)

    def find(self, card_id: str) -> CardPlacement | None:
        return next((p for p in self.placements if p.card_id == card_id), None)

    def occupant(self, address: SlotAddress) -> CardPlacement | None:
        return next((p for p in self.placements if p.address == address), None)


class BaseService:
    """Base for service-layer classes."""

    def __init__(self, workspace: Workspace) -> None:
        self._ws = workspace

    def _effective(self, binder_id: str, *, fresh: bool = False) -> EffectiveBinder | None:
        """Effective state of *binder_id*, or None when it was never pulled.

        Reads go through the workspace query cache unless *fresh* is set.
        """
        cache = self._ws.query_cache
        if fresh or cache is None:
            return self._load_effective(binder_id)
        key = binder_key(self._ws.owner_id, binder_id)
        return cache.fetch(key, lambda: self._load_effective(binder_id))

    def _load_effective(self, binder_id: str) -> EffectiveBinder | None:
        snapshot = self._ws.snapshots.get(binder_id)
        if snapshot is None:
            return None
        changes = self._ws.ledger.list(binder_id)
        overrides = self._ws.ledger.get_preferences(binder_id)
        preferences = snapshot.preferences
        if overrides:
            preferences = preferences.model_copy(update=overrides)
        return EffectiveBinder(
            snapshot=snapshot,
            preferences=preferences,
            changes=changes,
            placements=apply_changes(snapshot.placements, changes),
        )

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event. No-op if the event bus is not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._ws.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")

    def _mark_stale(self, mutation: Mutation, binder_id: str, warnings: list[str]) -> None:
        keys = stale_keys(mutation, self._ws.owner_id, binder_id)
        self._dispatch_event("mark_stale", {"query_keys": keys}, warnings)
