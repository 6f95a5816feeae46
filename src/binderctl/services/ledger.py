"""LedgerService: local binder edits recorded as pending changes.

Every edit is validated against the effective occupancy (snapshot plus
pending changes) and then folded into the ledger. Nothing here talks to the
remote store; :mod:`binderctl.services.sync` does that.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from binderctl.domain.allocation import (
    count_available_slots,
    find_available_slots,
    fits_in_binder,
    remediation,
)
from binderctl.domain.changes import (
    AddChange,
    CoalesceStatus,
    MoveChange,
    RemoveChange,
    UpdateChange,
    find_collision,
    summarize,
)
from binderctl.domain.errors import BinderError, InsufficientCapacity, SlotCollision
from binderctl.domain.grid import SlotAddress, parse_grid_size
from binderctl.domain.ids import new_card_id
from binderctl.domain.placements import BinderPreferences, CardPlacement
from binderctl.services._helpers import failure, now_iso
from binderctl.services.base import BaseService, EffectiveBinder
from binderctl.services.invalidation import Mutation
from binderctl.services.result import ServiceResult
from binderctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

# Keys a caller may not overwrite through ``update_card``.
_RESERVED_FIELDS = frozenset({"is_reverse_holo"})


def _placement_dict(placement: CardPlacement) -> dict[str, Any]:
    return {
        "card_id": placement.card_id,
        "name": placement.name,
        "rarity": placement.rarity,
        "page": placement.address.page_number,
        "slot": placement.address.slot_in_page,
        "origin": str(placement.origin),
        "card_api_id": placement.card_api_id,
    }


class LedgerService(BaseService):
    """Card and preference edits for one workspace."""

    # ------------------------------------------------------------------
    # Ledger surface
    # ------------------------------------------------------------------

    @traced
    def record(self, change: Any) -> ServiceResult:
        """Fold one pending change into the ledger."""
        op = "record"
        warnings: list[str] = []
        try:
            status = self._ws.ledger.record(change)
        except ValueError as exc:
            return failure(op, code="INVALID_MOVE", message=str(exc), card_id=change.card_id)

        self._after_record(change, status, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": change.binder_id,
                "card_id": change.card_id,
                "kind": str(change.kind),
                "status": str(status),
            },
            warnings=warnings,
        )

    @traced
    def list_changes(self, binder_id: str) -> ServiceResult:
        changes = self._ws.ledger.list(binder_id)
        return ServiceResult(
            ok=True,
            op="list_changes",
            data={
                "binder_id": binder_id,
                "count": len(changes),
                "changes": [c.model_dump(mode="json") for c in changes],
            },
        )

    @traced
    def summarize(self, binder_id: str) -> ServiceResult:
        summary = self._ws.ledger.summarize(binder_id)
        overrides = self._ws.ledger.get_preferences(binder_id)
        return ServiceResult(
            ok=True,
            op="summarize",
            data={
                "binder_id": binder_id,
                **summary.model_dump(),
                "total_changes": summary.total_changes,
                "preference_changes": sorted(overrides),
            },
        )

    @traced
    def clear(self, binder_id: str) -> ServiceResult:
        """Discard pending changes without touching the snapshot."""
        warnings: list[str] = []
        cleared = self._ws.ledger.clear(binder_id)
        self._mark_stale(Mutation.RECORD, binder_id, warnings)
        return ServiceResult(
            ok=True,
            op="clear",
            data={"binder_id": binder_id, "cleared": cleared},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Card edits
    # ------------------------------------------------------------------

    @traced
    def add_cards(
        self,
        binder_id: str,
        cards: Sequence[Mapping[str, Any]],
        *,
        start_hint: SlotAddress | int | None = None,
    ) -> ServiceResult:
        """Place *cards* into the next free slots and record an add for each.

        Each card mapping carries catalog fields; ``card_api_id`` is used for
        the generated card ID. On a shortfall nothing is recorded and the
        error detail carries the remediation options.
        """
        op = "add_cards"
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)

        with trace_span("allocate") as span:
            if span is not None:
                span.annotate("requested", len(cards))
            try:
                slots = find_available_slots(
                    state.occupied,
                    len(cards),
                    grid=state.grid,
                    page_count=state.page_count,
                    start_hint=start_hint,
                )
            except InsufficientCapacity as exc:
                fix = remediation(
                    exc.shortfall,
                    grid=state.grid,
                    page_count=state.page_count,
                    max_pages=self._ws.settings.max_pages,
                )
                return failure(op, exc, remediation=fix.model_dump())
            except ValueError as exc:
                return failure(op, code="INVALID_MOVE", message=str(exc))

        warnings: list[str] = []
        added: list[dict[str, Any]] = []
        created = now_iso()
        for card, slot in zip(cards, slots, strict=True):
            card_data = {k: v for k, v in card.items() if k != "card_api_id"}
            card_api_id = card.get("card_api_id")
            placement = CardPlacement(
                card_id=new_card_id(card_api_id),
                address=slot,
                card_api_id=card_api_id,
                card_data=card_data,
            )
            change = AddChange(
                binder_id=binder_id,
                card_id=placement.card_id,
                placement=placement,
                requested_slot=slot,
                created=created,
            )
            status = self._ws.ledger.record(change)
            self._after_record(change, status, warnings)
            added.append(_placement_dict(placement))

        logger.debug("Added %d cards to %s", len(added), binder_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={"binder_id": binder_id, "added": added, "count": len(added)},
            warnings=warnings,
        )

    @traced
    def remove_card(self, binder_id: str, card_id: str) -> ServiceResult:
        op = "remove_card"
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)
        placement = state.find(card_id)
        if placement is None:
            return _not_found(op, binder_id, card_id)

        change = RemoveChange(
            binder_id=binder_id, card_id=card_id, slot=placement.address, created=now_iso()
        )
        warnings: list[str] = []
        status = self._ws.ledger.record(change)
        self._after_record(change, status, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={**_placement_dict(placement), "status": str(status)},
            warnings=warnings,
        )

    @traced
    def move_card(self, binder_id: str, card_id: str, to_slot: SlotAddress) -> ServiceResult:
        """Move a card into a free slot. Occupied targets need :meth:`swap_cards`."""
        op = "move_card"
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)
        placement = state.find(card_id)
        if placement is None:
            return _not_found(op, binder_id, card_id)
        if not fits_in_binder(to_slot, grid=state.grid, page_count=state.page_count):
            return failure(
                op,
                code="INVALID_MOVE",
                message=f"Slot {to_slot} is outside the binder",
                page_number=to_slot.page_number,
                slot_in_page=to_slot.slot_in_page,
            )
        occupant = state.occupant(to_slot)
        if occupant is not None and occupant.card_id != card_id:
            return failure(
                op, SlotCollision(to_slot.page_number, to_slot.slot_in_page, occupant.card_id)
            )

        change = MoveChange(
            binder_id=binder_id,
            card_id=card_id,
            from_slot=placement.address,
            to_slot=to_slot,
            created=now_iso(),
        )
        return self._record_edit(op, change, placement)

    @traced
    def swap_cards(self, binder_id: str, first_id: str, second_id: str) -> ServiceResult:
        """Exchange the slots of two cards by recording two moves."""
        op = "swap_cards"
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)
        first, second = state.find(first_id), state.find(second_id)
        for card_id, placement in ((first_id, first), (second_id, second)):
            if placement is None:
                return _not_found(op, binder_id, card_id)
        assert first is not None and second is not None
        if first_id == second_id:
            return failure(op, code="INVALID_MOVE", message="Cannot swap a card with itself")

        warnings: list[str] = []
        created = now_iso()
        for placement, target in ((first, second.address), (second, first.address)):
            change = MoveChange(
                binder_id=binder_id,
                card_id=placement.card_id,
                from_slot=placement.address,
                to_slot=target,
                created=created,
            )
            status = self._ws.ledger.record(change)
            self._after_record(change, status, warnings)

        after = self._effective(binder_id, fresh=True)
        assert after is not None
        collision = find_collision(after.placements)
        if collision is not None:
            warnings.append(f"Slot {collision[0]} is claimed twice after swap")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": binder_id,
                "swapped": [
                    {"card_id": first_id, "to": str(second.address)},
                    {"card_id": second_id, "to": str(first.address)},
                ],
            },
            warnings=warnings,
        )

    @traced
    def update_card(
        self,
        binder_id: str,
        card_id: str,
        fields: Mapping[str, Any],
    ) -> ServiceResult:
        """Merge *fields* into a card's catalog data."""
        op = "update_card"
        reserved = sorted(_RESERVED_FIELDS & set(fields))
        if reserved:
            return failure(
                op,
                code="INVALID_MOVE",
                message=f"Fields cannot be set directly: {', '.join(reserved)}",
                fields=reserved,
            )
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)
        placement = state.find(card_id)
        if placement is None:
            return _not_found(op, binder_id, card_id)

        change = UpdateChange(
            binder_id=binder_id, card_id=card_id, fields=dict(fields), created=now_iso()
        )
        return self._record_edit(op, change, placement)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @traced
    def set_preferences(
        self,
        binder_id: str,
        *,
        name: str | None = None,
        grid_size: str | None = None,
        page_count: int | None = None,
        show_reverse_holos: bool | None = None,
    ) -> ServiceResult:
        """Stage binder preference changes for the next sync.

        Shrinking the grid or the page count is refused while it would leave
        any card outside the binder.
        """
        op = "set_preferences"
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)

        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = name
        if grid_size is not None:
            try:
                fields["grid_size"] = parse_grid_size(grid_size).token
            except BinderError as exc:
                return failure(op, exc)
        if page_count is not None:
            max_pages = self._ws.settings.max_pages
            if page_count < 1 or page_count > max_pages:
                return failure(
                    op,
                    code="PAGE_LIMIT",
                    message=f"Page count must be between 1 and {max_pages}",
                    page_count=page_count,
                    max_pages=max_pages,
                )
            fields["page_count"] = page_count
        if show_reverse_holos is not None:
            fields["show_reverse_holos"] = show_reverse_holos
        if not fields:
            return failure(op, code="INVALID_MOVE", message="No preference changes given")

        proposed = BinderPreferences.model_validate({**state.preferences.model_dump(), **fields})
        outside = [
            p.card_id
            for p in state.placements
            if not fits_in_binder(p.address, grid=proposed.grid, page_count=proposed.page_count)
        ]
        if outside:
            return failure(
                op,
                code="GRID_TOO_SMALL",
                message=f"{len(outside)} card(s) would fall outside the binder",
                cards=outside,
                grid_size=proposed.grid_size,
                page_count=proposed.page_count,
            )

        warnings: list[str] = []
        overrides = self._ws.ledger.set_preferences(binder_id, fields)
        self._mark_stale(Mutation.PREFERENCES, binder_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": binder_id,
                "preferences": proposed.model_dump(),
                "pending": overrides,
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def effective_state(self, binder_id: str) -> ServiceResult:
        """Snapshot placements with pending changes applied."""
        op = "effective_state"
        state = self._effective(binder_id)
        if state is None:
            return _no_snapshot(op, binder_id)
        return ServiceResult(
            ok=True,
            op=op,
            data=_state_dict(state),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record_edit(self, op: str, change: Any, placement: CardPlacement) -> ServiceResult:
        warnings: list[str] = []
        try:
            status = self._ws.ledger.record(change)
        except ValueError as exc:
            return failure(op, code="INVALID_MOVE", message=str(exc), card_id=change.card_id)
        self._after_record(change, status, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={**_placement_dict(placement), "status": str(status)},
            warnings=warnings,
        )

    def _after_record(self, change: Any, status: CoalesceStatus, warnings: list[str]) -> None:
        self._dispatch_event(
            "post_record",
            {
                "binder_id": change.binder_id,
                "card_id": change.card_id,
                "kind": str(change.kind),
                "status": str(status),
            },
            warnings,
        )
        self._mark_stale(Mutation.RECORD, change.binder_id, warnings)


def _state_dict(state: EffectiveBinder) -> dict[str, Any]:
    summary = summarize(state.changes)
    return {
        "binder_id": state.binder_id,
        "owner_id": state.snapshot.owner_id,
        "revision": state.snapshot.revision,
        "preferences": state.preferences.model_dump(),
        "capacity": state.capacity,
        "free_slots": count_available_slots(
            state.occupied, grid=state.grid, page_count=state.page_count
        ),
        "cards": [_placement_dict(p) for p in state.placements],
        "pending": {**summary.model_dump(), "total_changes": summary.total_changes},
    }


def _no_snapshot(op: str, binder_id: str) -> ServiceResult:
    return failure(
        op,
        code="NO_SNAPSHOT",
        message=f"Binder {binder_id} has not been pulled into this workspace",
        binder_id=binder_id,
    )


def _not_found(op: str, binder_id: str, card_id: str) -> ServiceResult:
    return failure(
        op,
        code="NOT_FOUND",
        message=f"No card {card_id} in binder {binder_id}",
        binder_id=binder_id,
        card_id=card_id,
    )
