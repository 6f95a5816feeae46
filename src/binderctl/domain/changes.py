"""Pending changes and their coalescing rules.

A pending change is an uncommitted local edit. Changes are keyed by
``(binder_id, card_id, kind)`` and ordered by a monotonically increasing
``seq`` assigned by the ledger store.

Coalescing keeps only the net effect per card:

- Remove after an uncommitted Add cancels both.
- Move after an uncommitted Move replaces the destination.
- Update after an uncommitted Update merges fields (last writer wins).
- Move/Update of a card that only exists as an uncommitted Add rewrite the Add.

:func:`coalesce` is pure: it decides what the store must drop, rewrite, or
append, and the store carries that out inside one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from binderctl.domain.grid import SlotAddress
from binderctl.domain.placements import CardPlacement, Origin


class ChangeKind(StrEnum):
    """Kinds of local mutation."""

    ADD = "add"
    REMOVE = "remove"
    MOVE = "move"
    UPDATE = "update"


class _ChangeBase(BaseModel):
    model_config = {"frozen": True}

    binder_id: str
    card_id: str
    seq: int = 0
    created: str | None = None


class AddChange(_ChangeBase):
    """A card placed locally that the remote store has never seen."""

    kind: Literal["add"] = "add"
    placement: CardPlacement
    requested_slot: SlotAddress | None = None


class RemoveChange(_ChangeBase):
    """Removal of a remote card; *slot* is the address it frees."""

    kind: Literal["remove"] = "remove"
    slot: SlotAddress | None = None


class MoveChange(_ChangeBase):
    """Net displacement of a remote card."""

    kind: Literal["move"] = "move"
    from_slot: SlotAddress
    to_slot: SlotAddress


class UpdateChange(_ChangeBase):
    """Field-level edits to a card's ``card_data``."""

    kind: Literal["update"] = "update"
    fields: dict[str, Any] = Field(default_factory=dict)


PendingChange = Annotated[
    AddChange | RemoveChange | MoveChange | UpdateChange,
    Field(discriminator="kind"),
]


class ChangeSummary(BaseModel):
    """Counts of pending changes per kind."""

    model_config = {"frozen": True}

    added_count: int = 0
    removed_count: int = 0
    updated_count: int = 0
    moved_count: int = 0

    @property
    def total_changes(self) -> int:
        return self.added_count + self.removed_count + self.updated_count + self.moved_count


def summarize(changes: list[Any]) -> ChangeSummary:
    """Count *changes* by kind."""
    counts = {kind: 0 for kind in ChangeKind}
    for change in changes:
        counts[change.kind] += 1
    return ChangeSummary(
        added_count=counts[ChangeKind.ADD],
        removed_count=counts[ChangeKind.REMOVE],
        updated_count=counts[ChangeKind.UPDATE],
        moved_count=counts[ChangeKind.MOVE],
    )


# ── Coalescing ───────────────────────────────────────────────────────


class CoalesceStatus(StrEnum):
    """What happened to an incoming change."""

    RECORDED = "recorded"
    MERGED = "merged"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class CoalesceOutcome:
    """Instructions for the ledger store.

    Attributes:
        status: Net effect on the ledger.
        drop: ``seq`` values of existing entries to delete.
        replace: An existing entry rewritten in place (keeps its ``seq``).
        append: A new entry to store with a fresh ``seq``.
    """

    status: CoalesceStatus
    drop: tuple[int, ...] = ()
    replace: Any | None = None
    append: Any | None = None


def coalesce(existing: list[Any], incoming: Any) -> CoalesceOutcome:
    """Fold *incoming* into the *existing* entries for the same binder and card.

    Raises:
        ValueError: *existing* belongs to another card, or the incoming change
            targets a card that is already pending removal.
    """
    for entry in existing:
        if entry.card_id != incoming.card_id or entry.binder_id != incoming.binder_id:
            msg = "coalesce() expects entries for a single binder and card"
            raise ValueError(msg)

    by_kind = {entry.kind: entry for entry in existing}
    pending_add = by_kind.get(ChangeKind.ADD)
    pending_remove = by_kind.get(ChangeKind.REMOVE)

    if incoming.kind == ChangeKind.ADD:
        if pending_add is not None:
            return CoalesceOutcome(
                status=CoalesceStatus.MERGED,
                replace=pending_add.model_copy(
                    update={
                        "placement": incoming.placement,
                        "requested_slot": incoming.requested_slot,
                    }
                ),
            )
        return CoalesceOutcome(status=CoalesceStatus.RECORDED, append=incoming)

    if incoming.kind == ChangeKind.REMOVE:
        if pending_add is not None:
            # The add never reached the remote; drop it with its edits.
            return CoalesceOutcome(
                status=CoalesceStatus.CANCELLED,
                drop=tuple(e.seq for e in existing if e.kind != ChangeKind.REMOVE),
            )
        if pending_remove is not None:
            return CoalesceOutcome(status=CoalesceStatus.MERGED)
        moot = tuple(e.seq for e in existing if e.kind in (ChangeKind.MOVE, ChangeKind.UPDATE))
        moves = [e for e in existing if e.kind == ChangeKind.MOVE]
        slot = moves[0].from_slot if moves else incoming.slot
        return CoalesceOutcome(
            status=CoalesceStatus.RECORDED,
            drop=moot,
            append=incoming.model_copy(update={"slot": slot}),
        )

    if pending_remove is not None and pending_add is None:
        msg = f"Card {incoming.card_id} is pending removal"
        raise ValueError(msg)

    if incoming.kind == ChangeKind.MOVE:
        if pending_add is not None:
            moved = pending_add.placement.at(incoming.to_slot)
            return CoalesceOutcome(
                status=CoalesceStatus.MERGED,
                replace=pending_add.model_copy(update={"placement": moved}),
            )
        pending_move = by_kind.get(ChangeKind.MOVE)
        if pending_move is not None:
            if incoming.to_slot == pending_move.from_slot:
                return CoalesceOutcome(status=CoalesceStatus.CANCELLED, drop=(pending_move.seq,))
            return CoalesceOutcome(
                status=CoalesceStatus.MERGED,
                replace=pending_move.model_copy(update={"to_slot": incoming.to_slot}),
            )
        if incoming.from_slot == incoming.to_slot:
            return CoalesceOutcome(status=CoalesceStatus.CANCELLED)
        return CoalesceOutcome(status=CoalesceStatus.RECORDED, append=incoming)

    # UPDATE
    if pending_add is not None:
        placement = pending_add.placement
        merged = {**placement.card_data, **incoming.fields}
        return CoalesceOutcome(
            status=CoalesceStatus.MERGED,
            replace=pending_add.model_copy(
                update={"placement": placement.model_copy(update={"card_data": merged})}
            ),
        )
    pending_update = by_kind.get(ChangeKind.UPDATE)
    if pending_update is not None:
        return CoalesceOutcome(
            status=CoalesceStatus.MERGED,
            replace=pending_update.model_copy(
                update={"fields": {**pending_update.fields, **incoming.fields}}
            ),
        )
    return CoalesceOutcome(status=CoalesceStatus.RECORDED, append=incoming)


# ── Folding changes over a snapshot ──────────────────────────────────


def apply_changes(base: list[CardPlacement], changes: list[Any]) -> list[CardPlacement]:
    """Replay *changes* (in ``seq`` order) over *base* placements.

    Returns the effective placements in slot order. Changes that reference
    unknown cards are skipped; the ledger never produces them, but a stale
    snapshot might.
    """
    state: dict[str, CardPlacement] = {p.card_id: p for p in base}
    for change in sorted(changes, key=lambda c: c.seq):
        current = state.get(change.card_id)
        if change.kind == ChangeKind.ADD:
            state[change.card_id] = change.placement.model_copy(update={"origin": Origin.LOCAL})
        elif current is None:
            continue
        elif change.kind == ChangeKind.REMOVE:
            del state[change.card_id]
        elif change.kind == ChangeKind.MOVE:
            state[change.card_id] = current.at(change.to_slot)
        else:
            state[change.card_id] = current.model_copy(
                update={"card_data": {**current.card_data, **change.fields}}
            )
    return sorted(state.values(), key=lambda p: p.address.key())


def find_collision(
    placements: list[CardPlacement],
) -> tuple[SlotAddress, str, str] | None:
    """First slot held by two placements, as ``(address, first_id, second_id)``."""
    seen: dict[tuple[int, int], str] = {}
    for placement in placements:
        key = placement.address.key()
        if key in seen:
            return placement.address, seen[key], placement.card_id
        seen[key] = placement.card_id
    return None
