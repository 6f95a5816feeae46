"""Card placements, binder preferences, and the remote snapshot.

A placement is a card sitting in one slot. Its :class:`Origin` tells whether
the remote store already knows about it or it exists only in the local
ledger. INVARIANT: no two placements share a slot address.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from binderctl.domain.grid import GridSize, SlotAddress, parse_grid_size, to_overall_slot


class Origin(StrEnum):
    """Where a placement's current state comes from."""

    LOCAL = "local"
    REMOTE = "remote"


class CardPlacement(BaseModel):
    """A card in a binder slot.

    Attributes:
        card_id: Binder-scoped identifier of this placement.
        address: Slot the card occupies.
        origin: ``remote`` once the store has acknowledged the card.
        is_derived_variant: True for synthesized reverse-holo copies.
        source_card_id: For derived variants, the non-derived source card.
        card_api_id: Catalog identifier (e.g. ``"sv10-13"``).
        card_data: Catalog fields such as ``name``, ``rarity``, ``images``.
        layout_origin: Address held before the reverse-holo layout re-flowed
            the card; None when the card has not been re-flowed.
    """

    model_config = {"frozen": True}

    card_id: str
    address: SlotAddress
    origin: Origin = Origin.LOCAL
    is_derived_variant: bool = False
    source_card_id: str | None = None
    card_api_id: str | None = None
    card_data: dict[str, Any] = Field(default_factory=dict)
    layout_origin: SlotAddress | None = None

    @property
    def name(self) -> str:
        return str(self.card_data.get("name", self.card_id))

    @property
    def rarity(self) -> str | None:
        value = self.card_data.get("rarity")
        return None if value is None else str(value)

    def overall_slot(self, grid: GridSize) -> int:
        return to_overall_slot(self.address, grid)

    def at(self, address: SlotAddress) -> CardPlacement:
        """Copy of this placement moved to *address*."""
        return self.model_copy(update={"address": address})


class BinderPreferences(BaseModel):
    """Binder-level settings synced alongside the cards."""

    model_config = {"frozen": True}

    name: str = "My Binder"
    grid_size: str = "3x3"
    page_count: int = Field(default=1, ge=1)
    show_reverse_holos: bool = False

    @property
    def grid(self) -> GridSize:
        return parse_grid_size(self.grid_size)


class BinderSnapshot(BaseModel):
    """Last-known-good remote state of one binder.

    Replaced wholesale on every successful pull or sync; never partially
    mutated.
    """

    model_config = {"frozen": True}

    binder_id: str
    owner_id: str
    preferences: BinderPreferences = Field(default_factory=BinderPreferences)
    placements: list[CardPlacement] = Field(default_factory=list)
    revision: int = 0
    pulled_at: str | None = None

    @property
    def grid(self) -> GridSize:
        return self.preferences.grid

    @property
    def page_count(self) -> int:
        return self.preferences.page_count


def sort_by_slot(placements: list[CardPlacement]) -> list[CardPlacement]:
    """Placements ordered by overall slot number (stable)."""
    return sorted(placements, key=lambda p: p.address.key())
