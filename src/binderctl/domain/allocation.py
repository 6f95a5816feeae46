"""Slot allocator: find free slots over effective occupancy.

Occupancy is the union of remote snapshot placements and the pending
ledger fold (see :func:`binderctl.domain.changes.apply_changes`). The scan
is linear and ascending, so identical occupancy always yields identical
results.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from pydantic import BaseModel

from binderctl.domain.errors import InsufficientCapacity
from binderctl.domain.grid import (
    GridSize,
    SlotAddress,
    next_larger_grid,
    pages_to_overall_slot_count,
    to_overall_slot,
    to_slot_address,
)
from binderctl.domain.placements import CardPlacement


def occupied_addresses(placements: Iterable[CardPlacement]) -> set[SlotAddress]:
    """Set of addresses held by *placements*."""
    return {p.address for p in placements}


def _start_overall(start_hint: SlotAddress | int | None, grid: GridSize) -> int:
    if start_hint is None:
        return 1
    if isinstance(start_hint, SlotAddress):
        return to_overall_slot(start_hint, grid)
    if start_hint < 1:
        msg = f"start_hint must be >= 1, got {start_hint}"
        raise ValueError(msg)
    return start_hint


def find_available_slots(
    occupied: set[SlotAddress],
    count: int,
    *,
    grid: GridSize,
    page_count: int,
    start_hint: SlotAddress | int | None = None,
) -> list[SlotAddress]:
    """Find the next *count* free slots, strictly ascending.

    Args:
        occupied: Addresses already taken (remote and local).
        count: Number of slots requested.
        grid: Active grid size.
        page_count: Binder pages (spreads) available.
        start_hint: Overall slot number or address to start scanning from.

    Raises:
        InsufficientCapacity: fewer than *count* free slots from the start
            point to the end of the binder; ``shortfall`` is the difference.
    """
    if count < 0:
        msg = f"count must be >= 0, got {count}"
        raise ValueError(msg)
    if count == 0:
        return []

    max_overall = pages_to_overall_slot_count(page_count, grid)
    found: list[SlotAddress] = []
    overall = _start_overall(start_hint, grid)
    while len(found) < count and overall <= max_overall:
        address = to_slot_address(overall, grid)
        if address not in occupied:
            found.append(address)
        overall += 1

    if len(found) < count:
        raise InsufficientCapacity(requested=count, found=len(found))
    return found


def count_available_slots(occupied: set[SlotAddress], *, grid: GridSize, page_count: int) -> int:
    """Free slots left in the binder, ignoring occupants beyond its capacity."""
    max_overall = pages_to_overall_slot_count(page_count, grid)
    inside = sum(
        1
        for a in occupied
        if a.slot_in_page <= grid.slots_per_page and to_overall_slot(a, grid) <= max_overall
    )
    return max(0, max_overall - inside)


def is_slot_available(address: SlotAddress, occupied: set[SlotAddress]) -> bool:
    return address not in occupied


def fits_in_binder(address: SlotAddress, *, grid: GridSize, page_count: int) -> bool:
    """Whether *address* exists in a binder of this grid and page count."""
    if address.slot_in_page > grid.slots_per_page:
        return False
    return to_overall_slot(address, grid) <= pages_to_overall_slot_count(page_count, grid)


class Remediation(BaseModel):
    """Options offered when an allocation comes up short."""

    model_config = {"frozen": True}

    shortfall: int
    pages_needed: int
    new_page_count: int
    can_add_pages: bool
    larger_grid: str | None = None


def remediation(
    shortfall: int,
    *,
    grid: GridSize,
    page_count: int,
    max_pages: int | None = None,
) -> Remediation:
    """Work out how many binder pages to add, or which grid to switch to.

    Every binder page added after the first contributes a full spread
    (two physical pages) of slots.
    """
    per_added_page = 2 * grid.slots_per_page
    pages_needed = math.ceil(shortfall / per_added_page) if shortfall > 0 else 0
    new_page_count = page_count + pages_needed
    larger = next_larger_grid(grid)
    return Remediation(
        shortfall=shortfall,
        pages_needed=pages_needed,
        new_page_count=new_page_count,
        can_add_pages=max_pages is None or new_page_count <= max_pages,
        larger_grid=larger.token if larger is not None else None,
    )
