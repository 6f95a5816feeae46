"""Grid geometry and the slot indexer.

A binder page is a ``columns x rows`` grid. Slots are numbered 1-based
within a page (``slot_in_page``) and across the binder (``overall_slot``).

Book-style pagination: binder page 1 is a single right-hand page sitting
next to the cover; every binder page >= 2 is a two-sided spread holding two
physical pages. Physical pages are numbered continuously, so overall slot
numbers follow ``(page_number, slot_in_page)`` order with no gaps.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, Field

from binderctl.domain.errors import InvalidGridToken

_TOKEN_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")

GRID_PRESETS: tuple[str, ...] = ("1x1", "2x2", "3x3", "4x3", "4x4")


class SpreadSide(StrEnum):
    """Which half of a spread a physical page sits on."""

    LEFT = "left"
    RIGHT = "right"


class GridSize(BaseModel):
    """Grid dimensions of one page."""

    model_config = {"frozen": True}

    columns: int = Field(ge=1)
    rows: int = Field(ge=1)

    @property
    def slots_per_page(self) -> int:
        return self.columns * self.rows

    @property
    def token(self) -> str:
        return f"{self.columns}x{self.rows}"

    def __str__(self) -> str:
        return self.token


class SlotAddress(BaseModel):
    """A ``(page_number, slot_in_page)`` position, both 1-based."""

    model_config = {"frozen": True}

    page_number: int = Field(ge=1)
    slot_in_page: int = Field(ge=1)

    def key(self) -> tuple[int, int]:
        return (self.page_number, self.slot_in_page)

    def __str__(self) -> str:
        return f"{self.page_number}:{self.slot_in_page}"


def parse_grid_size(token: str | GridSize) -> GridSize:
    """Parse a ``"<columns>x<rows>"`` token.

    Raises:
        InvalidGridToken: malformed token or a dimension below 1.
    """
    if isinstance(token, GridSize):
        return token
    if not isinstance(token, str):
        raise InvalidGridToken(token)
    match = _TOKEN_RE.match(token)
    if match is None:
        raise InvalidGridToken(token)
    columns, rows = int(match.group(1)), int(match.group(2))
    if columns < 1 or rows < 1:
        raise InvalidGridToken(token)
    return GridSize(columns=columns, rows=rows)


def grid_size_options() -> list[GridSize]:
    """Supported grid presets, smallest first."""
    return [parse_grid_size(t) for t in GRID_PRESETS]


def next_larger_grid(grid: GridSize) -> GridSize | None:
    """The smallest preset holding more slots per page than *grid*, if any."""
    for option in grid_size_options():
        if option.slots_per_page > grid.slots_per_page:
            return option
    return None


# ── Slot indexer ─────────────────────────────────────────────────────


def to_slot_address(overall_slot: int, grid: GridSize) -> SlotAddress:
    """Convert a 1-based overall slot number into a page/slot address."""
    if overall_slot < 1:
        msg = f"overall_slot must be >= 1, got {overall_slot}"
        raise ValueError(msg)
    spp = grid.slots_per_page
    page_number = (overall_slot - 1) // spp + 1
    slot_in_page = (overall_slot - 1) % spp + 1
    return SlotAddress(page_number=page_number, slot_in_page=slot_in_page)


def to_overall_slot(address: SlotAddress, grid: GridSize) -> int:
    """Inverse of :func:`to_slot_address`."""
    spp = grid.slots_per_page
    if address.slot_in_page > spp:
        msg = f"slot_in_page {address.slot_in_page} exceeds {spp} slots of grid {grid}"
        raise ValueError(msg)
    return (address.page_number - 1) * spp + address.slot_in_page


def max_physical_page(page_count: int) -> int:
    """Highest physical page number reachable in a binder of *page_count* pages.

    Binder page 1 is one physical page; each further binder page is a spread
    of two.
    """
    if page_count < 1:
        msg = f"page_count must be >= 1, got {page_count}"
        raise ValueError(msg)
    if page_count == 1:
        return 1
    return 1 + (page_count - 1) * 2


def pages_to_overall_slot_count(page_count: int, grid: GridSize) -> int:
    """Total slot capacity of a binder with *page_count* binder pages."""
    return max_physical_page(page_count) * grid.slots_per_page


def compute_slots(grid: GridSize | str, page_count: int) -> int:
    """Public entry point: total slot count for a grid token and page count."""
    return pages_to_overall_slot_count(page_count, parse_grid_size(grid))


def spread_pages(spread_index: int) -> tuple[int | None, int]:
    """Physical pages shown on spread *spread_index* as ``(left, right)``.

    Spread 1 is the cover (no slots) next to page 1.
    """
    if spread_index < 1:
        msg = f"spread_index must be >= 1, got {spread_index}"
        raise ValueError(msg)
    if spread_index == 1:
        return None, 1
    left = (spread_index - 1) * 2
    return left, left + 1


def spread_for_page(page_number: int) -> int:
    """Spread index that displays physical page *page_number*."""
    if page_number < 1:
        msg = f"page_number must be >= 1, got {page_number}"
        raise ValueError(msg)
    return page_number // 2 + 1


def starting_slot_for_page(spread_index: int, side: SpreadSide | str, grid: GridSize) -> int:
    """First overall slot on one side of a spread; 0 for the cover side."""
    left, right = spread_pages(spread_index)
    page = left if SpreadSide(side) is SpreadSide.LEFT else right
    if page is None:
        return 0
    return (page - 1) * grid.slots_per_page + 1
