"""LayoutService: grid arithmetic, slot search, and the rendered sequence."""

from __future__ import annotations

from typing import Any

from binderctl.domain.allocation import find_available_slots, remediation
from binderctl.domain.errors import BinderError, InsufficientCapacity
from binderctl.domain.grid import (
    SlotAddress,
    SpreadSide,
    grid_size_options,
    max_physical_page,
    next_larger_grid,
    pages_to_overall_slot_count,
    parse_grid_size,
    spread_for_page,
)
from binderctl.domain.reverse_holo import (
    apply_reverse_holo_layout,
    count_variants,
    rarity_predicate,
)
from binderctl.services._helpers import failure
from binderctl.services.base import BaseService
from binderctl.services.result import ServiceResult
from binderctl.services.telemetry import traced


@traced
def describe_grid(token: str) -> ServiceResult:
    op = "describe_grid"
    try:
        grid = parse_grid_size(token)
    except BinderError as exc:
        return failure(op, exc)
    larger = next_larger_grid(grid)
    return ServiceResult(
        ok=True,
        op=op,
        data={
            "grid": grid.token,
            "columns": grid.columns,
            "rows": grid.rows,
            "slots_per_page": grid.slots_per_page,
            "next_larger": larger.token if larger else None,
            "presets": [g.token for g in grid_size_options()],
        },
    )


@traced
def compute_slots(grid_size: str, page_count: int) -> ServiceResult:
    """Total slot capacity for a grid token and binder page count."""
    op = "compute_slots"
    try:
        grid = parse_grid_size(grid_size)
    except BinderError as exc:
        return failure(op, exc)
    if page_count < 1:
        return failure(
            op,
            code="PAGE_LIMIT",
            message="Page count must be at least 1",
            page_count=page_count,
        )
    return ServiceResult(
        ok=True,
        op=op,
        data={
            "grid": grid.token,
            "page_count": page_count,
            "slots_per_page": grid.slots_per_page,
            "max_physical_page": max_physical_page(page_count),
            "total_slots": pages_to_overall_slot_count(page_count, grid),
        },
    )


class LayoutService(BaseService):
    """Read-only layout queries over a workspace."""

    @traced
    def find_slots(
        self,
        binder_id: str,
        count: int,
        *,
        start_hint: SlotAddress | int | None = None,
    ) -> ServiceResult:
        """Preview the slots the next *count* added cards would take."""
        op = "find_slots"
        state = self._effective(binder_id)
        if state is None:
            return failure(
                op,
                code="NO_SNAPSHOT",
                message=f"Binder {binder_id} has not been pulled into this workspace",
                binder_id=binder_id,
            )
        try:
            slots = find_available_slots(
                state.occupied,
                count,
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
        return ServiceResult(
            ok=True,
            op=op,
            data={"binder_id": binder_id, "slots": [str(s) for s in slots]},
        )

    @traced
    def render(self, binder_id: str, *, reverse_holo: bool | None = None) -> ServiceResult:
        """The ordered display sequence of a binder.

        *reverse_holo* overrides the binder's ``show_reverse_holos``
        preference. Derived variants can push cards past the binder's
        capacity; those are reported as ``overflow``.
        """
        op = "render"
        state = self._effective(binder_id)
        if state is None:
            return failure(
                op,
                code="NO_SNAPSHOT",
                message=f"Binder {binder_id} has not been pulled into this workspace",
                binder_id=binder_id,
            )
        show = state.preferences.show_reverse_holos if reverse_holo is None else reverse_holo
        grid = state.grid
        entries = state.placements
        if show:
            predicate = rarity_predicate(self._ws.settings.layout.reverse_holo_rarities)
            entries = apply_reverse_holo_layout(entries, grid, is_eligible=predicate)

        capacity = state.capacity
        rows: list[dict[str, Any]] = []
        for entry in entries:
            overall = entry.overall_slot(grid)
            page = entry.address.page_number
            rows.append(
                {
                    "overall_slot": overall,
                    "page": page,
                    "slot": entry.address.slot_in_page,
                    "spread": spread_for_page(page),
                    "side": str(SpreadSide.RIGHT if page % 2 else SpreadSide.LEFT),
                    "card_id": entry.card_id,
                    "name": entry.name,
                    "rarity": entry.rarity,
                    "reverse_holo": entry.is_derived_variant,
                    "overflow": overall > capacity,
                }
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "binder_id": binder_id,
                "name": state.preferences.name,
                "grid": grid.token,
                "page_count": state.page_count,
                "capacity": capacity,
                "reverse_holo": show,
                "variants": count_variants(entries),
                "overflow": sum(1 for r in rows if r["overflow"]),
                "entries": rows,
            },
        )
