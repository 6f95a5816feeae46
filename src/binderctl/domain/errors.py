"""Domain error kinds.

Every error carries a stable ``code`` and a ``detail`` mapping so the
service layer can turn it into a structured :class:`ServiceError` without
knowing the concrete class. Local validation errors are recoverable: the
caller is expected to offer remediation (add pages, switch grid, wait).
"""

from __future__ import annotations

from typing import Any


class BinderError(Exception):
    """Base class for all recoverable binder-core errors."""

    code: str = "BINDER_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail


class InvalidGridToken(BinderError):
    """Grid token is not ``<int>x<int>`` or a dimension is below 1."""

    code = "INVALID_GRID_TOKEN"

    def __init__(self, token: object) -> None:
        super().__init__(
            f"Invalid grid size {token!r}: expected '<columns>x<rows>' with both >= 1",
            token=str(token),
        )
        self.token = token


class InsufficientCapacity(BinderError):
    """Not enough free slots to satisfy an allocation request."""

    code = "INSUFFICIENT_CAPACITY"

    def __init__(self, requested: int, found: int) -> None:
        shortfall = requested - found
        super().__init__(
            f"Not enough free slots: requested {requested}, found {found} "
            f"({shortfall} more needed)",
            requested=requested,
            found=found,
            shortfall=shortfall,
        )
        self.requested = requested
        self.found = found
        self.shortfall = shortfall


class SlotCollision(BinderError):
    """Two placements would share one slot address."""

    code = "SLOT_COLLISION"

    def __init__(self, page_number: int, slot_in_page: int, occupant: str) -> None:
        super().__init__(
            f"Slot {page_number}:{slot_in_page} is already occupied by {occupant}",
            page_number=page_number,
            slot_in_page=slot_in_page,
            occupant=occupant,
        )
        self.occupant = occupant


class SyncError(BinderError):
    """Remote write failed or timed out; the ledger is left intact."""

    code = "SYNC_ERROR"

    def __init__(self, cause: str) -> None:
        super().__init__(f"Sync failed: {cause}", cause=cause)
        self.cause = cause


class RevertError(BinderError):
    """Local changes could not be discarded."""

    code = "REVERT_ERROR"

    def __init__(self, cause: str) -> None:
        super().__init__(f"Revert failed: {cause}", cause=cause)
        self.cause = cause


class RateLimited(BinderError):
    """A rolling save window has reached its quota."""

    code = "RATE_LIMITED"

    def __init__(self, window: str, quota: int) -> None:
        super().__init__(
            f"Rate limit exceeded: {quota} saves per {window}",
            window=window,
            quota=quota,
        )
        self.window = window
        self.quota = quota


class Cooling(BinderError):
    """The post-save cooldown has not elapsed yet."""

    code = "COOLING"

    def __init__(self, remaining_seconds: int) -> None:
        super().__init__(
            f"Please wait {remaining_seconds} seconds before saving again",
            remaining_seconds=remaining_seconds,
        )
        self.remaining_seconds = remaining_seconds


class RemoteRejected(Exception):
    """Raised by a remote store when it refuses a batch.

    Reconciler code converts this into :class:`SyncError`.
    """
