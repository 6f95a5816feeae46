"""Card ID generation.

Locally added cards get an ID before the remote store has seen them:
``{card_api_id}_{10 hex chars}``. Reverse-holo variants derive their ID
from the source card so they are stable across layout passes.

INVARIANT: IDs are permanent. A synced card keeps its local ID.
"""

from __future__ import annotations

import re
import uuid

REVERSE_SUFFIX = "_reverse"

_API_ID_CLEAN = re.compile(r"[^A-Za-z0-9.\-]+")


def new_card_id(card_api_id: str | None) -> str:
    """Generate a fresh binder-scoped card ID."""
    base = _API_ID_CLEAN.sub("-", card_api_id or "card").strip("-") or "card"
    return f"{base}_{uuid.uuid4().hex[:10]}"


def variant_card_id(source_card_id: str) -> str:
    """ID of the reverse-holo variant derived from *source_card_id*."""
    return f"{source_card_id}{REVERSE_SUFFIX}"


def new_binder_id() -> str:
    """Generate a fresh binder ID."""
    return f"binder_{uuid.uuid4().hex[:12]}"
