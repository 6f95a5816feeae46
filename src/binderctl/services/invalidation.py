"""Cache invalidation: which read queries a mutation makes stale.

Query keys mirror the reads a client caches:

- ``["userBinders", owner]``: the owner's binder list
- ``["binderCards", binder]``: one binder's cards
- ``["binderPreferences", binder]``: one binder's preferences
- ``["binder", owner, binder]``: the binder document
- ``["userProfile", owner]``: aggregate totals for the owner
"""

from __future__ import annotations

from enum import StrEnum

QueryKey = list[str]


class Mutation(StrEnum):
    """Mutations that invalidate cached reads."""

    RECORD = "record"
    PREFERENCES = "preferences"
    PULL = "pull"
    SYNC = "sync"
    REVERT = "revert"


def user_binders_key(owner_id: str) -> QueryKey:
    return ["userBinders", owner_id]


def binder_cards_key(binder_id: str) -> QueryKey:
    return ["binderCards", binder_id]


def binder_preferences_key(binder_id: str) -> QueryKey:
    return ["binderPreferences", binder_id]


def binder_key(owner_id: str, binder_id: str) -> QueryKey:
    return ["binder", owner_id, binder_id]


def user_profile_key(owner_id: str) -> QueryKey:
    return ["userProfile", owner_id]


def stale_keys(mutation: Mutation, owner_id: str, binder_id: str) -> list[QueryKey]:
    """Query keys invalidated by *mutation* on one binder."""
    if mutation is Mutation.RECORD:
        # Preferences carry the binder's card total, so they go stale too.
        return [
            binder_cards_key(binder_id),
            binder_preferences_key(binder_id),
            binder_key(owner_id, binder_id),
            user_binders_key(owner_id),
            user_profile_key(owner_id),
        ]
    if mutation is Mutation.PREFERENCES:
        return [
            binder_preferences_key(binder_id),
            binder_key(owner_id, binder_id),
            user_binders_key(owner_id),
        ]
    return [
        user_binders_key(owner_id),
        binder_cards_key(binder_id),
        binder_preferences_key(binder_id),
        binder_key(owner_id, binder_id),
        user_profile_key(owner_id),
    ]
