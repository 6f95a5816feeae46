"""Pluggy hook specifications for binder lifecycle events.

Hooks fire after a ledger edit, a sync, or a revert has committed.
``mark_stale`` is the cache invalidation signal: it carries the query keys
whose cached reads are no longer current.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "binderctl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class BinderctlHookSpec:
    """Hook specifications for the binderctl plugin system."""

    @hookspec
    def post_record(
        self,
        binder_id: str,
        card_id: str,
        kind: str,
        status: str,
    ) -> None:
        """Called after a change has been folded into the ledger."""

    @hookspec
    def post_sync(
        self,
        binder_id: str,
        revision: int,
        changes_applied: int,
    ) -> None:
        """Called after the ledger has been committed to the remote store."""

    @hookspec
    def post_revert(self, binder_id: str, changes_discarded: int) -> None:
        """Called after local changes were discarded."""

    @hookspec
    def mark_stale(self, query_keys: list[list[str]]) -> None:
        """Called with the read-cache keys invalidated by a mutation."""
