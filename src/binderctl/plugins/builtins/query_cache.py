"""In-process read cache invalidated through the ``mark_stale`` hook.

Keys are lists of strings such as ``["binderCards", binder_id]``. A stale
key invalidates every cached entry it prefixes, so ``["binderCards"]``
drops the card lists of all binders.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from binderctl.plugins.hookspecs import hookimpl


class QueryCache:
    """Memoizes read results until a mutation marks their key stale."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, ...], Any] = {}
        self.stale_log: list[tuple[str, ...]] = []

    def fetch(self, key: Sequence[str], loader: Callable[[], Any]) -> Any:
        """Cached value for *key*, calling *loader* on a miss."""
        k = tuple(key)
        if k not in self._entries:
            self._entries[k] = loader()
        return self._entries[k]

    def __contains__(self, key: Sequence[str]) -> bool:
        return tuple(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @hookimpl(tryfirst=True)
    def mark_stale(self, query_keys: list[list[str]]) -> None:
        for stale in query_keys:
            prefix = tuple(stale)
            self.stale_log.append(prefix)
            for cached in [k for k in self._entries if k[: len(prefix)] == prefix]:
                del self._entries[cached]
