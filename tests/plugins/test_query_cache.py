"""Tests for the built-in query cache plugin."""

from __future__ import annotations

from binderctl.plugins.builtins.query_cache import QueryCache
from binderctl.plugins.manager import PluginManager


class TestQueryCache:
    def test_loader_runs_once(self) -> None:
        cache = QueryCache()
        calls: list[int] = []

        def loader() -> str:
            calls.append(1)
            return "value"

        assert cache.fetch(["binder", "ash", "b1"], loader) == "value"
        assert cache.fetch(["binder", "ash", "b1"], loader) == "value"
        assert len(calls) == 1

    def test_caches_none(self) -> None:
        cache = QueryCache()
        cache.fetch(["binder", "ash", "missing"], lambda: None)
        assert ["binder", "ash", "missing"] in cache

    def test_exact_key_invalidation(self) -> None:
        cache = QueryCache()
        cache.fetch(["binderCards", "b1"], lambda: 1)
        cache.fetch(["binderCards", "b2"], lambda: 2)
        cache.mark_stale(query_keys=[["binderCards", "b1"]])
        assert ["binderCards", "b1"] not in cache
        assert ["binderCards", "b2"] in cache
        assert cache.stale_log == [("binderCards", "b1")]

    def test_prefix_does_not_match_longer_key_part(self) -> None:
        cache = QueryCache()
        cache.fetch(["binder", "ash", "b1"], lambda: 1)
        cache.mark_stale(query_keys=[["binder", "as"]])
        assert len(cache) == 1

    def test_dispatch_through_hook(self) -> None:
        pm = PluginManager()
        cache = QueryCache()
        pm.register_plugin(cache, name="query-cache")
        cache.fetch(["userProfile", "ash"], lambda: {"cards": 3})
        pm.hook.mark_stale(query_keys=[["userProfile", "ash"]])
        assert len(cache) == 0
