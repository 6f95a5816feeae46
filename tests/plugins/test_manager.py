"""Tests for PluginManager registration and local discovery."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from binderctl.plugins import hookimpl
from binderctl.plugins.manager import PluginManager, _has_hook_impls

_VALID_PLUGIN_SRC = """\
from binderctl.plugins import hookimpl

calls: list[dict] = []


class SyncAuditPlugin:
    \"\"\"Remembers every committed sync.\"\"\"

    @hookimpl
    def post_sync(self, binder_id: str, revision: int, changes_applied: int) -> None:
        calls.append({"binder_id": binder_id, "revision": revision})
"""

_SYNTAX_ERROR_SRC = """\
def broken(
"""

_NO_HOOKS_SRC = """\
class PlainClass:
    def hello(self) -> str:
        return "world"
"""


class AuditPlugin:
    @hookimpl
    def post_revert(self, binder_id: str, changes_discarded: int) -> None:
        pass


class TestRegistration:
    def test_register_plugin(self) -> None:
        pm = PluginManager()
        plugin = AuditPlugin()
        pm.register_plugin(plugin, name="audit")
        assert "audit" in pm.list_plugin_names()
        assert plugin in pm.get_plugins()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(AuditPlugin())
        assert "AuditPlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = AuditPlugin()
        pm.register_plugin(plugin, name="audit")
        pm.unregister(plugin)
        assert "audit" not in pm.list_plugin_names()

    @pytest.mark.parametrize("hook_name", ["post_record", "post_sync", "post_revert", "mark_stale"])
    def test_all_hookspecs_registered(self, hook_name: str) -> None:
        assert hasattr(PluginManager().hook, hook_name)

    def test_has_hook_impls(self) -> None:
        assert _has_hook_impls(AuditPlugin)
        assert not _has_hook_impls(Path)


class TestLocalDiscovery:
    def test_discovers_local_plugin(self, tmp_path: Path) -> None:
        (tmp_path / "audit.py").write_text(_VALID_PLUGIN_SRC, encoding="utf-8")
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert "binderctl_local_plugin_audit.SyncAuditPlugin" in names

        pm.hook.post_sync(binder_id="b1", revision=4, changes_applied=1)
        module = sys.modules["binderctl_local_plugin_audit"]
        assert module.calls == [{"binder_id": "b1", "revision": 4}]

    def test_skips_bad_plugin(self, tmp_path: Path) -> None:
        (tmp_path / "broken.py").write_text(_SYNTAX_ERROR_SRC, encoding="utf-8")
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert not any("broken" in n for n in names)

    def test_ignores_classes_without_hooks(self, tmp_path: Path) -> None:
        (tmp_path / "plain.py").write_text(_NO_HOOKS_SRC, encoding="utf-8")
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert not any("PlainClass" in n for n in names)

    def test_skips_private_files(self, tmp_path: Path) -> None:
        (tmp_path / "_private.py").write_text(_VALID_PLUGIN_SRC, encoding="utf-8")
        names = PluginManager().discover_and_load(local_dir=tmp_path)
        assert not any("_private" in n for n in names)

    def test_missing_directory(self, tmp_path: Path) -> None:
        PluginManager().discover_and_load(local_dir=tmp_path / "nope")
