"""Plugin discovery and loading.

Plugins come from the ``binderctl.plugins`` entry-point group and from
single-file modules in ``.binderctl/plugins/`` inside the workspace.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path

import pluggy

from binderctl.plugins.hookspecs import PROJECT_NAME, BinderctlHookSpec

ENTRY_POINT_GROUP = "binderctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Wraps a pluggy manager with binderctl's discovery rules."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(BinderctlHookSpec)

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins and any local single-file plugins.

        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_classes()
        if local_dir is not None and local_dir.is_dir():
            for py_file in sorted(local_dir.glob("*.py")):
                if not py_file.name.startswith("_"):
                    self._load_local(py_file)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins)."""
        resolved = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved)
        logger.debug("Registered plugin: %s", resolved)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def hook(self) -> pluggy.HookRelay:
        """Hook relay used for dispatch."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_local(self, py_file: Path) -> None:
        """Import *py_file* and register every hook-carrying class it defines.

        A broken local plugin is logged and skipped.
        """
        module_name = f"binderctl_local_plugin_{py_file.stem}"
        try:
            spec = importlib.util.spec_from_file_location(module_name, py_file)
            if spec is None or spec.loader is None:
                logger.warning("Could not create module spec for %s", py_file)
                return
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            spec.loader.exec_module(module)
        except Exception:
            logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
            sys.modules.pop(module_name, None)
            return

        for _name, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ != module_name or not _has_hook_impls(cls):
                continue
            try:
                self.register_plugin(cls(), name=f"{module_name}.{cls.__name__}")
            except Exception:
                logger.warning("Failed to instantiate plugin %s", cls.__name__, exc_info=True)

    def _instantiate_classes(self) -> None:
        """Swap plugin classes registered by entry points for instances.

        Dispatching hooks on a class object leaves ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin) or not _has_hook_impls(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                self._pm.register(plugin(), name=name)
            except Exception:
                logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)


def _has_hook_impls(cls: type) -> bool:
    """Whether *cls* carries any ``@hookimpl`` methods (``binderctl_impl`` marker)."""
    marker = f"{PROJECT_NAME}_impl"
    return any(
        callable(getattr(cls, name, None)) and getattr(getattr(cls, name), marker, None)
        for name in dir(cls)
        if not name.startswith("_")
    )
