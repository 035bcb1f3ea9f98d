"""Plugin discovery, backend collection, and hook dispatch.

Discovery: pluggy setuptools entry points in the ``envctl.plugins`` group.
Built-in backends are registered directly so envctl works uninstalled.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from envctl.backends.base import BackendRegistry
from envctl.plugins.hookspecs import EnvctlHookSpec

PROJECT_NAME = "envctl"
ENTRY_POINT_GROUP = "envctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(EnvctlHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, entry_points: bool = True) -> list[str]:
        """Register the built-in plugin and, optionally, entry-point plugins.

        Returns a list of loaded plugin names.
        """
        from envctl.plugins.builtins.backends import BuiltinBackendsPlugin

        if self._pm.get_plugin("builtin-backends") is None:
            self.register_plugin(BuiltinBackendsPlugin(), name="builtin-backends")
        if entry_points:
            try:
                self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
            except Exception:
                logger.warning("Failed to load %s entry points", ENTRY_POINT_GROUP, exc_info=True)
            self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [name for name, _plugin in self._pm.list_name_plugin()]

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def build_registry(self) -> BackendRegistry:
        """Collect backend factories from every plugin.

        A plugin whose hook raises, or returns something other than a dict,
        is skipped with a warning. The first plugin to claim a name wins.
        """
        registry = BackendRegistry()
        for plugin_name, plugin in self._pm.list_name_plugin():
            hook = getattr(plugin, "register_backends", None)
            if hook is None:
                continue
            try:
                factories = hook()
            except Exception:
                logger.warning(
                    "Failed to collect backends from plugin %s", plugin_name, exc_info=True
                )
                continue
            if factories is None:
                continue
            if not isinstance(factories, dict):
                logger.warning("Plugin %s returned non-dict backend registrations", plugin_name)
                continue
            for backend_name, factory in factories.items():
                try:
                    registry.register(backend_name, factory)
                except ValueError:
                    logger.warning(
                        "Skipping backend %r from plugin %s: name already taken",
                        backend_name,
                        plugin_name,
                    )
        return registry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin_name, plugin in list(self._pm.list_name_plugin()):
            if not inspect.isclass(plugin):
                continue

            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s", plugin_name, exc_info=True
                )
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
