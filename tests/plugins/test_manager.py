"""Tests for PluginManager: registration, backend collection, and hook relay."""

from __future__ import annotations

from typing import Any

import pluggy
import pytest

from envctl.backends.static import StaticBackend
from envctl.config.models import BackendConfig
from envctl.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("envctl")


class _DummyPlugin:
    @hookimpl
    def post_resolve(self, environment_name: str | None, tools: list[str]) -> None:
        pass


class _CondaPlugin:
    @hookimpl
    def register_backends(self) -> dict[str, Any]:
        return {"conda": StaticBackend.from_config}


class _ShadowingPlugin:
    @hookimpl
    def register_backends(self) -> dict[str, Any]:
        return {"nix": StaticBackend.from_config}


class _BrokenPlugin:
    @hookimpl
    def register_backends(self) -> dict[str, Any]:
        raise RuntimeError("boom")


class _BadReturnPlugin:
    @hookimpl
    def register_backends(self) -> Any:
        return ["conda"]


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "register_backends")
        assert hasattr(pm.hook, "post_resolve")

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()

    def test_discover_registers_builtins_once(self) -> None:
        pm = PluginManager()
        assert not pm.is_loaded
        pm.discover_and_load(entry_points=False)
        names = pm.discover_and_load(entry_points=False)
        assert names.count("builtin-backends") == 1
        assert pm.is_loaded

    def test_entry_point_failure_is_logged(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        pm = PluginManager()

        def explode(group: str) -> int:
            raise RuntimeError("bad entry point")

        monkeypatch.setattr(pm._pm, "load_setuptools_entrypoints", explode)
        names = pm.discover_and_load()
        assert "builtin-backends" in names
        assert "Failed to load envctl.plugins entry points" in caplog.text

    def test_entry_point_classes_instantiated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        pm = PluginManager()

        def load(group: str) -> int:
            pm._pm.register(_CondaPlugin, name="conda-plugin")
            return 1

        monkeypatch.setattr(pm._pm, "load_setuptools_entrypoints", load)
        pm.discover_and_load()
        assert isinstance(pm._pm.get_plugin("conda-plugin"), _CondaPlugin)
        assert "conda" in pm.build_registry()


class TestBuildRegistry:
    def _manager(self, *plugins: object) -> PluginManager:
        pm = PluginManager()
        pm.discover_and_load(entry_points=False)
        for plugin in plugins:
            pm.register_plugin(plugin)
        return pm

    def test_builtins(self) -> None:
        assert self._manager().build_registry().names() == ["host", "nix", "static"]

    def test_plugin_backend_added(self) -> None:
        registry = self._manager(_CondaPlugin()).build_registry()
        assert "conda" in registry
        assert isinstance(registry.create("conda", BackendConfig()), StaticBackend)

    def test_builtin_wins_name_clash(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = self._manager(_ShadowingPlugin()).build_registry()
        assert registry.create("nix", BackendConfig()).name == "nix"
        assert "name already taken" in caplog.text

    def test_broken_plugins_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = self._manager(_BrokenPlugin(), _BadReturnPlugin()).build_registry()
        assert registry.names() == ["host", "nix", "static"]
        assert "Failed to collect backends" in caplog.text
        assert "non-dict" in caplog.text
