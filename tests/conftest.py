"""Shared pytest fixtures for envctl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from envctl.backends.base import BackendRegistry
from envctl.backends.static import StaticBackend
from envctl.config.models import StaticBackendConfig
from envctl.config.settings import EnvctlSettings
from envctl.services.telemetry import disable_telemetry

SCENARIO_TOOLS = ("compiler-frontend", "xml-library", "memory-debugger", "c-compiler")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep the developer's envctl configuration out of every test."""
    for var in ("ENVCTL_CONFIG", "ENVCTL_BACKEND__NAME", "ENVCTL_BACKEND_OVERRIDE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("IN_ENVCTL_SHELL", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    disable_telemetry()
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("envctl").setLevel(logging.NOTSET)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def store(tmp_path: Path) -> Path:
    """A fake package store with one prefix per scenario tool.

    Every prefix has ``bin``, ``lib``, ``lib/pkgconfig`` and ``include``.
    """
    root = tmp_path / "store"
    for name in SCENARIO_TOOLS:
        for sub in ("bin", "lib/pkgconfig", "include"):
            (root / name / sub).mkdir(parents=True)
    return root


@pytest.fixture
def static_backend(store: Path) -> StaticBackend:
    tools: dict[str, str | dict[str, str]] = {name: str(store / name) for name in SCENARIO_TOOLS}
    tools["c-compiler"] = {"prefix": str(store / "c-compiler"), "version": "15.0.7"}
    return StaticBackend(StaticBackendConfig(tools=tools))


@pytest.fixture
def project(tmp_path: Path, store: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with envctl.toml (static backend) and environment.toml.

    CWD is changed to the project so discovery finds both files.
    """
    root = tmp_path / "project"
    root.mkdir()
    table = "\n".join(f'{name} = "{store / name}"' for name in SCENARIO_TOOLS)
    (root / "envctl.toml").write_text(
        '[backend]\nname = "static"\n\n[backend.static.tools]\n' + table + "\n",
        encoding="utf-8",
    )
    tools = ", ".join(f'"{name}"' for name in SCENARIO_TOOLS)
    (root / "environment.toml").write_text(
        f'name = "scenario"\ntools = [{tools}]\n\n[variables]\nCC = "clang"\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def settings(project: Path) -> EnvctlSettings:
    return EnvctlSettings.from_cli(project_root=project)


@pytest.fixture
def registry() -> BackendRegistry:
    """Registry holding only the built-in backends."""
    from envctl.plugins.manager import PluginManager

    manager = PluginManager()
    manager.discover_and_load(entry_points=False)
    return manager.build_registry()
