"""Tests for ResolvedEnvironment lookup and variable assembly."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from envctl.domain.environment import ResolvedEnvironment, ResolvedTool
from envctl.domain.requirements import EnvironmentDescriptor, ToolRequirement


def _tool(name: str, prefix: Path, version: str | None = None) -> ResolvedTool:
    return ResolvedTool(
        requirement=ToolRequirement(name=name), prefix=prefix, version=version, backend="static"
    )


@pytest.fixture
def environment(tmp_path: Path) -> ResolvedEnvironment:
    (tmp_path / "clang" / "bin").mkdir(parents=True)
    (tmp_path / "clang" / "lib").mkdir()
    (tmp_path / "libxml2" / "lib" / "pkgconfig").mkdir(parents=True)
    (tmp_path / "libxml2" / "include").mkdir()
    descriptor = EnvironmentDescriptor.build(
        [ToolRequirement(name="clang"), ToolRequirement(name="libxml2")],
        name="dev",
        variables={"CC": "clang"},
        shell_hook="echo hi",
    )
    return ResolvedEnvironment.from_descriptor(
        descriptor,
        [_tool("clang", tmp_path / "clang", "15.0.7"), _tool("libxml2", tmp_path / "libxml2")],
    )


class TestMappingAccess:
    def test_lookup(self, environment: ResolvedEnvironment) -> None:
        assert len(environment) == 2
        assert environment.keys() == ["clang", "libxml2"]
        assert environment["clang"].version == "15.0.7"
        assert "libxml2" in environment
        assert "gcc" not in environment

    def test_missing_key(self, environment: ResolvedEnvironment) -> None:
        with pytest.raises(KeyError):
            environment["gcc"]

    def test_items_in_descriptor_order(self, environment: ResolvedEnvironment) -> None:
        assert [name for name, _tool in environment.items()] == ["clang", "libxml2"]

    def test_empty_environment(self) -> None:
        environment = ResolvedEnvironment.from_descriptor(EnvironmentDescriptor(), [])
        assert len(environment) == 0
        assert environment.keys() == []

    def test_to_dict(self, environment: ResolvedEnvironment, tmp_path: Path) -> None:
        assert environment["clang"].to_dict() == {
            "name": "clang",
            "package": "clang",
            "version": "15.0.7",
            "channel": None,
            "prefix": str(tmp_path / "clang"),
            "backend": "static",
        }


class TestToVariables:
    def test_prepends_existing_dirs(self, environment: ResolvedEnvironment, tmp_path: Path) -> None:
        env = environment.to_variables({"PATH": "/usr/bin", "HOME": "/home/me"})
        assert env["PATH"] == os.pathsep.join([str(tmp_path / "clang" / "bin"), "/usr/bin"])
        assert env["LIBRARY_PATH"] == os.pathsep.join(
            [str(tmp_path / "clang" / "lib"), str(tmp_path / "libxml2" / "lib")]
        )
        assert env["PKG_CONFIG_PATH"] == str(tmp_path / "libxml2" / "lib" / "pkgconfig")
        assert env["CPATH"] == str(tmp_path / "libxml2" / "include")
        assert env["HOME"] == "/home/me"

    def test_markers_and_variables(self, environment: ResolvedEnvironment) -> None:
        env = environment.to_variables({})
        assert env["IN_ENVCTL_SHELL"] == "1"
        assert env["ENVCTL_ENV_NAME"] == "dev"
        assert env["CC"] == "clang"

    def test_missing_dirs_leave_variable_alone(self, environment: ResolvedEnvironment) -> None:
        env = environment.to_variables({"CPATH": "/x"}, is_dir=lambda _path: False)
        assert env["CPATH"] == "/x"
        assert "PATH" not in env

    def test_base_env_not_mutated(self, environment: ResolvedEnvironment) -> None:
        base = {"PATH": "/usr/bin"}
        environment.to_variables(base)
        assert base == {"PATH": "/usr/bin"}
