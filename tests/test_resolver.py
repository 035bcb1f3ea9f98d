"""Tests for fail-fast environment resolution."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from envctl.backends.static import StaticBackend
from envctl.domain.environment import ResolvedTool
from envctl.domain.errors import ResolutionError
from envctl.domain.requirements import EnvironmentDescriptor, ToolRequirement
from envctl.resolver import apply_alias, resolve_environment, resolve_requirement


def _descriptor(*names: str) -> EnvironmentDescriptor:
    return EnvironmentDescriptor.build(ToolRequirement.parse(name) for name in names)


class RecordingBackend:
    """Static-style backend that records every requirement it sees."""

    name = "recording"

    def __init__(self, known: dict[str, str]) -> None:
        self.known = known
        self.seen: list[str] = []

    def resolve(self, requirement: ToolRequirement) -> ResolvedTool:
        self.seen.append(requirement.name)
        if requirement.target not in self.known:
            raise ResolutionError(requirement.name, "unknown")
        return ResolvedTool(
            requirement=requirement, prefix=Path("/store") / requirement.target, backend=self.name
        )


class TestScenarios:
    def test_all_resolvable(self, static_backend: StaticBackend) -> None:
        names = ("compiler-frontend", "xml-library", "memory-debugger", "c-compiler")
        environment = resolve_environment(_descriptor(*names), static_backend)
        assert len(environment) == 4
        assert environment.keys() == list(names)
        for name in names:
            assert environment[name].name == name

    def test_unresolvable_names_requirement(self, static_backend: StaticBackend) -> None:
        with pytest.raises(ResolutionError) as info:
            resolve_environment(
                _descriptor("compiler-frontend", "nonexistent-tool"), static_backend
            )
        assert info.value.requirement == "nonexistent-tool"
        assert "nonexistent-tool" in str(info.value)

    def test_empty_descriptor(self, static_backend: StaticBackend) -> None:
        environment = resolve_environment(EnvironmentDescriptor(), static_backend)
        assert len(environment) == 0


class TestFailFast:
    def test_stops_at_first_failure(self) -> None:
        backend = RecordingBackend({"a": "/a", "c": "/c"})
        with pytest.raises(ResolutionError):
            resolve_environment(_descriptor("a", "b", "c"), backend)
        assert backend.seen == ["a", "b"]

    def test_descriptor_fields_carried(self) -> None:
        descriptor = EnvironmentDescriptor.build(
            [ToolRequirement(name="a")],
            name="dev",
            variables={"CC": "clang"},
            shell_hook="echo hi",
        )
        environment = resolve_environment(descriptor, RecordingBackend({"a": "/a"}))
        assert environment.name == "dev"
        assert environment.variables == {"CC": "clang"}
        assert environment.shell_hook == "echo hi"


class TestAliases:
    def test_alias_sets_package(self) -> None:
        req = apply_alias(ToolRequirement(name="compiler-frontend"), {"compiler-frontend": "clang"})
        assert req.package == "clang"

    def test_explicit_package_wins(self) -> None:
        req = ToolRequirement(name="cc", package="gcc")
        assert apply_alias(req, {"cc": "clang"}) is req

    def test_alias_used_for_lookup(self) -> None:
        backend = RecordingBackend({"llvm_10": "/llvm"})
        environment = resolve_environment(
            _descriptor("compiler-frontend"), backend, aliases={"compiler-frontend": "llvm_10"}
        )
        assert environment["compiler-frontend"].prefix == Path("/store/llvm_10")


class TestVersions:
    def test_constraint_satisfied(self, static_backend: StaticBackend) -> None:
        tool = resolve_requirement(ToolRequirement.parse("c-compiler@>=15"), static_backend)
        assert tool.version == "15.0.7"

    def test_constraint_violated(self, static_backend: StaticBackend) -> None:
        with pytest.raises(ResolutionError, match="does not satisfy"):
            resolve_requirement(ToolRequirement.parse("c-compiler@<15"), static_backend)

    def test_constraint_without_reported_version(self, static_backend: StaticBackend) -> None:
        with pytest.raises(ResolutionError, match="reported no version"):
            resolve_requirement(ToolRequirement.parse("xml-library@2.9"), static_backend)


class TestBackendFailures:
    def test_os_error_becomes_resolution_error(self) -> None:
        class Broken:
            name = "broken"

            def resolve(self, requirement: ToolRequirement) -> ResolvedTool:
                raise subprocess.TimeoutExpired(["nix-build"], 1)

        with pytest.raises(ResolutionError) as info:
            resolve_requirement(ToolRequirement(name="clang"), Broken())
        assert info.value.requirement == "clang"
