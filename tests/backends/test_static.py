"""Tests for the static prefix-table backend."""

from __future__ import annotations

from pathlib import Path

import pytest

from envctl.backends.base import Backend
from envctl.backends.static import StaticBackend
from envctl.config.models import BackendConfig, StaticBackendConfig
from envctl.domain.errors import ResolutionError
from envctl.domain.requirements import ToolRequirement


class TestStaticBackend:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(StaticBackend(), Backend)

    def test_string_entry(self) -> None:
        backend = StaticBackend(StaticBackendConfig(tools={"clang": "/opt/llvm"}))
        tool = backend.resolve(ToolRequirement(name="clang"))
        assert tool.prefix == Path("/opt/llvm")
        assert tool.version is None
        assert tool.backend == "static"

    def test_table_entry(self) -> None:
        config = StaticBackendConfig(tools={"valgrind": {"prefix": "/usr", "version": "3.22.0"}})
        tool = StaticBackend(config).resolve(ToolRequirement(name="valgrind"))
        assert tool.prefix == Path("/usr")
        assert tool.version == "3.22.0"

    def test_looks_up_package(self) -> None:
        backend = StaticBackend(StaticBackendConfig(tools={"llvm_10": "/opt/llvm"}))
        tool = backend.resolve(ToolRequirement(name="compiler-frontend", package="llvm_10"))
        assert tool.name == "compiler-frontend"

    def test_missing_entry(self) -> None:
        with pytest.raises(ResolutionError) as info:
            StaticBackend().resolve(ToolRequirement(name="nonexistent-tool"))
        assert info.value.requirement == "nonexistent-tool"

    def test_entry_without_prefix(self) -> None:
        backend = StaticBackend(StaticBackendConfig(tools={"clang": {"version": "15"}}))
        with pytest.raises(ResolutionError, match="no prefix"):
            backend.resolve(ToolRequirement(name="clang"))

    def test_from_config(self) -> None:
        config = BackendConfig(static=StaticBackendConfig(tools={"clang": "/opt/llvm"}))
        assert StaticBackend.from_config(config).resolve(ToolRequirement(name="clang"))
