"""Tests for op-specific Rich renderers."""

from __future__ import annotations

from envctl.output.renderers import render_quiet, render_result
from envctl.services.result import ServiceError, ServiceResult

TOOLS = [
    {
        "name": "compiler-frontend",
        "package": "llvm_10",
        "version": "10.0.1",
        "channel": "nixos",
        "prefix": "/nix/store/abc-llvm-10.0.1",
        "backend": "nix",
    },
    {
        "name": "memory-debugger",
        "package": "valgrind",
        "version": None,
        "channel": None,
        "prefix": "/usr",
        "backend": "nix",
    },
]

RESOLVED = ServiceResult(
    ok=True,
    op="resolve",
    data={"path": "shell.nix", "backend": "nix", "name": None, "count": 2, "tools": TOOLS},
)


class TestResolveRenderer:
    def test_table(self) -> None:
        output = render_result(RESOLVED)
        assert output.startswith("OK")
        assert "compiler-frontend" in output
        assert "/nix/store/abc-llvm-10.0.1" in output
        assert "llvm_10" not in output

    def test_verbose_shows_package(self) -> None:
        assert "llvm_10" in render_result(RESOLVED, verbose=True)

    def test_quiet(self) -> None:
        assert render_quiet(RESOLVED) == (
            "compiler-frontend /nix/store/abc-llvm-10.0.1\nmemory-debugger /usr"
        )


class TestOtherRenderers:
    def test_check(self) -> None:
        result = ServiceResult(
            ok=True,
            op="check",
            data={
                "path": "environment.toml",
                "format": "toml",
                "name": "dev",
                "count": 1,
                "requirements": [
                    {"name": "clang", "version": ">=15", "channel": None, "package": None}
                ],
                "variables": {},
                "shell_hook": None,
            },
        )
        output = render_result(result)
        assert "clang" in output
        assert ">=15" in output
        assert render_quiet(result) == "clang"

    def test_backends_marks_default(self) -> None:
        result = ServiceResult(
            ok=True, op="backends", data={"backends": ["host", "nix"], "default": "nix"}
        )
        output = render_result(result)
        assert "nix  (default)" in output
        assert render_quiet(result) == "host\nnix"

    def test_init(self) -> None:
        result = ServiceResult(
            ok=True, op="init", data={"path": "/p/shell.nix", "format": "nix", "count": 0}
        )
        assert "/p/shell.nix" in render_result(result)
        assert render_quiet(result) == "/p/shell.nix"

    def test_generic_fallback(self) -> None:
        result = ServiceResult(ok=True, op="run", data={"command": ["make"], "exit_code": 0})
        output = render_result(result)
        assert "exit_code: 0" in output
        assert render_quiet(result) == "OK: run"


class TestErrorRenderer:
    ERROR = ServiceResult(
        ok=False,
        op="resolve",
        error=ServiceError(
            code="RESOLUTION_ERROR",
            message="cannot resolve 'nonexistent-tool': not found",
            detail={"requirement": "nonexistent-tool"},
        ),
    )

    def test_message(self) -> None:
        output = render_result(self.ERROR)
        assert output.startswith("ERROR")
        assert "nonexistent-tool" in output
        assert "detail" not in output

    def test_verbose_detail(self) -> None:
        assert "requirement: nonexistent-tool" in render_result(self.ERROR, verbose=True)

    def test_quiet(self) -> None:
        assert render_quiet(self.ERROR).startswith("ERROR: resolve: cannot resolve")


class TestTelemetry:
    def test_span_tree_rendered_when_verbose(self) -> None:
        result = RESOLVED.model_copy(
            update={
                "meta": {
                    "telemetry": {
                        "name": "EnvironmentService.resolve",
                        "duration_ms": 12.5,
                        "children": [
                            {
                                "name": "parse",
                                "duration_ms": 1.0,
                                "annotations": {"requirements": 2},
                            }
                        ],
                    }
                }
            }
        )
        output = render_result(result, verbose=True)
        assert "EnvironmentService.resolve" in output
        assert "requirements=2" in output
        assert "EnvironmentService.resolve" not in render_result(result)
