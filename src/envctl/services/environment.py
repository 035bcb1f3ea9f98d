"""EnvironmentService: check, resolve, export, enter, and scaffold environments.

Every public method returns a ServiceResult. ParseError and ResolutionError
are converted here; callers never see a domain exception.
"""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, get_args

from envctl.config.models import ExportFormat
from envctl.domain.environment import ResolvedEnvironment
from envctl.domain.errors import EnvctlError, ParseError, ResolutionError
from envctl.domain.requirements import EnvironmentDescriptor, ToolRequirement
from envctl.infrastructure.shell import (
    build_shell_command,
    changed_variables,
    render_exports,
    run_in_environment,
)
from envctl.infrastructure.templates import build_template_environment
from envctl.parsing import load_descriptor, parse_descriptor
from envctl.resolver import resolve_environment
from envctl.services.base import BaseService
from envctl.services.result import ServiceError, ServiceResult
from envctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from envctl.backends.base import Backend, BackendRegistry
    from envctl.config.settings import EnvctlSettings
    from envctl.plugins.manager import PluginManager

DESCRIPTOR_FILENAMES: dict[str, str] = {
    "nix": "shell.nix",
    "toml": "environment.toml",
    "yaml": "environment.yaml",
}


class _Failure(EnvctlError):
    """Internal: abort an operation with a specific error code."""

    def __init__(self, code: str, message: str, **detail: Any) -> None:
        self.code = code
        self.message = message
        self.detail = detail
        super().__init__(message)


def _error_result(op: str, exc: EnvctlError, warnings: list[str] | None = None) -> ServiceResult:
    if isinstance(exc, ParseError):
        error = ServiceError(
            code="PARSE_ERROR",
            message=str(exc),
            detail={"source": exc.source, "line": exc.line, "column": exc.column},
        )
    elif isinstance(exc, ResolutionError):
        error = ServiceError(
            code="RESOLUTION_ERROR",
            message=str(exc),
            detail={"requirement": exc.requirement, "reason": exc.reason},
        )
    elif isinstance(exc, _Failure):
        error = ServiceError(code=exc.code, message=exc.message, detail=exc.detail)
    else:
        error = ServiceError(code="ERROR", message=str(exc))
    return ServiceResult(ok=False, op=op, error=error, warnings=warnings or [])


def _package_set_name(channel: str) -> str:
    name = re.sub(r"[^A-Za-z0-9_]", "_", channel)
    if name == "pkgs" or not name[:1].isalpha():
        name = f"ch_{name}"
    return name


class EnvironmentService(BaseService):
    """Operations on one environment descriptor."""

    def __init__(
        self,
        settings: EnvctlSettings,
        registry: BackendRegistry,
        plugins: PluginManager | None = None,
    ) -> None:
        super().__init__(settings, plugins)
        self._registry = registry

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @traced
    def check(self, path: str | Path | None = None, *, fmt: str | None = None) -> ServiceResult:
        """Parse the descriptor without resolving anything."""
        op = "check"
        try:
            located, descriptor = self._load(path, fmt)
        except EnvctlError as exc:
            return _error_result(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(located),
                "format": descriptor.source_format,
                "name": descriptor.name,
                "count": len(descriptor.requirements),
                "requirements": [r.model_dump() for r in descriptor.requirements],
                "variables": dict(descriptor.variables),
                "shell_hook": descriptor.shell_hook,
            },
        )

    @traced
    def resolve(
        self,
        path: str | Path | None = None,
        backend: str | None = None,
        *,
        fmt: str | None = None,
    ) -> ServiceResult:
        """Resolve every requirement; fail on the first that cannot be satisfied."""
        op = "resolve"
        warnings: list[str] = []
        try:
            located, descriptor = self._load(path, fmt)
            backend_impl = self._backend(backend)
            environment = self._resolve(descriptor, backend_impl, warnings)
        except EnvctlError as exc:
            return _error_result(op, exc, warnings)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(located),
                "backend": backend_impl.name,
                "name": environment.name,
                "count": len(environment),
                "tools": [tool.to_dict() for tool in environment.tools],
            },
            warnings=warnings,
        )

    @traced
    def export(
        self,
        path: str | Path | None = None,
        shell: str | None = None,
        backend: str | None = None,
        *,
        fmt: str | None = None,
    ) -> ServiceResult:
        """Render the variables the environment adds or changes as a shell script."""
        op = "export"
        warnings: list[str] = []
        shell = shell or self._settings.shell.export_format
        try:
            if shell not in get_args(ExportFormat):
                raise _Failure("UNKNOWN_FORMAT", f"Unknown export format: {shell!r}", format=shell)
            _located, descriptor = self._load(path, fmt)
            environment = self._resolve(descriptor, self._backend(backend), warnings)
        except EnvctlError as exc:
            return _error_result(op, exc, warnings)

        base_env = dict(os.environ)
        variables = changed_variables(environment.to_variables(base_env), base_env)
        script = render_exports(variables, shell, shell_hook=environment.shell_hook)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "format": shell,
                "name": environment.name,
                "count": len(environment),
                "script": script,
                "variables": variables,
            },
            warnings=warnings,
        )

    @traced
    def run(
        self,
        path: str | Path | None = None,
        argv: Sequence[str] = (),
        backend: str | None = None,
        *,
        fmt: str | None = None,
    ) -> ServiceResult:
        """Run *argv* inside the resolved environment."""
        op = "run"
        warnings: list[str] = []
        try:
            if not argv:
                raise _Failure("NO_COMMAND", "No command given to run")
            _located, descriptor = self._load(path, fmt)
            environment = self._resolve(descriptor, self._backend(backend), warnings)
        except EnvctlError as exc:
            return _error_result(op, exc, warnings)

        return self._execute(op, list(argv), environment, warnings)

    @traced
    def shell(
        self,
        path: str | Path | None = None,
        backend: str | None = None,
        *,
        fmt: str | None = None,
    ) -> ServiceResult:
        """Start the configured interactive shell inside the resolved environment."""
        op = "shell"
        warnings: list[str] = []
        try:
            _located, descriptor = self._load(path, fmt)
            environment = self._resolve(descriptor, self._backend(backend), warnings)
        except EnvctlError as exc:
            return _error_result(op, exc, warnings)

        command = build_shell_command(self._settings.shell.program, environment.shell_hook)
        return self._execute(op, command, environment, warnings)

    @traced
    def list_backends(self) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op="backends",
            data={
                "backends": self._registry.names(),
                "default": self._settings.backend_name,
            },
        )

    @traced
    def init(
        self,
        directory: str | Path | None = None,
        tools: Sequence[str] = (),
        fmt: str = "toml",
        name: str | None = None,
        force: bool = False,
    ) -> ServiceResult:
        """Write a starter descriptor listing *tools* into *directory*."""
        op = "init"
        target_dir = Path(directory) if directory is not None else Path.cwd()
        try:
            if fmt not in DESCRIPTOR_FILENAMES:
                raise _Failure("UNKNOWN_FORMAT", f"Unknown descriptor format: {fmt!r}", format=fmt)
            descriptor = self._requirements_from_specs(tools, name)
            if fmt == "nix":
                self._check_nix_compatible(descriptor)

            target = target_dir / DESCRIPTOR_FILENAMES[fmt]
            if target.exists() and not force:
                raise _Failure(
                    "ALREADY_EXISTS",
                    f"{target} already exists (use --force to overwrite)",
                    path=str(target),
                )

            text = self._render_descriptor(descriptor, fmt)
            # The rendered file must round-trip before it is written.
            parse_descriptor(text, fmt=fmt, source=str(target))
        except EnvctlError as exc:
            return _error_result(op, exc)

        target_dir.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(target),
                "format": fmt,
                "name": descriptor.name,
                "count": len(descriptor.requirements),
            },
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(
        self, path: str | Path | None, fmt: str | None
    ) -> tuple[Path, EnvironmentDescriptor]:
        explicit = str(path) if path is not None else None
        located = self._settings.descriptor_path(explicit)
        if located is None:
            raise _Failure(
                "DESCRIPTOR_NOT_FOUND",
                "No environment descriptor found (looked for "
                + ", ".join(self._settings.descriptor.candidates)
                + ")",
            )
        if not located.is_file():
            raise _Failure(
                "DESCRIPTOR_NOT_FOUND",
                f"Descriptor not found: {located}",
                path=str(located),
            )
        with trace_span("parse") as span:
            descriptor = load_descriptor(located, fmt=fmt)
            if span is not None:
                span.annotate("requirements", len(descriptor.requirements))
        return located, descriptor

    def _backend(self, name: str | None) -> Backend:
        backend_name = name or self._settings.backend_name
        if backend_name not in self._registry:
            raise _Failure(
                "UNKNOWN_BACKEND",
                f"Unknown backend: {backend_name!r}",
                backend=backend_name,
                available=self._registry.names(),
            )
        return self._registry.create(backend_name, self._settings.backend)

    def _resolve(
        self,
        descriptor: EnvironmentDescriptor,
        backend: Backend,
        warnings: list[str],
    ) -> ResolvedEnvironment:
        with trace_span("resolve") as span:
            environment = resolve_environment(
                descriptor, backend, aliases=self._settings.aliases
            )
            if span is not None:
                span.annotate("backend", backend.name)
                span.annotate("tools", len(environment))
        self._dispatch_event(
            "post_resolve",
            {"environment_name": environment.name, "tools": environment.keys()},
            warnings,
        )
        return environment

    def _execute(
        self,
        op: str,
        command: list[str],
        environment: ResolvedEnvironment,
        warnings: list[str],
    ) -> ServiceResult:
        env = environment.to_variables(os.environ)
        with trace_span("execute"):
            exit_code = run_in_environment(command, env)
        return ServiceResult(
            ok=True,
            op=op,
            data={"command": command, "exit_code": exit_code, "name": environment.name},
            warnings=warnings,
        )

    def _requirements_from_specs(
        self, specs: Sequence[str], name: str | None
    ) -> EnvironmentDescriptor:
        requirements: list[ToolRequirement] = []
        for spec in specs:
            try:
                requirements.append(ToolRequirement.parse(spec))
            except ParseError as exc:
                raise _Failure(
                    "INVALID_REQUIREMENT", f"Invalid --tool {spec!r}: {exc.message}", tool=spec
                ) from exc
        try:
            return EnvironmentDescriptor.build(requirements, name=name)
        except ParseError as exc:
            raise _Failure("INVALID_REQUIREMENT", exc.message) from exc

    def _check_nix_compatible(self, descriptor: EnvironmentDescriptor) -> None:
        for requirement in descriptor.requirements:
            if requirement.version is not None:
                raise _Failure(
                    "INVALID_REQUIREMENT",
                    f"shell.nix cannot express version constraints ({requirement})",
                    tool=str(requirement),
                )

    def _render_descriptor(self, descriptor: EnvironmentDescriptor, fmt: str) -> str:
        template = build_template_environment("descriptors").get_template(
            f"{DESCRIPTOR_FILENAMES[fmt]}.j2"
        )
        context: dict[str, Any] = {"name": descriptor.name, "tools": descriptor.requirements}
        if fmt == "nix":
            default_channel = self._settings.backend.nix.default_channel
            package_sets: dict[str, str] = {default_channel: "pkgs"}
            inputs: list[tuple[str, str]] = []
            for requirement in descriptor.requirements:
                channel = requirement.channel or default_channel
                if channel not in package_sets:
                    param = _package_set_name(channel)
                    while param in package_sets.values():
                        param += "_"
                    package_sets[channel] = param
                inputs.append((package_sets[channel], requirement.target))
            context["package_sets"] = [(param, channel) for channel, param in package_sets.items()]
            context["inputs"] = inputs
        return template.render(**context)

