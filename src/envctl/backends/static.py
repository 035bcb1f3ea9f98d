"""Static backend: resolves from a prefix table in envctl.toml.

Runs no processes, so it works offline and makes resolution deterministic::

    [backend.static.tools]
    clang = "/opt/llvm"
    valgrind = { prefix = "/usr", version = "3.22.0" }
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from envctl.config.models import BackendConfig, StaticBackendConfig
from envctl.domain.environment import ResolvedTool
from envctl.domain.errors import ResolutionError
from envctl.domain.requirements import ToolRequirement


class StaticBackend:
    name = "static"

    def __init__(self, config: StaticBackendConfig | None = None) -> None:
        self._tools: dict[str, str | dict[str, Any]] = dict((config or StaticBackendConfig()).tools)

    @classmethod
    def from_config(cls, config: BackendConfig) -> StaticBackend:
        return cls(config.static)

    def resolve(self, requirement: ToolRequirement) -> ResolvedTool:
        entry = self._tools.get(requirement.target)
        if entry is None:
            raise ResolutionError(
                requirement.name, f"package {requirement.target!r} is not in the static table"
            )
        if isinstance(entry, str):
            prefix, version = entry, None
        else:
            prefix = entry.get("prefix")
            version = entry.get("version")
            if not prefix:
                raise ResolutionError(
                    requirement.name, f"static entry for {requirement.target!r} has no prefix"
                )
        return ResolvedTool(
            requirement=requirement,
            prefix=Path(str(prefix)),
            version=str(version) if version is not None else None,
            backend=self.name,
        )
