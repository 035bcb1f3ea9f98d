"""Resolved tools and the environment assembled from them.

A ResolvedEnvironment is built once per invocation, after every
requirement resolved, and is never mutated afterwards.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from envctl.domain.requirements import EnvironmentDescriptor, ToolRequirement

# Search-path variables and the prefix-relative directories feeding them,
# in the order they are prepended.
SEARCH_PATHS: dict[str, tuple[str, ...]] = {
    "PATH": ("bin",),
    "PKG_CONFIG_PATH": ("lib/pkgconfig", "share/pkgconfig"),
    "CPATH": ("include",),
    "LIBRARY_PATH": ("lib",),
}

ACTIVE_MARKER = "IN_ENVCTL_SHELL"
NAME_MARKER = "ENVCTL_ENV_NAME"


class ResolvedTool(BaseModel):
    """A requirement paired with the installed artifact that satisfies it."""

    model_config = {"frozen": True}

    requirement: ToolRequirement
    prefix: Path
    version: str | None = None
    backend: str = ""

    @property
    def name(self) -> str:
        return self.requirement.name

    def to_dict(self) -> dict[str, str | None]:
        return {
            "name": self.requirement.name,
            "package": self.requirement.target,
            "version": self.version,
            "channel": self.requirement.channel,
            "prefix": str(self.prefix),
            "backend": self.backend,
        }


class ResolvedEnvironment(BaseModel):
    """Mapping from requirement name to ResolvedTool, in descriptor order."""

    model_config = {"frozen": True}

    tools: tuple[ResolvedTool, ...] = ()
    name: str | None = None
    variables: dict[str, str] = Field(default_factory=dict)
    shell_hook: str | None = None

    @classmethod
    def from_descriptor(
        cls,
        descriptor: EnvironmentDescriptor,
        tools: list[ResolvedTool],
    ) -> ResolvedEnvironment:
        return cls(
            tools=tuple(tools),
            name=descriptor.name,
            variables=dict(descriptor.variables),
            shell_hook=descriptor.shell_hook,
        )

    # --- Mapping-style access ---

    def __getitem__(self, name: str) -> ResolvedTool:
        for tool in self.tools:
            if tool.name == name:
                return tool
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(tool.name == name for tool in self.tools)

    def __len__(self) -> int:
        return len(self.tools)

    def keys(self) -> list[str]:
        return [tool.name for tool in self.tools]

    def items(self) -> Iterator[tuple[str, ResolvedTool]]:
        return ((tool.name, tool) for tool in self.tools)

    # --- Variable assembly ---

    def search_dirs(
        self,
        variable: str,
        *,
        is_dir: Callable[[Path], bool] = Path.is_dir,
    ) -> list[str]:
        """Existing prefix directories for *variable*, deduplicated, descriptor order."""
        dirs: list[str] = []
        for tool in self.tools:
            for rel in SEARCH_PATHS[variable]:
                candidate = tool.prefix / rel
                text = str(candidate)
                if text not in dirs and is_dir(candidate):
                    dirs.append(text)
        return dirs

    def to_variables(
        self,
        base_env: Mapping[str, str],
        *,
        is_dir: Callable[[Path], bool] = Path.is_dir,
    ) -> dict[str, str]:
        """Return *base_env* extended with this environment's variables.

        Tool directories are prepended to the search-path variables ahead of
        the base value. Descriptor variables override anything inherited.
        """
        env = dict(base_env)
        for variable in SEARCH_PATHS:
            dirs = self.search_dirs(variable, is_dir=is_dir)
            if not dirs:
                continue
            inherited = base_env.get(variable)
            if inherited:
                dirs.append(inherited)
            env[variable] = os.pathsep.join(dirs)

        env.update(self.variables)
        env[ACTIVE_MARKER] = "1"
        if self.name:
            env[NAME_MARKER] = self.name
        return env
