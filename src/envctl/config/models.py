"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, envctl.toml only contains overrides.
A project that builds with Nix needs no envctl.toml at all.
"""

from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, Field

ExportFormat = Literal["sh", "fish", "json"]

DEFAULT_DESCRIPTOR_CANDIDATES: tuple[str, ...] = (
    "shell.nix",
    "environment.toml",
    "environment.yaml",
    "environment.yml",
)


# --- envctl.toml sections ---


class DescriptorConfig(BaseModel):
    """[descriptor] section."""

    model_config = {"frozen": True}

    path: str | None = None
    candidates: tuple[str, ...] = DEFAULT_DESCRIPTOR_CANDIDATES


class NixBackendConfig(BaseModel):
    """[backend.nix] section."""

    model_config = {"frozen": True}

    nix_build: str = "nix-build"
    nix_instantiate: str = "nix-instantiate"
    default_channel: str = "nixpkgs"


class HostBackendConfig(BaseModel):
    """[backend.host] section."""

    model_config = {"frozen": True}

    search_path: str | None = None
    pkg_config: str = "pkg-config"


class StaticBackendConfig(BaseModel):
    """[backend.static] section.

    ``tools`` maps a package to its prefix, or to ``{prefix, version}``.
    """

    model_config = {"frozen": True}

    tools: dict[str, str | dict[str, Any]] = Field(default_factory=dict)


class BackendConfig(BaseModel):
    """[backend] section."""

    model_config = {"frozen": True}

    name: str = "nix"
    nix: NixBackendConfig = Field(default_factory=NixBackendConfig)
    host: HostBackendConfig = Field(default_factory=HostBackendConfig)
    static: StaticBackendConfig = Field(default_factory=StaticBackendConfig)


def _default_shell() -> str:
    return os.environ.get("SHELL") or "/bin/sh"


class ShellConfig(BaseModel):
    """[shell] section."""

    model_config = {"frozen": True}

    program: str = Field(default_factory=_default_shell)
    # Not a Literal: the export operation reports an unknown value as UNKNOWN_FORMAT.
    export_format: str = "sh"
