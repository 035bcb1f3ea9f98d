"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  : CLI flags passed by Click
  2. Env vars     : ``ENVCTL_*`` prefix, ``__`` for nesting
  3. TOML file    : ``envctl.toml`` discovered via walk-up
  4. Code defaults: baked into the section models

The TOML path is handed to :class:`TomlSettingsSource` through
thread-local storage because pydantic-settings builds sources from a
classmethod that cannot see constructor arguments.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from envctl.config.discovery import find_config, find_descriptor
from envctl.config.models import BackendConfig, DescriptorConfig, ShellConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from an ``envctl.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


_tls = threading.local()


class EnvctlSettings(BaseSettings):
    """Unified settings for the envctl CLI.

    Attributes:
        project_root: Directory descriptors are discovered from (parent of
            ``envctl.toml``, or CWD if no config found).
        config_path: The config file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "ENVCTL_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    backend_override: str | None = None

    # --- TOML sections ---
    descriptor: DescriptorConfig = Field(default_factory=DescriptorConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    aliases: dict[str, str] = Field(default_factory=dict)
    shell: ShellConfig = Field(default_factory=ShellConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> EnvctlSettings:
        """Construct settings from a CLI invocation.

        Discovers ``envctl.toml`` via walk-up (or explicit *config_path*),
        resolves *project_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(project_root=resolved_root, config_path=toml_path, **cli_flags)
        except ValidationError as exc:
            import click

            error = exc.errors()[0]
            where = ".".join(str(part) for part in error["loc"])
            source = toml_path or "settings"
            msg = f"Invalid config in {source}: {where}: {error['msg']}"
            raise click.ClickException(msg) from exc
        finally:
            _tls.toml_path = None

    @property
    def backend_name(self) -> str:
        """Backend in effect: ``--backend`` beats ``[backend] name``."""
        return self.backend_override or self.backend.name

    def descriptor_path(self, explicit: str | None = None) -> Path | None:
        """Locate the descriptor: *explicit*, then ``[descriptor] path``, then walk-up."""
        if explicit:
            return Path(explicit)
        if self.descriptor.path:
            configured = Path(self.descriptor.path)
            return configured if configured.is_absolute() else self.project_root / configured
        return find_descriptor(Path.cwd(), self.descriptor.candidates)
