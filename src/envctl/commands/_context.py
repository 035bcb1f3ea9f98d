"""AppContext: shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Plugins and the backend registry are built lazily
so ``--help`` and ``--version`` never load entry points.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from envctl.backends.base import BackendRegistry
    from envctl.config.settings import EnvctlSettings
    from envctl.plugins.manager import PluginManager
    from envctl.services.environment import EnvironmentService
    from envctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: EnvctlSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None
        self._registry: BackendRegistry | None = None

        from envctl.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

        if settings.verbose:
            from envctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager (discovered lazily on first access)."""
        if self._plugins is None:
            from envctl.plugins.manager import PluginManager

            self._plugins = PluginManager()
            self._plugins.discover_and_load()
        return self._plugins

    @property
    def registry(self) -> BackendRegistry:
        if self._registry is None:
            self._registry = self.plugins.build_registry()
        return self._registry

    def environment_service(self) -> EnvironmentService:
        from envctl.services.environment import EnvironmentService

        return EnvironmentService(self.settings, self.registry, self.plugins)

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            self.emit_warnings(result)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def emit_warnings(self, result: ServiceResult) -> None:
        # In JSON mode, warnings are already in the serialized payload.
        if self.settings.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)
