"""Root CLI group for envctl with global flags and command registration."""

from __future__ import annotations

import click

from envctl import __version__
from envctl.commands import register_commands
from envctl.commands._base import EnvGroup
from envctl.commands._context import AppContext
from envctl.config.settings import EnvctlSettings


@click.group(
    cls=EnvGroup,
    invoke_without_command=True,
    examples="""\
  envctl check
  envctl resolve
  eval "$(envctl env)"
  envctl run -- make
  envctl -b host shell""",
)
@click.version_option(version=__version__, prog_name="envctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("-b", "--backend", "backend", default=None, help="Backend to resolve with.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    backend: str | None,
) -> None:
    """envctl: declarative developer environments."""
    ctx.ensure_object(dict)
    flags: dict[str, object] = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
    }
    if backend:
        flags["backend_override"] = backend
    settings = EnvctlSettings.from_cli(config_path=config_path, **flags)
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
