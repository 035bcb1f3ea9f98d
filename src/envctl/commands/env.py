"""Command: print the environment as shell exports."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import EnvCommand, descriptor_options

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    cls=EnvCommand,
    examples="""\
  eval "$(envctl env)"
  envctl env --shell fish | source
  envctl env --shell json > env.json""",
)
@descriptor_options
@click.option(
    "--shell",
    "shell_fmt",
    type=click.Choice(["sh", "fish", "json"]),
    default=None,
    help="Export syntax (default: [shell] export_format).",
)
@click.pass_obj
def env(app: AppContext, descriptor: str | None, fmt: str | None, shell_fmt: str | None) -> None:
    """Print the variables the environment adds, ready for eval."""
    result = app.environment_service().export(descriptor, shell_fmt, fmt=fmt)
    if app.settings.json_output or not result.ok:
        app.emit(result)
        return
    click.echo(result.data["script"], nl=False)
    app.emit_warnings(result)
