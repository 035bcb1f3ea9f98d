"""Command: run a program inside the environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import EnvCommand, descriptor_options

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    cls=EnvCommand,
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
    examples="""\
  envctl run -- make -j8
  envctl run -- clang --version
  envctl -b host run -f environment.toml -- valgrind ./a.out""",
)
@descriptor_options
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
def run(app: AppContext, descriptor: str | None, fmt: str | None, command: tuple[str, ...]) -> None:
    """Run COMMAND with the environment applied; exit with its status."""
    result = app.environment_service().run(descriptor, command, fmt=fmt)
    if not result.ok:
        app.emit(result)
    if app.settings.json_output:
        app.emit(result)
    else:
        app.emit_warnings(result)
    raise SystemExit(result.data["exit_code"])
