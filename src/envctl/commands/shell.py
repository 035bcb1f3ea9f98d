"""Command: start an interactive shell inside the environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import EnvCommand, descriptor_options

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    cls=EnvCommand,
    examples="""\
  envctl shell
  envctl shell -f shell.nix
  SHELL=/usr/bin/zsh envctl shell""",
)
@descriptor_options
@click.pass_obj
def shell(app: AppContext, descriptor: str | None, fmt: str | None) -> None:
    """Enter [shell] program with the environment applied.

    The descriptor's shell hook runs before the shell starts.
    """
    result = app.environment_service().shell(descriptor, fmt=fmt)
    if not result.ok:
        app.emit(result)
    app.emit_warnings(result)
    raise SystemExit(result.data["exit_code"])
