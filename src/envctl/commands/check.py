"""Command: parse a descriptor without resolving it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import EnvCommand, descriptor_options

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    cls=EnvCommand,
    examples="""\
  envctl check
  envctl check -f shell.nix
  envctl check -f deps.txt --format toml
  envctl --json check""",
)
@descriptor_options
@click.pass_obj
def check(app: AppContext, descriptor: str | None, fmt: str | None) -> None:
    """Validate the environment descriptor and list its requirements."""
    app.emit(app.environment_service().check(descriptor, fmt=fmt))
