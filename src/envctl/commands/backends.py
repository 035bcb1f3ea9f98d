"""Command: list the registered backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import EnvCommand

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    cls=EnvCommand,
    examples="""\
  envctl backends
  envctl --json backends""",
)
@click.pass_obj
def backends(app: AppContext) -> None:
    """List backends contributed by built-in and installed plugins."""
    app.emit(app.environment_service().list_backends())
