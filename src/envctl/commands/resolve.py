"""Command: resolve every requirement through the active backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import EnvCommand, descriptor_options

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    cls=EnvCommand,
    examples="""\
  envctl resolve
  envctl -b host resolve
  envctl resolve -f environment.yaml
  envctl --json resolve | jq '.data.tools[].prefix'""",
)
@descriptor_options
@click.pass_obj
def resolve(app: AppContext, descriptor: str | None, fmt: str | None) -> None:
    """Resolve the environment and show where each tool lives.

    Fails on the first requirement the backend cannot satisfy.
    """
    app.emit(app.environment_service().resolve(descriptor, fmt=fmt))
