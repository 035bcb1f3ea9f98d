"""Command: write a starter environment descriptor."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from envctl.commands._base import DESCRIPTOR_FORMATS, EnvCommand

if TYPE_CHECKING:
    from envctl.commands._context import AppContext


@click.command(
    "init",
    cls=EnvCommand,
    examples="""\
  envctl init -t clang -t valgrind
  envctl init --format nix -t llvm_10 -t libxml2
  envctl init --format yaml --name dev -t "python3@>=3.11" ./project
  envctl init --force -t cmake""",
)
@click.argument("directory", type=click.Path(file_okay=False), default=".")
@click.option(
    "-t",
    "--tool",
    "tools",
    multiple=True,
    help="Requirement as [channel:]name[@constraint]; repeatable.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(DESCRIPTOR_FORMATS),
    default="toml",
    show_default=True,
    help="Descriptor format to write.",
)
@click.option("--name", default=None, help="Environment name.")
@click.option("--force", is_flag=True, help="Overwrite an existing descriptor.")
@click.pass_obj
def init_cmd(
    app: AppContext,
    directory: str,
    tools: tuple[str, ...],
    fmt: str,
    name: str | None,
    force: bool,
) -> None:
    """Create a descriptor in DIRECTORY listing the given tools."""
    from envctl.backends.base import BackendRegistry
    from envctl.services.environment import EnvironmentService

    # No backend is needed, so plugin discovery is skipped.
    svc = EnvironmentService(app.settings, BackendRegistry())
    app.emit(svc.init(directory, tools, fmt=fmt, name=name, force=force))
