"""Custom Click base classes with --examples support, plus shared options.

EnvCommand and EnvGroup accept an ``examples`` parameter. When
``--examples`` is passed, the command prints usage examples and exits,
which keeps ``--help`` concise.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

DESCRIPTOR_FORMATS = ("nix", "toml", "yaml")

_F = TypeVar("_F", bound=Callable[..., Any])


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class EnvCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class EnvGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = EnvCommand`` so subcommands accept ``examples``
    without an explicit ``cls=``.
    """

    command_class = EnvCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def descriptor_options(func: _F) -> _F:
    """Add ``-f/--file`` and ``--format`` to a command that reads a descriptor."""
    func = click.option(
        "--format",
        "fmt",
        type=click.Choice(DESCRIPTOR_FORMATS),
        default=None,
        help="Descriptor format (default: from the file suffix).",
    )(func)
    func = click.option(
        "-f",
        "--file",
        "descriptor",
        type=click.Path(dir_okay=False),
        default=None,
        help="Descriptor path (default: discovered by walking up from CWD).",
    )(func)
    return func
