"""Subcommand modules for envctl.

Provides register_commands(), which uses deferred imports to keep
``envctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from envctl.commands.backends import backends
    from envctl.commands.check import check
    from envctl.commands.env import env
    from envctl.commands.init_cmd import init_cmd
    from envctl.commands.resolve import resolve
    from envctl.commands.run import run
    from envctl.commands.shell import shell

    cli.add_command(check)
    cli.add_command(resolve)
    cli.add_command(env)
    cli.add_command(run)
    cli.add_command(shell)
    cli.add_command(backends)
    cli.add_command(init_cmd)
