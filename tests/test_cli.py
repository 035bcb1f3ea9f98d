"""Tests for the root CLI group."""

from __future__ import annotations

from click.testing import CliRunner

from envctl import __version__
from envctl.cli import cli


class TestRootGroup:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Commands:" in result.output
        for command in ("check", "resolve", "env", "run", "shell", "backends", "init"):
            assert command in result.output

    def test_global_flags_listed(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])
        for flag in ("--json", "--quiet", "--verbose", "--log-json", "--config", "--backend"):
            assert flag in result.output
