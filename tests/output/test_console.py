"""Tests for the StringIO-backed Rich console."""

from __future__ import annotations

from envctl.output.console import create_console, get_output


class TestConsole:
    def test_captures_output(self) -> None:
        console = create_console(no_color=True)
        console.print("[env.ok]OK[/env.ok] done")
        assert get_output(console) == "OK done\n"
