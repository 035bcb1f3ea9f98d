"""Pluggy hook specifications for envctl.

One setup-time hook lets plugins contribute backends; one lifecycle hook
fires after an environment resolves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from envctl.backends.base import BackendFactory

hookspec = pluggy.HookspecMarker("envctl")


class EnvctlHookSpec:
    """Hook specifications for the envctl plugin system."""

    @hookspec
    def register_backends(self) -> dict[str, BackendFactory] | None:
        """Return ``{backend_name: factory}``; each factory takes a BackendConfig."""

    @hookspec
    def post_resolve(self, environment_name: str | None, tools: list[str]) -> None:
        """Called after every requirement of an environment resolved."""
