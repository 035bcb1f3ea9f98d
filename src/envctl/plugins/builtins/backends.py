"""Built-in backends plugin: nix, host, and static."""

from __future__ import annotations

import pluggy

from envctl.backends.base import BackendFactory
from envctl.backends.host import HostBackend
from envctl.backends.nix import NixBackend
from envctl.backends.static import StaticBackend

hookimpl = pluggy.HookimplMarker("envctl")


class BuiltinBackendsPlugin:
    @hookimpl
    def register_backends(self) -> dict[str, BackendFactory]:
        return {
            NixBackend.name: NixBackend.from_config,
            HostBackend.name: HostBackend.from_config,
            StaticBackend.name: StaticBackend.from_config,
        }
