"""Nix backend: realizes requirements with ``nix-build``.

Each requirement becomes one ``nix-build <channel> -A <package>
--no-out-link`` call whose last stdout line is the store path.  The
version is only queried (``nix-instantiate --eval``) when the requirement
carries a constraint, since evaluating nixpkgs twice per tool is slow.
"""

from __future__ import annotations

import json
import logging
import subprocess

from envctl.config.models import BackendConfig, NixBackendConfig
from envctl.domain.environment import ResolvedTool
from envctl.domain.errors import ResolutionError
from envctl.domain.requirements import ToolRequirement

logger = logging.getLogger(__name__)


def _last_line(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""


class NixBackend:
    name = "nix"

    def __init__(self, config: NixBackendConfig | None = None) -> None:
        self._config = config or NixBackendConfig()

    @classmethod
    def from_config(cls, config: BackendConfig) -> NixBackend:
        return cls(config.nix)

    def channel_expr(self, requirement: ToolRequirement) -> str:
        return f"<{requirement.channel or self._config.default_channel}>"

    def resolve(self, requirement: ToolRequirement) -> ResolvedTool:
        channel = self.channel_expr(requirement)
        result = self._run(
            requirement,
            self._config.nix_build,
            channel,
            "-A",
            requirement.target,
            "--no-out-link",
        )
        store_path = _last_line(result.stdout)
        if not store_path.startswith("/"):
            raise ResolutionError(
                requirement.name, f"{self._config.nix_build} returned no store path"
            )

        version = self._query_version(requirement, channel) if requirement.version else None
        return ResolvedTool(
            requirement=requirement,
            prefix=store_path,
            version=version,
            backend=self.name,
        )

    def _query_version(self, requirement: ToolRequirement, channel: str) -> str | None:
        expr = f"(import {channel} {{}}).{requirement.target}.version"
        result = self._run(
            requirement,
            self._config.nix_instantiate,
            "--eval",
            "--json",
            "-E",
            expr,
        )
        try:
            value = json.loads(result.stdout)
        except json.JSONDecodeError:
            logger.debug("Unparseable version for %s: %r", requirement.target, result.stdout)
            return None
        return value if isinstance(value, str) else None

    def _run(self, requirement: ToolRequirement, *argv: str) -> subprocess.CompletedProcess[str]:
        """Run a nix command. Any failure names *requirement*."""
        logger.debug("Running %s", " ".join(argv))
        try:
            return subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as exc:
            raise ResolutionError(requirement.name, f"{argv[0]} not found") from exc
        except subprocess.CalledProcessError as exc:
            reason = _last_line(exc.stderr or "") or f"{argv[0]} exited with {exc.returncode}"
            raise ResolutionError(requirement.name, reason) from exc
