"""Host backend: exposes tools already installed on this machine.

Executables are found with ``shutil.which``; the prefix is the directory
above ``bin/``.  Packages without an executable (libraries such as
libxml2) fall back to ``pkg-config``.  Versions are only queried for
constrained requirements.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from envctl.config.models import BackendConfig, HostBackendConfig
from envctl.domain.environment import ResolvedTool
from envctl.domain.errors import ResolutionError
from envctl.domain.requirements import ToolRequirement

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"\d+(?:\.\d+)+")


class HostBackend:
    name = "host"

    def __init__(self, config: HostBackendConfig | None = None) -> None:
        self._config = config or HostBackendConfig()

    @classmethod
    def from_config(cls, config: BackendConfig) -> HostBackend:
        return cls(config.host)

    def resolve(self, requirement: ToolRequirement) -> ResolvedTool:
        executable = shutil.which(requirement.target, path=self._config.search_path)
        if executable is not None:
            exe = Path(executable)
            version = self._executable_version(exe) if requirement.version else None
            return ResolvedTool(
                requirement=requirement,
                prefix=exe.parent.parent,
                version=version,
                backend=self.name,
            )

        prefix = self._pkg_config(requirement.target, "--variable=prefix")
        if prefix:
            version = (
                self._pkg_config(requirement.target, "--modversion")
                if requirement.version
                else None
            )
            return ResolvedTool(
                requirement=requirement,
                prefix=Path(prefix),
                version=version,
                backend=self.name,
            )

        raise ResolutionError(
            requirement.name,
            f"{requirement.target!r} is neither on PATH nor known to pkg-config",
        )

    def _executable_version(self, exe: Path) -> str | None:
        """First dotted number printed by ``<exe> --version``."""
        try:
            result = subprocess.run(
                [str(exe), "--version"],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            logger.debug("%s --version failed: %s", exe, exc)
            return None
        match = _VERSION_RE.search(result.stdout or result.stderr or "")
        return match.group(0) if match else None

    def _pkg_config(self, package: str, flag: str) -> str | None:
        try:
            result = subprocess.run(
                [self._config.pkg_config, flag, package],
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.debug("%s %s %s failed: %s", self._config.pkg_config, flag, package, exc)
            return None
        return result.stdout.strip() or None
