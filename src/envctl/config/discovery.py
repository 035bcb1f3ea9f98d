"""Config and descriptor discovery.

Walk-up finders locate envctl.toml and the environment descriptor,
similar to how git finds .git/.  ENVCTL_CONFIG and --config override
config discovery; --file overrides descriptor discovery.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from envctl.config.models import DEFAULT_DESCRIPTOR_CANDIDATES

CONFIG_FILENAME = "envctl.toml"
CONFIG_ENV_VAR = "ENVCTL_CONFIG"


def _walk_up(start: Path | None) -> Iterable[Path]:
    current = (start or Path.cwd()).resolve()
    while True:
        yield current
        parent = current.parent
        if parent == current:
            return
        current = parent


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for envctl.toml.

    Returns the path to the config file, or None if not found.
    Checks ENVCTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    for directory in _walk_up(start):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def find_descriptor(
    start: Path | None = None,
    candidates: Iterable[str] = DEFAULT_DESCRIPTOR_CANDIDATES,
) -> Path | None:
    """Walk up from *start* looking for the first directory holding a descriptor.

    Within one directory, *candidates* are tried in order, so ``shell.nix``
    wins over ``environment.toml`` by default.
    """
    names = list(candidates)
    for directory in _walk_up(start):
        for name in names:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None
