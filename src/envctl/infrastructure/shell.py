"""Emit a resolved environment as shell code, or run a process inside it.

Export scripts go to stdout for ``eval``; nothing else may write there.
"""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from envctl.domain.environment import SEARCH_PATHS

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126


def changed_variables(full_env: Mapping[str, str], base_env: Mapping[str, str]) -> dict[str, str]:
    """Variables of *full_env* that are new or differ from *base_env*."""
    return {key: value for key, value in full_env.items() if base_env.get(key) != value}


def _fish_value(key: str, value: str) -> str:
    if key in SEARCH_PATHS:
        return " ".join(shlex.quote(part) for part in value.split(os.pathsep) if part)
    return shlex.quote(value)


def render_exports(
    variables: Mapping[str, str],
    fmt: str,
    *,
    shell_hook: str | None = None,
) -> str:
    """Format *variables* for *fmt* (``sh``, ``fish``, or ``json``).

    The shell hook is appended for the shell formats and omitted from JSON.
    """
    if fmt == "json":
        return json.dumps(dict(variables), indent=2) + "\n"
    if fmt == "sh":
        lines = [f"export {key}={shlex.quote(value)}" for key, value in variables.items()]
    elif fmt == "fish":
        lines = [f"set -gx {key} {_fish_value(key, value)}" for key, value in variables.items()]
    else:
        raise ValueError(f"unknown export format {fmt!r}")
    if shell_hook:
        lines.append(shell_hook.rstrip("\n"))
    return "\n".join(lines) + "\n" if lines else ""


def build_shell_command(program: str, shell_hook: str | None = None) -> list[str]:
    """Argv for an interactive *program*, running *shell_hook* first if given."""
    if not shell_hook:
        return [program]
    return [program, "-c", f"{shell_hook.rstrip()}\nexec {shlex.quote(program)}"]


def run_in_environment(
    argv: Sequence[str],
    env: Mapping[str, str],
    cwd: Path | None = None,
) -> int:
    """Run *argv* with exactly *env* and return its exit code.

    A missing executable returns 127 and one that cannot be executed 126,
    matching what a POSIX shell would report.
    """
    logger.debug("Running %s", " ".join(argv))
    try:
        completed = subprocess.run(list(argv), env=dict(env), cwd=cwd, check=False)
    except FileNotFoundError:
        logger.error("%s: command not found", argv[0])
        return EXIT_NOT_FOUND
    except PermissionError:
        logger.error("%s: permission denied", argv[0])
        return EXIT_NOT_EXECUTABLE
    return completed.returncode
