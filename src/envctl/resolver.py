"""Resolver/Invoker: descriptor plus backend in, ResolvedEnvironment out.

INVARIANT: Fail-fast. The first requirement that cannot be satisfied
raises ResolutionError naming it; no partial environment is returned.
The package store is reached only through the backend passed in.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping

import structlog

from envctl.backends.base import Backend
from envctl.domain.environment import ResolvedEnvironment, ResolvedTool
from envctl.domain.errors import ResolutionError
from envctl.domain.requirements import EnvironmentDescriptor, ToolRequirement
from envctl.domain.versions import parse_constraint

log = structlog.get_logger(__name__)


def apply_alias(requirement: ToolRequirement, aliases: Mapping[str, str]) -> ToolRequirement:
    """Fill ``package`` from *aliases* unless the descriptor already set it."""
    if requirement.package is not None or requirement.name not in aliases:
        return requirement
    return requirement.model_copy(update={"package": aliases[requirement.name]})


def _check_version(requirement: ToolRequirement, tool: ResolvedTool) -> None:
    if requirement.version is None:
        return
    if tool.version is None:
        raise ResolutionError(
            requirement.name,
            f"version constraint {requirement.version} given but backend reported no version",
        )
    if not parse_constraint(requirement.version).satisfied_by(tool.version):
        raise ResolutionError(
            requirement.name,
            f"version {tool.version} does not satisfy {requirement.version}",
        )


def resolve_requirement(requirement: ToolRequirement, backend: Backend) -> ResolvedTool:
    """Resolve one requirement, normalizing backend failures to ResolutionError."""
    try:
        tool = backend.resolve(requirement)
    except ResolutionError:
        raise
    except (OSError, subprocess.SubprocessError) as exc:
        raise ResolutionError(requirement.name, str(exc) or type(exc).__name__) from exc
    _check_version(requirement, tool)
    return tool


def resolve_environment(
    descriptor: EnvironmentDescriptor,
    backend: Backend,
    *,
    aliases: Mapping[str, str] | None = None,
) -> ResolvedEnvironment:
    """Resolve every requirement of *descriptor* through *backend*, in order."""
    tools: list[ResolvedTool] = []
    for requirement in descriptor.requirements:
        requirement = apply_alias(requirement, aliases or {})
        log.debug(
            "requirement.resolving",
            requirement=requirement.name,
            package=requirement.target,
            backend=backend.name,
        )
        try:
            tool = resolve_requirement(requirement, backend)
        except ResolutionError as exc:
            log.info("requirement.failed", requirement=exc.requirement, reason=exc.reason)
            raise
        log.debug("requirement.resolved", requirement=tool.name, prefix=str(tool.prefix))
        tools.append(tool)

    return ResolvedEnvironment.from_descriptor(descriptor, tools)
