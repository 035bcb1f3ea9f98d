"""Backend protocol and the registry that constructs backends by name."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from envctl.config.models import BackendConfig
    from envctl.domain.environment import ResolvedTool
    from envctl.domain.requirements import ToolRequirement


@runtime_checkable
class Backend(Protocol):
    """Materializes requirements into installed artifacts."""

    name: str

    def resolve(self, requirement: ToolRequirement) -> ResolvedTool:
        """Return the artifact for *requirement* or raise ResolutionError."""
        ...


BackendFactory = Callable[["BackendConfig"], Backend]


class BackendRegistry:
    """Name -> factory table, filled from plugins at startup."""

    def __init__(self) -> None:
        self._factories: dict[str, BackendFactory] = {}

    def register(self, name: str, factory: BackendFactory) -> None:
        if name in self._factories:
            msg = f"Backend {name!r} is already registered"
            raise ValueError(msg)
        self._factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def create(self, name: str, config: BackendConfig) -> Backend:
        """Construct backend *name*. Raises KeyError for unknown names."""
        try:
            factory = self._factories[name]
        except KeyError:
            raise KeyError(name) from None
        return factory(config)
