"""BaseService: shared construction and plugin event dispatch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from envctl.config.settings import EnvctlSettings
    from envctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Services receive resolved settings and, optionally, a plugin manager
    whose hooks are called after successful operations.
    """

    def __init__(self, settings: EnvctlSettings, plugins: PluginManager | None = None) -> None:
        self._settings = settings
        self._plugins = plugins

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Call *hook_name* on every plugin. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        hook = getattr(self._plugins.hook, hook_name, None)
        if hook is None:
            return
        try:
            hook(**payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed")
