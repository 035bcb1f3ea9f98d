"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``envctl.plugins`` group,
plus the built-in backends plugin.
INVARIANT: Plugin failures are warnings, never errors.
"""

from envctl.plugins.manager import PluginManager

__all__ = ["PluginManager"]
