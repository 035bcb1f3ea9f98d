"""Backends: the narrow interface to external package managers.

Each backend turns one ToolRequirement into a ResolvedTool or raises
ResolutionError.  Backends are constructed per invocation from
BackendConfig and passed explicitly to the resolver.
"""

from envctl.backends.base import Backend, BackendFactory, BackendRegistry

__all__ = ["Backend", "BackendFactory", "BackendRegistry"]
