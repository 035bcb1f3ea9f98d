"""The two fatal error kinds of an envctl invocation.

``ParseError`` covers everything wrong with a descriptor's text.
``ResolutionError`` names the single requirement a backend could not satisfy.
Services convert both into failed ServiceResults; nothing else is fatal.
"""

from __future__ import annotations


class EnvctlError(Exception):
    """Base class for envctl domain errors."""


class ParseError(EnvctlError):
    """Malformed descriptor text, duplicate requirement, or invalid constraint."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        location = [part for part in (self.source, self.line, self.column) if part is not None]
        if not location:
            return self.message
        return ":".join(str(part) for part in location) + f": {self.message}"

    def with_source(self, source: str) -> ParseError:
        """Return a copy of this error attributed to *source*."""
        return ParseError(self.message, source=source, line=self.line, column=self.column)


class ResolutionError(EnvctlError):
    """A named requirement could not be satisfied by the backend."""

    def __init__(self, requirement: str, reason: str) -> None:
        self.requirement = requirement
        self.reason = reason
        super().__init__(f"cannot resolve {requirement!r}: {reason}")
