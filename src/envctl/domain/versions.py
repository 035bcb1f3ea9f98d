"""Version constraints for tool requirements.

Constraint syntax is ``OP? VERSION`` where OP is one of
``== != >= <= > < ~``.  A bare version is a component-prefix match:
``10`` accepts ``10.0.1`` but rejects ``100.1``.  ``~X.Y`` accepts
``>= X.Y`` and ``< X+1``.

Versions are compared component-wise after splitting on ``. - _ +``.
Numeric components compare numerically and sort before alphabetic ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from envctl.domain.errors import ParseError

OPERATORS: tuple[str, ...] = ("==", "!=", ">=", "<=", "~", ">", "<")

_SPLIT_RE = re.compile(r"[.\-_+]")
_VERSION_RE = re.compile(r"^[0-9A-Za-z]+(?:[.\-_+][0-9A-Za-z]+)*$")

VersionKey = tuple[tuple[int, int | str], ...]


def version_key(version: str) -> VersionKey:
    """Split *version* into a comparable tuple.

    Examples:
        >>> version_key("10.0.1")
        ((0, 10), (0, 0), (0, 1))
        >>> version_key("2.9-rc1")
        ((0, 2), (0, 9), (1, 'rc1'))
    """
    parts: list[tuple[int, int | str]] = []
    for part in _SPLIT_RE.split(version.strip()):
        if not part:
            continue
        parts.append((0, int(part)) if part.isdigit() else (1, part.lower()))
    return tuple(parts)


@dataclass(frozen=True)
class Constraint:
    """A parsed version constraint."""

    operator: str
    version: str

    def __str__(self) -> str:
        return f"{self.operator}{self.version}" if self.operator != "prefix" else self.version

    def satisfied_by(self, version: str) -> bool:
        actual = version_key(version)
        wanted = version_key(self.version)
        if self.operator == "prefix":
            return actual[: len(wanted)] == wanted
        if self.operator == "~":
            head = wanted[0]
            upper = ((0, head[1] + 1),)  # type: ignore[operator]
            return _compare(actual, wanted) >= 0 and _compare(actual, upper) < 0
        result = _compare(actual, wanted)
        if self.operator == "==":
            return result == 0
        if self.operator == "!=":
            return result != 0
        if self.operator == ">=":
            return result >= 0
        if self.operator == "<=":
            return result <= 0
        if self.operator == ">":
            return result > 0
        return result < 0


def _pad(key: VersionKey, other: VersionKey) -> VersionKey:
    """Pad *key* with zero components so ``10`` equals ``10.0``."""
    missing = len(other) - len(key)
    if missing <= 0:
        return key
    return key + ((0, 0),) * missing


def _compare(left: VersionKey, right: VersionKey) -> int:
    """Three-way comparison with trailing zero components ignored."""
    a, b = _pad(left, right), _pad(right, left)
    return (a > b) - (a < b)


def parse_constraint(text: str) -> Constraint:
    """Parse a constraint string, raising ParseError when malformed."""
    raw = text.strip()
    if not raw:
        raise ParseError("empty version constraint")

    operator = "prefix"
    for op in OPERATORS:
        if raw.startswith(op):
            operator = op
            raw = raw[len(op) :].strip()
            break

    if not _VERSION_RE.match(raw):
        raise ParseError(f"invalid version constraint {text!r}")
    if operator == "~" and version_key(raw)[0][0] != 0:
        raise ParseError(f"'~' needs a numeric leading component: {text!r}")
    return Constraint(operator=operator, version=raw)


def version_satisfies(constraint: str, version: str) -> bool:
    """Return whether *version* satisfies *constraint*."""
    return parse_constraint(constraint).satisfied_by(version)
