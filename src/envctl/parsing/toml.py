"""TOML descriptors (``environment.toml``) via stdlib tomllib."""

from __future__ import annotations

import re
import tomllib

from envctl.domain.errors import ParseError
from envctl.domain.requirements import EnvironmentDescriptor
from envctl.parsing._schema import build_descriptor

_LOCATION_RE = re.compile(r"\(at line (\d+), column (\d+)\)")


def parse_toml(text: str) -> EnvironmentDescriptor:
    """Parse an ``environment.toml`` document."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        message = str(exc)
        match = _LOCATION_RE.search(message)
        if match is None:
            raise ParseError(message) from exc
        raise ParseError(
            _LOCATION_RE.sub("", message).strip(),
            line=int(match.group(1)),
            column=int(match.group(2)),
        ) from exc
    return build_descriptor(data, "toml")
