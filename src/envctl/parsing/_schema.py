"""Document schema shared by the TOML and YAML descriptor formats.

Both formats decode to plain dicts; this module validates that shape and
turns it into an EnvironmentDescriptor.  Schema violations surface as
ParseError so callers never see a pydantic ValidationError.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from envctl.domain.errors import ParseError
from envctl.domain.requirements import DescriptorFormat, EnvironmentDescriptor, ToolRequirement


class ToolEntry(BaseModel):
    """Table form of a ``tools`` entry."""

    model_config = {"extra": "forbid"}

    name: str
    version: str | None = None
    channel: str | None = None
    package: str | None = None


class DescriptorDocument(BaseModel):
    """Top-level keys of a TOML/YAML descriptor."""

    model_config = {"extra": "forbid"}

    name: str | None = None
    shell_hook: str | None = None
    tools: list[str | ToolEntry] = Field(default_factory=list)
    variables: dict[str, str | int | float | bool] = Field(default_factory=dict)


def _stringify(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "1" if value else ""
    return str(value)


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    where = ".".join(str(part) for part in error["loc"])
    return f"{where}: {error['msg']}" if where else error["msg"]


def build_descriptor(data: Any, fmt: DescriptorFormat) -> EnvironmentDescriptor:
    """Validate decoded *data* and build an EnvironmentDescriptor."""
    if data is None:
        data = {}
    if isinstance(data, list):
        # A bare list is shorthand for ``tools = [...]``.
        data = {"tools": data}
    if not isinstance(data, dict):
        raise ParseError(f"descriptor must be a table or a list, not {type(data).__name__}")

    try:
        document = DescriptorDocument.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"invalid descriptor: {_first_error(exc)}") from exc

    requirements: list[ToolRequirement] = []
    for entry in document.tools:
        if isinstance(entry, str):
            requirements.append(ToolRequirement.parse(entry))
        else:
            requirements.append(ToolRequirement(**entry.model_dump()))

    return EnvironmentDescriptor.build(
        requirements,
        name=document.name,
        variables={key: _stringify(value) for key, value in document.variables.items()},
        shell_hook=document.shell_hook,
        source_format=fmt,
    )
