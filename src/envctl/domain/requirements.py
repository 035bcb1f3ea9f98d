"""Tool requirements and the environment descriptor that orders them.

INVARIANT: Requirement names are unique within one descriptor.
Duplicates are a ParseError, never silently deduplicated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from envctl.domain.errors import ParseError
from envctl.domain.versions import parse_constraint

NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_+.\-]*$")
CHANNEL_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-/]*$")
VARIABLE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DescriptorFormat = Literal["nix", "toml", "yaml"]


def validate_name(name: str) -> str:
    """Return *name* unchanged, or raise ParseError if it is not a valid identifier."""
    if not NAME_PATTERN.match(name):
        raise ParseError(f"invalid requirement name {name!r}")
    return name


class ToolRequirement(BaseModel):
    """One named tool dependency, optionally version- or channel-constrained."""

    model_config = {"frozen": True}

    name: str
    version: str | None = None
    channel: str | None = None
    package: str | None = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return validate_name(value)

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return str(parse_constraint(value))

    @field_validator("channel")
    @classmethod
    def _check_channel(cls, value: str | None) -> str | None:
        if value is not None and not CHANNEL_PATTERN.match(value):
            raise ParseError(f"invalid channel {value!r}")
        return value

    @classmethod
    def parse(cls, spec: str) -> ToolRequirement:
        """Parse the compact ``[channel:]name[@constraint]`` form.

        Examples:
            >>> ToolRequirement.parse("valgrind").name
            'valgrind'
            >>> r = ToolRequirement.parse("nixos-unstable:clang@>=15")
            >>> (r.channel, r.name, r.version)
            ('nixos-unstable', 'clang', '>=15')
        """
        text = spec.strip()
        channel: str | None = None
        version: str | None = None
        if "@" in text:
            text, version = text.split("@", 1)
        if ":" in text:
            channel, text = text.split(":", 1)
        return cls(name=text, version=version, channel=channel or None)

    @property
    def target(self) -> str:
        """Backend package attribute, falling back to the logical name."""
        return self.package or self.name

    def __str__(self) -> str:
        text = self.name
        if self.channel:
            text = f"{self.channel}:{text}"
        if self.version:
            text = f"{text}@{self.version}"
        return text


class EnvironmentDescriptor(BaseModel):
    """An ordered, duplicate-free list of tool requirements plus shell settings."""

    model_config = {"frozen": True}

    requirements: tuple[ToolRequirement, ...] = ()
    name: str | None = None
    variables: dict[str, str] = Field(default_factory=dict)
    shell_hook: str | None = None
    source_format: DescriptorFormat = "toml"

    @field_validator("requirements")
    @classmethod
    def _check_unique(cls, value: tuple[ToolRequirement, ...]) -> tuple[ToolRequirement, ...]:
        seen: set[str] = set()
        for requirement in value:
            if requirement.name in seen:
                raise ParseError(f"duplicate requirement {requirement.name!r}")
            seen.add(requirement.name)
        return value

    @field_validator("variables")
    @classmethod
    def _check_variable_names(cls, value: dict[str, str]) -> dict[str, str]:
        for key in value:
            if not VARIABLE_PATTERN.match(key):
                raise ParseError(f"invalid variable name {key!r}")
        return value

    @classmethod
    def build(
        cls,
        requirements: Iterable[ToolRequirement],
        **fields: object,
    ) -> EnvironmentDescriptor:
        """Construct a descriptor from any iterable of requirements."""
        return cls(requirements=tuple(requirements), **fields)  # type: ignore[arg-type]

    def names(self) -> list[str]:
        return [r.name for r in self.requirements]

    def get(self, name: str) -> ToolRequirement | None:
        for requirement in self.requirements:
            if requirement.name == name:
                return requirement
        return None
