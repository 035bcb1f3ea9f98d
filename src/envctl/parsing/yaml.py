"""YAML descriptors (``environment.yaml``) via ruamel.yaml's safe loader."""

from __future__ import annotations

from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError, YAMLError

from envctl.domain.errors import ParseError
from envctl.domain.requirements import EnvironmentDescriptor
from envctl.parsing._schema import build_descriptor


def _new_yaml() -> YAML:
    """Fresh safe loader per call; ruamel's YAML object is stateful."""
    return YAML(typ="safe", pure=True)


def parse_yaml(text: str) -> EnvironmentDescriptor:
    """Parse an ``environment.yaml`` document."""
    try:
        data = _new_yaml().load(text)
    except MarkedYAMLError as exc:
        mark = exc.problem_mark
        raise ParseError(
            exc.problem or "invalid YAML",
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
        ) from exc
    except YAMLError as exc:
        raise ParseError(f"invalid YAML: {exc}") from exc
    return build_descriptor(data, "yaml")
