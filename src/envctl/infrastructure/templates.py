"""Jinja2 template loading for generated descriptors."""

from __future__ import annotations

import json
import re

from jinja2 import Environment, PackageLoader, StrictUndefined


def nix_string(value: str) -> str:
    """Quote *value* as a double-quoted Nix string."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


_NIX_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_'-]*$")


def nix_attr(path: str) -> str:
    """Render a dotted attribute path, quoting segments that are not identifiers."""
    return ".".join(
        part if _NIX_IDENT.match(part) else nix_string(part) for part in path.split(".")
    )


def build_template_environment(group: str) -> Environment:
    """Build a Jinja2 environment over the packaged ``templates/<group>`` directory.

    ``quote`` renders a JSON string literal, which is also a valid TOML basic
    string and YAML double-quoted scalar.
    """
    env = Environment(
        loader=PackageLoader("envctl", f"templates/{group}"),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )
    env.filters["quote"] = json.dumps
    env.filters["nix_string"] = nix_string
    env.filters["nix_attr"] = nix_attr
    return env
