"""Descriptor Parser: declarative text in, EnvironmentDescriptor out.

Parsing is a pure function of the input text: the same text always yields
an equal descriptor, and any defect (syntax, duplicate requirement name,
invalid constraint) raises ParseError.  ``load_descriptor`` is the only
entry point that touches the filesystem.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from envctl.domain.errors import ParseError
from envctl.domain.requirements import DescriptorFormat, EnvironmentDescriptor
from envctl.parsing.nix import parse_nix
from envctl.parsing.toml import parse_toml
from envctl.parsing.yaml import parse_yaml

logger = logging.getLogger(__name__)

PARSERS: dict[str, Callable[[str], EnvironmentDescriptor]] = {
    "nix": parse_nix,
    "toml": parse_toml,
    "yaml": parse_yaml,
}

SUFFIX_FORMATS: dict[str, DescriptorFormat] = {
    ".nix": "nix",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def detect_format(path: Path) -> DescriptorFormat:
    """Infer the descriptor format from a file name."""
    fmt = SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise ParseError(f"unknown descriptor format for {path.name!r}", source=str(path))
    return fmt


def parse_descriptor(
    text: str,
    *,
    fmt: str,
    source: str | None = None,
) -> EnvironmentDescriptor:
    """Parse descriptor *text* written in *fmt*."""
    parser = PARSERS.get(fmt)
    if parser is None:
        raise ParseError(f"unknown descriptor format {fmt!r}", source=source)
    try:
        return parser(text)
    except ParseError as exc:
        if source is not None and exc.source is None:
            raise exc.with_source(source) from exc
        raise


def load_descriptor(path: Path, *, fmt: str | None = None) -> EnvironmentDescriptor:
    """Read and parse the descriptor at *path*."""
    resolved_fmt = fmt or detect_format(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(f"cannot read descriptor: {exc.strerror}", source=str(path)) from exc
    except UnicodeDecodeError as exc:
        raise ParseError(
            f"descriptor is not valid UTF-8 (byte {exc.start})", source=str(path)
        ) from exc
    descriptor = parse_descriptor(text, fmt=resolved_fmt, source=str(path))
    logger.debug(
        "Loaded %s descriptor %s with %d requirements",
        resolved_fmt,
        path,
        len(descriptor.requirements),
    )
    return descriptor


__all__ = ["detect_format", "load_descriptor", "parse_descriptor"]
