"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers
are dispatched by ``result.op`` in :func:`render_result`; unknown ops
fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from envctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from envctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    data = result.data
    if result.op == "resolve":
        return "\n".join(f"{tool['name']} {tool['prefix']}" for tool in data.get("tools", []))
    if result.op == "check":
        return "\n".join(req["name"] for req in data.get("requirements", []))
    if result.op == "backends":
        return "\n".join(data.get("backends", []))
    if result.op == "init":
        return str(data.get("path", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="env.ok")
    op = Text(f"  {result.op}", style="env.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="env.key")
    if key in ("path", "prefix"):
        v = Text(str(value), style="env.path")
    elif key == "backend":
        v = Text(str(value), style="env.tool")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    """Render a span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="env.error")
    op = Text(f"  {result.op}", style="env.op")
    console.print(label, op, Text(": "), msg, sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Descriptor renderers ──────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the parsed requirement list."""
    _status_line(console, result)
    d = result.data
    for key in ("path", "format", "name", "count"):
        if d.get(key) is not None:
            _field(console, key, d[key])

    requirements = d.get("requirements", [])
    if requirements:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Name", style="env.tool", no_wrap=True)
        table.add_column("Version", style="env.version")
        table.add_column("Channel")
        table.add_column("Package")
        for req in requirements:
            table.add_row(
                req["name"],
                req.get("version") or "",
                req.get("channel") or "",
                req.get("package") or "",
            )
        console.print(table)

    if verbose:
        for key, value in d.get("variables", {}).items():
            _field(console, key, value)
        if d.get("shell_hook"):
            _field(console, "shell_hook", d["shell_hook"])
        _render_meta(console, result)


def _render_resolve(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render resolved tools as a table; package and channel only under --verbose."""
    _status_line(console, result)
    d = result.data
    for key in ("path", "backend", "name", "count"):
        if d.get(key) is not None:
            _field(console, key, d[key])

    tools = d.get("tools", [])
    if tools:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Name", style="env.tool", no_wrap=True)
        table.add_column("Version", style="env.version")
        if verbose:
            table.add_column("Package")
            table.add_column("Channel")
        table.add_column("Prefix", style="env.path")
        for tool in tools:
            row = [tool["name"], tool.get("version") or ""]
            if verbose:
                row += [tool.get("package") or "", tool.get("channel") or ""]
            row.append(tool["prefix"])
            table.add_row(*row)
        console.print(table)

    if verbose:
        _render_meta(console, result)


def _render_export(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "format", d.get("format"))
    variables = d.get("variables", {})
    _field(console, "variables", ", ".join(variables) or "(none)")
    if verbose:
        console.print(d.get("script", ""), markup=False)
        _render_meta(console, result)


def _render_backends(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    default = result.data.get("default")
    for name in result.data.get("backends", []):
        if name == default:
            console.print(f"  [env.tool]{name}[/env.tool]  [env.default](default)[/env.default]")
        else:
            console.print(f"  [env.tool]{name}[/env.tool]")
    if default not in result.data.get("backends", []):
        console.print(
            f"  [env.warning]default backend {default!r} is not registered[/env.warning]"
        )
    if verbose:
        _render_meta(console, result)


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("path", "format", "name", "count"):
        if d.get(key) is not None:
            _field(console, key, d[key])
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "check": _render_check,
    "resolve": _render_resolve,
    "export": _render_export,
    "backends": _render_backends,
    "init": _render_init,
}
