"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a StringIO-backed Rich Console. Renderers are
dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from streetgrid.output.console import (
    create_console,
    get_output,
    style_for_action,
    style_for_category,
)

if TYPE_CHECKING:
    from rich.console import Console

    from streetgrid.services.result import ServiceResult


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
    """Minimal output: ids for list results, a status line otherwise."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item.get("id") or item.get("zone", "")) for item in items)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="sg.ok")
    op = Text(f"  {result.op}", style="sg.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="sg.key")
    if key == "id" or key.endswith("_id") or key == "swap_with":
        v = Text(str(value), style="sg.id")
    elif key == "zone":
        v = Text(str(value), style="sg.zone")
    elif key == "action":
        v = Text(str(value), style=style_for_action(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _cell(position: dict[str, Any] | None) -> str:
    if not position:
        return "-"
    return f"r{position['row']}c{position['col']}"


def _render_warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text("  warning: ", style="sg.warning"), warning, end="")
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
    """Render a span tree; spans over their frame budget are flagged red."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)
    style = "bold red" if span_data.get("over_budget") else "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    if span_data.get("budget_ms") is not None:
        line += f"  (budget {span_data['budget_ms']}ms)"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="sg.error"), Text(f"  {result.op}", style="sg.op"), f"{code} — {msg}"
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Zone renderers ────────────────────────────────────────────────────


def _render_zones(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Zone", style="sg.zone", no_wrap=True)
    table.add_column("Cols", justify="right")
    table.add_column("Rows", justify="right")
    table.add_column("Streets", justify="right")
    if verbose:
        table.add_column("Source", style="dim")
    for item in result.data.get("items", []):
        row = [item["zone"], str(item["main_cols"]), str(item["max_rows"]), str(item["streets"])]
        if verbose:
            row.append("config" if item.get("configured") else "built-in")
        table.add_row(*row)
    console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_topology(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("zone", "main_cols", "max_rows", "layout"):
        _field(console, key, d[key])

    streets = d.get("streets", [])
    if streets:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Street", style="bold", no_wrap=True)
        table.add_column("Axis %", justify="right")
        table.add_column("Axis px", justify="right")
        table.add_column("Width", justify="right")
        table.add_column("Rows")
        table.add_column("Layout")
        table.add_column("Sides")
        for s in streets:
            table.add_row(
                s["name"],
                f"{s['axis_offset']:g}",
                f"{s['axis_px']:g}",
                f"{s['width']:g}",
                f"{s['rows'][0]}-{s['rows'][1]}",
                s["layout"],
                ",".join(s["sides"]),
            )
        console.print(table)

    if verbose:
        for row in d.get("rows", []):
            where = row.get("street") or "main"
            console.print(f"    row {row['row']:>3}  {where:<10} {row['side']}")
        _render_meta(console, result)


# ── Geometry renderers ────────────────────────────────────────────────


def _render_pixel(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "cell", f"{d['zone']} r{d['row']}c{d['col']}")
    _field(console, "pixel", f"({d['x']:g}, {d['y']:g})")
    _field(console, "marker_size", d["marker_size"])
    _field(console, "layout", d["layout"])
    if verbose:
        _render_meta(console, result)


def _render_hit(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "point", f"({d['x']:g}, {d['y']:g})")
    _field(console, "cell", f"{d['zone']} r{d['row']}c{d['col']}")
    if verbose:
        _render_meta(console, result)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    vp = d["viewport"]
    _field(console, "zone", d["zone"])
    _field(console, "viewport", f"{vp['width']:g}x{vp['height']:g} ({d['layout']})")
    _field(console, "cells", d["cells"])
    _field(console, "mismatches", len(d["mismatches"]))
    if verbose:
        _render_meta(console, result)


def _render_markers(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("ID", style="sg.id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Cell")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("Size", justify="right")
    for item in result.data.get("items", []):
        name = Text(item["name"], style="sg.pending" if item.get("pending") else "")
        if item.get("vip"):
            name.append(" ★")
        table.add_row(
            item["id"],
            name,
            Text(item["category"], style=style_for_category(item["category"])),
            f"r{item['row']}c{item['col']}",
            f"{item['x']:g}",
            f"{item['y']:g}",
            str(item["marker_size"]),
        )
    console.print(table)
    _render_warnings(console, result)
    if verbose:
        _render_meta(console, result)


# ── Drag renderers ────────────────────────────────────────────────────


def _render_drop(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "entity_id", d["entity_id"])
    _field(console, "action", d["action"])
    _field(console, "cell", _cell(d.get("position")))
    if d.get("swap_with"):
        _field(console, "swap_with", d["swap_with"])
    overlay = d.get("overlay") or {}
    for eid, pos in overlay.items():
        console.print(f"    {eid} -> {_cell(pos)}")
    for toast in d.get("toasts", []):
        console.print(Text(f"  [{toast['kind']}] ", style="dim"), toast["message"], end="")
        console.print()
    _render_warnings(console, result)
    if verbose:
        _field(console, "payload", d.get("payload", {}))
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "list_zones": _render_zones,
    "describe_topology": _render_topology,
    "to_pixel": _render_pixel,
    "from_pixel": _render_hit,
    "check_round_trip": _render_check,
    "render": _render_markers,
    "drop": _render_drop,
}
