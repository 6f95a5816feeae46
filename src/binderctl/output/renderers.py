"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from itertools import groupby
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from binderctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from binderctl.services.result import ServiceResult


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal output: card IDs for list results, else a status line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    for key in ("cards", "entries", "added", "changes"):
        items = result.data.get(key)
        if isinstance(items, list) and items:
            return "\n".join(str(item.get("card_id", "")) for item in items)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="binder.ok"), Text(f"  {result.op}", style="binder.op"))


def _field(console: Console, key: str, value: Any) -> None:
    style = "binder.id" if key.endswith("_id") else ""
    if isinstance(value, (dict, list)):
        value = json.dumps(value, separators=(",", ":"))
    console.print(Text(f"  {key}: ", style="binder.key"), Text(str(value), style=style))


def _fields(console: Console, data: dict[str, Any], keys: tuple[str, ...]) -> None:
    for key in keys:
        if key in data:
            _field(console, key, data[key])


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_span(console, value, indent=4)
        else:
            console.print(escape(f"    {key}: {value}"))


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    duration = span.get("duration_ms", 0.0)
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"
    console.print(f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}")
    for child in span.get("children", []):
        _render_span(console, child, indent + 4)


def _card_table(cards: list[dict[str, Any]], *, with_origin: bool = True) -> Table:
    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Slot", style="binder.slot", justify="right", no_wrap=True)
    table.add_column("Card", style="binder.id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Rarity")
    if with_origin:
        table.add_column("Origin")
    for card in cards:
        row = [
            f"{card.get('page')}:{card.get('slot')}",
            str(card.get("card_id", "")),
            escape(str(card.get("name", ""))),
            str(card.get("rarity") or ""),
        ]
        if with_origin:
            origin = str(card.get("origin", ""))
            row.append(f"[binder.local]{origin}[/binder.local]" if origin == "local" else origin)
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="binder.error"),
        Text(f"  {result.op}{code}", style="binder.op"),
        escape(msg),
    )
    if err is None:
        return
    fix = err.detail.get("remediation")
    if fix:
        if fix.get("can_add_pages"):
            console.print(
                f"  hint: add {fix['pages_needed']} page(s) "
                f"(page count {fix['new_page_count']})"
            )
        if fix.get("larger_grid"):
            console.print(f"  hint: switch to the {fix['larger_grid']} grid")
    if "remaining_seconds" in err.detail:
        console.print(f"  retry in {err.detail['remaining_seconds']}s")
    elif err.retryable:
        console.print("  pending changes are kept; run the command again")
    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for key, value in err.detail.items():
            console.print(escape(f"    {key}: {value}"))


# ── Op renderers ──────────────────────────────────────────────────────


def _render_grid(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    _fields(
        console,
        result.data,
        (
            "grid",
            "columns",
            "rows",
            "slots_per_page",
            "page_count",
            "max_physical_page",
            "total_slots",
            "next_larger",
        ),
    )


def _render_state(result: ServiceResult, console: Console) -> None:
    d = result.data
    prefs = d.get("preferences", {})
    console.print(Text(str(prefs.get("name", d.get("binder_id"))), style="bold"))
    _fields(console, d, ("binder_id", "revision", "capacity", "free_slots"))
    _field(console, "grid", prefs.get("grid_size"))
    _field(console, "page_count", prefs.get("page_count"))
    pending = d.get("pending", {})
    if pending.get("total_changes"):
        _field(console, "pending", pending["total_changes"])
    if d.get("cards"):
        console.print(_card_table(d["cards"]))


def _render_layout(result: ServiceResult, console: Console) -> None:
    d = result.data
    title = f"{d.get('name')}  {d.get('grid')}  x{d.get('page_count')} pages"
    if d.get("reverse_holo"):
        title += f"  (+{d.get('variants', 0)} reverse holo)"
    console.print(Text(title, style="bold"))
    for page, entries in groupby(d.get("entries", []), key=lambda e: e["page"]):
        rows = list(entries)
        console.print(
            Text(f"Page {page} ({rows[0]['side']}, spread {rows[0]['spread']})", style="bold")
        )
        table = Table(show_header=True, pad_edge=False)
        table.add_column("Slot", style="binder.slot", justify="right")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Card")
        for e in rows:
            label = escape(str(e["name"]))
            if e["reverse_holo"]:
                label = f"[binder.holo]{label} (reverse holo)[/binder.holo]"
            if e["overflow"]:
                label = f"[binder.overflow]{label} (overflow)[/binder.overflow]"
            table.add_row(str(e["slot"]), str(e["overall_slot"]), label)
        console.print(table)
    if d.get("overflow"):
        console.print(
            Text(
                f"  {d['overflow']} entries exceed capacity {d['capacity']}",
                style="binder.warning",
            )
        )


def _render_added(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    _fields(console, result.data, ("binder_id", "count"))
    if result.data.get("added"):
        console.print(_card_table(result.data["added"], with_origin=False))


def _render_changes(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    _fields(console, result.data, ("binder_id", "count"))
    table = Table(show_header=True, pad_edge=False)
    table.add_column("Seq", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Card", style="binder.id")
    table.add_column("Detail")
    for change in result.data.get("changes", []):
        kind = change["kind"]
        if kind == "add":
            addr = change["placement"]["address"]
            detail = f"-> {addr['page_number']}:{addr['slot_in_page']}"
        elif kind == "move":
            src, dst = change["from_slot"], change["to_slot"]
            detail = (
                f"{src['page_number']}:{src['slot_in_page']} -> "
                f"{dst['page_number']}:{dst['slot_in_page']}"
            )
        elif kind == "update":
            detail = ", ".join(sorted(change["fields"]))
        else:
            detail = ""
        table.add_row(str(change["seq"]), kind, change["card_id"], detail)
    if result.data.get("changes"):
        console.print(table)


def _render_summary(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    _fields(
        console,
        result.data,
        (
            "binder_id",
            "added_count",
            "removed_count",
            "moved_count",
            "updated_count",
            "total_changes",
            "preference_changes",
        ),
    )


def _render_generic(result: ServiceResult, console: Console) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "describe_grid": _render_grid,
    "compute_slots": _render_grid,
    "effective_state": _render_state,
    "render": _render_layout,
    "add_cards": _render_added,
    "list_changes": _render_changes,
    "summarize": _render_summary,
}
