"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from imgroute.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from rich.console import Console

    from imgroute.services.result import ServiceResult


@dataclass(frozen=True)
class _EntityView:
    """How one entity kind is shown: id/name keys and table columns."""

    kind: str
    id_key: str
    name_key: str
    columns: tuple[tuple[str, str], ...]


_VIEWS: dict[str, _EntityView] = {
    "origin": _EntityView(
        kind="origin",
        id_key="originId",
        name_key="originName",
        columns=(("Domain", "originDomain"), ("Path", "originPath")),
    ),
    "policy": _EntityView(
        kind="policy",
        id_key="policyId",
        name_key="policyName",
        columns=(("Default", "isDefault"), ("Description", "description")),
    ),
    "mapping": _EntityView(
        kind="mapping",
        id_key="mappingId",
        name_key="mappingName",
        columns=(
            ("Pattern", "pattern"),
            ("Origin", "originId"),
            ("Policy", "policyId"),
        ),
    ),
}

_PLURALS = {"origins": "origin", "policies": "policy", "mappings": "mapping"}


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if not result.ok:
        _render_error(result, console, verbose=verbose)
    elif result.op.startswith("list_"):
        _render_list(result, console, verbose=verbose)
    elif result.op.startswith("delete_"):
        _render_deleted(result, console, verbose=verbose)
    elif _view_for(result.op) is not None:
        _render_entity(result, console, verbose=verbose)
    else:
        _render_generic(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids only."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"

    view = _view_for(result.op)
    items = result.data.get("items")
    if view is not None and isinstance(items, list):
        return "\n".join(str(item.get(view.id_key, "")) for item in items)
    if view is not None and view.id_key in result.data:
        return str(result.data[view.id_key])
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _view_for(op: str) -> _EntityView | None:
    """``list_origins`` -> origin view, ``get_default_policy`` -> policy view."""
    noun = op.rsplit("_", 1)[-1]
    return _VIEWS.get(_PLURALS.get(noun, noun))


def _cell(item: dict[str, Any], key: str) -> str:
    if key == "pattern":
        return str(item.get("pathPattern") or item.get("hostHeaderPattern") or "")
    value = item.get(key)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else ""
    return str(value)


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="route.ok")
    op = Text(f"  {result.op}", style="route.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="route.key")
    if isinstance(value, dict | list):
        v = Text(json.dumps(value, separators=(",", ":")))
    elif key == "id" or key.endswith("Id"):
        v = Text(str(value), style="route.id")
    elif key.endswith("Pattern"):
        v = Text(str(value), style="route.pattern")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="route.error")
    op = Text(f"  {result.op}", style="route.op")
    code = Text(f"  [{err.code}]" if err else "", style="route.warning")
    console.print(label, op, code, Text(" - "), Text(msg))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Entity renderers ──────────────────────────────────────────────────


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_* results as a table plus the continuation token."""
    view = _view_for(result.op)
    items: list[dict[str, Any]] = result.data.get("items", [])
    if view is None:
        _render_generic(result, console, verbose=verbose)
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="route.id", no_wrap=True)
    table.add_column("Name", style="route.name")
    for header, _ in view.columns:
        table.add_column(header)
    if verbose:
        table.add_column("Created", style="dim")
        table.add_column("Updated", style="dim")

    for item in items:
        row = [_cell(item, view.id_key), _cell(item, view.name_key)]
        row.extend(_cell(item, key) for _, key in view.columns)
        if verbose:
            row.extend([_cell(item, "createdAt"), _cell(item, "updatedAt")])
        table.add_row(*(Text(cell) for cell in row))

    console.print(table)
    console.print(f"\n{len(items)} items")
    token = result.data.get("nextToken")
    if token:
        console.print(Text("next token:", style="route.key"), Text(token))


def _render_entity(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render one entity as a panel of its fields."""
    view = _view_for(result.op)
    assert view is not None
    d = result.data
    lines = [
        f"{key}: {json.dumps(value) if isinstance(value, dict | list) else value}"
        for key, value in d.items()
        if key not in (view.id_key, view.name_key) and (verbose or key != "policyJSON")
    ]
    if not verbose and "policyJSON" in d:
        doc = d["policyJSON"]
        lines.append(
            f"policyJSON: {len(doc.get('transformations', []))} transformations, "
            f"{len(doc.get('outputs', []))} outputs"
        )
    title = f"{d.get(view.id_key, '?')} - {d.get(view.name_key, '?')}"
    _status_line(console, result)
    console.print(
        Panel(
            Text("\n".join(lines)),
            title=title,
            border_style=style_for_kind(view.kind) or "dim",
            expand=False,
        )
    )


def _render_deleted(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "id", result.data.get("id", ""))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)
