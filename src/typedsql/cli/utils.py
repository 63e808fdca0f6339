"""
CLI utility helpers -- database opening and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import asdict, is_dataclass
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from typedsql.core.errors import TypedSQLError
from typedsql.execution.context import Database
from typedsql.rows import Row
from typedsql.sakila import create_schema, seed_sample

console = Console()
err_console = Console(stderr=True)


# ── Database helper ──────────────────────────────────────────────────────


def open_database(database: str | None = None) -> Database:
    """Open ``database`` (a path or URL), or an in-memory seeded sample."""
    if database is None:
        db = Database.from_url("sqlite:///:memory:")
        create_schema(db)
        seed_sample(db)
        return db
    url = database if "://" in database else f"sqlite:///{database}"
    return Database.from_url(url)


def fail(error: TypedSQLError) -> NoReturn:
    """Print a library error and exit non-zero."""
    category = error.category.value
    err_console.print(f"[bold red]Error[/bold red] ({category}): {escape(error.message)}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def to_dict(obj: Any) -> dict[str, Any]:
    if isinstance(obj, Row):
        return obj.as_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return {"value": str(obj)}


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_rows(rows: Sequence[Any], *, title: str = "") -> None:
    """Render rows (or mapped records) as a rich table."""
    payload = [to_dict(row) for row in rows]
    if not payload:
        console.print(f"[dim]{title}: no rows[/dim]")
        return

    table = Table(title=title or None)
    for key in payload[0]:
        table.add_column(key)
    for item in payload:
        table.add_row(*(_cell(value) for value in item.values()))
    console.print(table)


def _cell(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(
            str(next(iter(v.values()))) if isinstance(v, dict) and len(v) == 1 else str(v)
            for v in value
        )
    return "" if value is None else str(value)
