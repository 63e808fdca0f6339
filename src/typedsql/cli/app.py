"""
Root Typer application for the typedsql CLI.

``ddl`` prints CREATE TABLE statements for the bundled Sakila sample schema
(or for a YAML declaration given with ``--schema``); ``demo`` runs the
sample queries against it.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.markup import escape
from typer import Typer

from typedsql.cli.utils import (
    console,
    err_console,
    fail,
    open_database,
    print_json,
    print_rows,
    to_dict,
)
from typedsql.core.dialect import get_dialect
from typedsql.core.errors import TypedSQLError
from typedsql.core.logging import configure_logging
from typedsql.core.settings import TypedSQLSettings
from typedsql.mapping import RecordMapping
from typedsql.model.registry import create_all, load_schema_file

app = Typer(
    name="typedsql",
    help="typedsql: typed SQL query builder, demonstrated on Sakila.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("typedsql")
        except PackageNotFoundError:
            from typedsql import __version__ as v
        typer.echo(f"typedsql {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(  # noqa: UP007
        None, "--log-level", help="Log level for stderr events (DEBUG shows SQL)."
    ),
) -> None:
    """typedsql CLI: print the sample schema and run the sample queries."""
    settings = TypedSQLSettings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.json_logs,
        stream=sys.stderr,
        cache=False,
    )


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("ddl")
def ddl_command(
    dialect: str = typer.Option("sqlite", "--dialect", help="sqlite or postgresql"),
    schema: Path | None = typer.Option(  # noqa: UP007
        None, "--schema", help="YAML schema declaration (default: the Sakila sample)"
    ),
) -> None:
    """Print CREATE TABLE statements for the sample schema or a YAML declaration."""
    from typedsql import sakila

    try:
        sql_dialect = get_dialect(dialect)
    except ValueError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from None

    registry = sakila.registry
    if schema is not None:
        try:
            registry = load_schema_file(schema)
        except TypedSQLError as e:
            fail(e)

    statements = create_all(registry, sql_dialect)
    for statement in statements:
        console.print(f"{statement};", highlight=False, soft_wrap=True)


@app.command("demo")
def demo_command(
    database: str | None = typer.Option(  # noqa: UP007
        None,
        "--database",
        "-d",
        help="SQLite path or database URL holding the sample schema (default: in-memory sample)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Run the sample queries: explicit joins, implicit joins and a multiset."""
    from typedsql import sakila

    try:
        with open_database(database) as db:
            explicit = db.fetch(sakila.horror_actors_explicit())
            implicit = db.fetch(sakila.horror_actors_implicit())
            actors = db.fetch_mapped(
                sakila.actors_with_films(), RecordMapping.positional(sakila.ActorWithFilms)
            )
    except TypedSQLError as e:
        fail(e)

    if as_json:
        print_json(
            {
                "explicit_rows": len(explicit),
                "same_rows": explicit == implicit,
                "horror_actors": [to_dict(row) for row in implicit],
                "actors": [to_dict(actor) for actor in actors],
            }
        )
        return

    console.print(
        f"Horror actors: [bold]{len(explicit)}[/bold] rows (explicit joins), "
        f"[bold]{len(implicit)}[/bold] rows (implicit joins)"
    )
    console.print(f"Same rows in the same order: [bold]{explicit == implicit}[/bold]")
    print_rows(implicit, title="Horror actors")
    print_rows(actors, title="Actors and their films")
