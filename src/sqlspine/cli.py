"""
CLI: ``sqlspine`` - inspect a database the way the query layer sees it.

Entry point::

    sqlspine schema --url sqlite:///app.db
    sqlspine schema --url mysql://app:secret@db/shop --table users --json
    sqlspine query --url sqlite:///app.db "SELECT * FROM users LIMIT 5"
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from sqlspine.core.errors import SqlSpineError
from sqlspine.core.logging import configure_logging, debug_mode_enabled, set_debug_mode
from sqlspine.core.settings import get_settings

app = typer.Typer(
    name="sqlspine",
    help="sqlspine - fluent SQL builder and record mapper.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("sqlspine")
        except PackageNotFoundError:
            from sqlspine import __version__ as v
        typer.echo(f"sqlspine {v}")
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
    debug: bool = typer.Option(False, "--debug", help="Log every statement."),
) -> None:
    """sqlspine CLI - schema inspection and ad-hoc queries."""
    configure_logging(level="DEBUG" if debug else "WARNING", json_format=get_settings().json_logs)
    set_debug_mode(debug)


def _open(url: str | None, *, load_schema: bool = True):
    from sqlspine.query.gateway import Database

    settings = get_settings()
    update: dict[str, Any] = {"load_schema": load_schema, "debug": settings.debug or debug_mode_enabled()}
    if url:
        update["url"] = url
    try:
        return Database.open(settings.model_copy(update=update))
    except SqlSpineError as e:
        _fail(e)


def _fail(error: SqlSpineError) -> None:
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    raise typer.Exit(code=1)


def _print_rows(rows: list[dict[str, Any]], *, title: str = "") -> None:
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    table = Table(title=title or None, show_lines=False)
    for name in rows[0]:
        table.add_column(str(name))
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row.values()))
    console.print(table)


@app.command()
def schema(
    url: str | None = typer.Option(None, "--url", "-u", help="Database URL (default: SQLSPINE_URL)"),
    table: str | None = typer.Option(None, "--table", "-t", help="Only this table"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the schema cache: tables and their column descriptors."""
    db = _open(url)
    with db:
        tables = [table] if table else db.schema.tables()
        missing = [name for name in tables if not db.schema.has_table(name)]
        if missing:
            err_console.print(f"[bold red]Error[/bold red]: unknown table {missing[0]!r}")
            raise typer.Exit(code=1)

        if json_out:
            payload = {name: [asdict(col) for col in db.schema.get(name)] for name in tables}
            console.print_json(json.dumps(payload, default=str))
            return

        if not tables:
            console.print("[dim]No tables.[/dim]")
            return
        for name in tables:
            rows = [
                {
                    "column": col.name,
                    "type": col.type + (f"({col.size})" if col.size else ""),
                    "unsigned": "yes" if col.unsigned else "",
                    "null": "YES" if col.nullable else "NO",
                    "key": "PRI" if col.primary_key else "",
                    "default": col.default,
                    "extra": "auto_increment" if col.auto_increment else "",
                }
                for col in db.schema.get(name)
            ]
            _print_rows(rows, title=name)


@app.command()
def query(
    sql: str = typer.Argument(..., help="Read statement to run"),
    url: str | None = typer.Option(None, "--url", "-u", help="Database URL (default: SQLSPINE_URL)"),
    timeout: float | None = typer.Option(None, "--timeout", help="Deadline in seconds (minimum 1)"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run a read statement and print the decoded rows."""
    db = _open(url, load_schema=False)
    with db:
        try:
            rows = db.select_by_sql(sql, timeout=timeout)
        except SqlSpineError as e:
            _fail(e)
        if json_out:
            console.print_json(json.dumps(rows, default=str))
            return
        _print_rows(rows)


__all__ = ["app"]
