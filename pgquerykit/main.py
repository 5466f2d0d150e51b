from __future__ import annotations

import importlib
import sys
from typing import Any

import typer

from pgquerykit.builder.query_builder import BuilderOptions, QueryBuilder
from pgquerykit.config import get_settings
from pgquerykit.reporter import print_columns, static_statements
from pgquerykit.utils.logging import configure_logging
from pgquerykit.utils.naming import prettify_create_table

app = typer.Typer(help="Generate PostgreSQL statements for record types.")


def load_target(path: str) -> Any:
    """
    Import ``module:attribute`` and return the attribute.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"expected 'module:Name', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name!r}: {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise typer.BadParameter(f"{module_name!r} has no attribute {attr!r}") from exc


def _builder(target: str, prefix: str | None) -> QueryBuilder:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    options = BuilderOptions.from_settings(settings)
    if prefix is not None:
        options = BuilderOptions(tag_name=options.tag_name, table_name_prefix=prefix)

    builder = QueryBuilder(load_target(target), options)
    err = builder.err()
    if err is not None:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)
    return builder


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"tag={settings.tag_name} prefix={settings.table_name_prefix!r} | "
        f"log_level={settings.log_level} json_logs={settings.log_json}"
    )


@app.command()
def ddl(
    target: str = typer.Argument(..., help="Record type as 'module:ClassName'."),
    drop: bool = typer.Option(False, "--drop", help="Print DROP TABLE instead of CREATE TABLE."),
    pretty: bool = typer.Option(False, "--pretty", "-p", help="One column definition per line."),
    prefix: str | None = typer.Option(None, "--prefix", help="Table name prefix override."),
) -> None:
    """
    Print the CREATE TABLE (or DROP TABLE) statement for a record type.
    """
    builder = _builder(target, prefix)
    if drop:
        typer.echo(builder.drop_table())
        return
    sql = builder.create_table()
    typer.echo(prettify_create_table(sql) if pretty else sql)


@app.command()
def templates(
    target: str = typer.Argument(..., help="Record type as 'module:ClassName'."),
    prefix: str | None = typer.Option(None, "--prefix", help="Table name prefix override."),
) -> None:
    """
    Print every fixed-shape statement for a record type.
    """
    builder = _builder(target, prefix)
    for label, sql in static_statements(builder).items():
        typer.echo(f"-- {label}")
        typer.echo(sql)


@app.command()
def columns(
    target: str = typer.Argument(..., help="Record type as 'module:ClassName'."),
    prefix: str | None = typer.Option(None, "--prefix", help="Table name prefix override."),
) -> None:
    """
    Show the reflected column metadata as a table.
    """
    print_columns(_builder(target, prefix))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
