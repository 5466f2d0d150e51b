from __future__ import annotations

from typing import Dict

from rich import box
from rich.console import Console
from rich.table import Table

from pgquerykit.builder.query_builder import QueryBuilder


def static_statements(builder: QueryBuilder) -> Dict[str, str]:
    """All fixed-shape statements of ``builder`` keyed by a short label."""
    return {
        "drop_table": builder.drop_table(),
        "create_table": builder.create_table(),
        "insert": builder.insert(),
        "insert_on_conflict_update": builder.insert_on_conflict_update(),
        "update_by_id": builder.update_by_id(),
        "select_by_id": builder.select_by_id(),
        "delete_by_id": builder.delete_by_id(),
    }


def build_columns_table(builder: QueryBuilder) -> Table:
    """
    Render the reflected columns as a rich table, in declaration order.
    """
    schema = builder.schema
    title = f"Columns of {schema.table_name}"
    if builder.has_audit_fields():
        title = f"{title}\n[dim]audit fields present[/dim]"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Column", style="magenta")
    table.add_column("Kind", style="blue")
    table.add_column("Definition", style="green")
    table.add_column("Flags", style="yellow")

    for column in schema.columns:
        flags = [
            label
            for label, present in (
                ("pk", column.is_primary_key),
                ("uniq", column.is_unique),
                ("pass", column.is_password),
                ("non-text", not column.is_text),
            )
            if present
        ]
        table.add_row(
            column.field,
            column.name,
            column.kind.value,
            column.definition,
            ", ".join(flags) or "-",
        )

    return table


def print_columns(builder: QueryBuilder, console: Console | None = None) -> None:
    console = console or Console()
    if not builder.schema.columns:
        console.print("[yellow]No columns to display.[/yellow]")
        return
    console.print(build_columns_table(builder))


__all__ = ["build_columns_table", "print_columns", "static_statements"]
