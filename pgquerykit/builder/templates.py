"""
Static statement templates computed once per Schema.

Templates are stored without the trailing ``;``; QueryBuilder appends the
terminator when a statement is handed out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from pgquerykit.builder.reflector import ColumnMetadata, Schema
from pgquerykit.utils.naming import PRIMARY_KEY_COLUMN, quote_identifier


@dataclass(frozen=True)
class QueryTemplates:
    drop_table: str
    create_table: str
    insert: str
    insert_on_conflict_update: str
    update_by_id: str
    select_by_id: str
    delete_by_id: str
    select_prefix: str
    select_count_prefix: str
    delete_prefix: str
    update_prefix: str
    primary_key: str


def placeholders(start: int, count: int) -> str:
    """Comma-joined ``$n`` run, e.g. ``placeholders(3, 2) == "$3,$4"``."""
    return ",".join(f"${n}" for n in range(start, start + count))


def assignments(columns: Sequence[ColumnMetadata], start: int) -> str:
    """Comma-joined ``"col"=$n`` list numbered from ``start``."""
    return ",".join(f"{column.quoted}=${start + i}" for i, column in enumerate(columns))


def _names(columns: Iterable[ColumnMetadata]) -> str:
    return ",".join(column.quoted for column in columns)


def build_templates(schema: Schema) -> QueryTemplates:
    """
    Render every fixed-shape statement for ``schema`` in one pass.

    The primary key is excluded from INSERT and from SET lists; INSERT ... ON
    CONFLICT lists every column and then re-assigns the non-key columns with
    placeholders continuing after the first block.
    """
    table = schema.table_name
    pk_column = schema.primary_key
    pk = pk_column.quoted if pk_column else quote_identifier(PRIMARY_KEY_COLUMN)

    columns = schema.columns
    non_key = schema.non_key_columns
    all_names = _names(columns)
    non_key_names = _names(non_key)

    return QueryTemplates(
        drop_table=f"DROP TABLE IF EXISTS {table}",
        create_table=(
            f"CREATE TABLE IF NOT EXISTS {table} "
            f"({','.join(f'{c.quoted} {c.definition}' for c in columns)})"
        ),
        insert=(
            f"INSERT INTO {table}({non_key_names}) "
            f"VALUES ({placeholders(1, len(non_key))}) RETURNING {pk}"
        ),
        insert_on_conflict_update=(
            f"INSERT INTO {table}({all_names}) VALUES ({placeholders(1, len(columns))}) "
            f"ON CONFLICT ({pk}) DO UPDATE SET {assignments(non_key, len(columns) + 1)} "
            f"RETURNING {pk}"
        ),
        update_by_id=(
            f"UPDATE {table} SET {assignments(non_key, 1)} WHERE {pk} = ${len(non_key) + 1}"
        ),
        select_by_id=f"SELECT {all_names} FROM {table} WHERE {pk} = $1",
        delete_by_id=f"DELETE FROM {table} WHERE {pk} = $1",
        select_prefix=f"SELECT {all_names} FROM {table}",
        select_count_prefix=f"SELECT COUNT(*) AS cnt FROM {table}",
        delete_prefix=f"DELETE FROM {table}",
        update_prefix=f"UPDATE {table} SET",
        primary_key=pk,
    )


__all__ = ["QueryTemplates", "assignments", "build_templates", "placeholders"]
