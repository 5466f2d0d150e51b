"""
Name casing helpers shared by the reflector and the builder.

Field names are CamelCase (``PostCode``, ``UserID``); column and table names
are lower snake_case (``post_code``, ``user_id``). An ``ID`` run is treated
as a single word in both directions.
"""

from __future__ import annotations

PRIMARY_KEY_FIELD = "ID"
PRIMARY_KEY_COLUMN = "id"


def field_to_column(name: str) -> str:
    """Convert a CamelCase field name to a snake_case column name."""
    if name == PRIMARY_KEY_FIELD:
        return PRIMARY_KEY_COLUMN

    out: list[str] = []
    prev = ""
    for i, ch in enumerate(name):
        if i == 0:
            out.append(ch.lower())
            prev = ch
            continue

        if ch.isupper():
            if prev == "I" and ch == "D":
                out.append("d")
                continue
            out.append("_" + ch.lower())
            prev = ch
            continue

        out.append(ch)
        prev = ch

    return "".join(out)


def column_to_field(name: str) -> str:
    """Convert a snake_case column name to a CamelCase field name."""
    parts = []
    for part in name.split("_"):
        if not part:
            continue
        if part == PRIMARY_KEY_COLUMN:
            parts.append(PRIMARY_KEY_FIELD)
            continue
        parts.append(part[:1].upper() + part[1:])
    return "".join(parts)


def quote_identifier(name: str) -> str:
    return f'"{name}"'


def prettify_create_table(sql: str) -> str:
    """
    Spread a CREATE TABLE statement over several lines, one column per line.

    Meant for display only; the output is not guaranteed to be valid SQL when a
    column type itself contains a comma.
    """
    sql = sql.replace("(", "(\n  ", 1)
    return sql.replace(",", ",\n  ")


__all__ = [
    "PRIMARY_KEY_COLUMN",
    "PRIMARY_KEY_FIELD",
    "column_to_field",
    "field_to_column",
    "prettify_create_table",
    "quote_identifier",
]
