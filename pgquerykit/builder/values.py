"""
Ordered parameter lists matching the placeholders produced by the builders.

Filter values follow ``FilterClauseBuilder.where``: ordinary filters sorted by
field name, then raw-clause arguments with list arguments flattened in place.
Record values follow the column order of the static templates.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple

from pgquerykit.builder.reflector import Category, ColumnMetadata, Schema
from pgquerykit.domain.filters import OpVal, is_sequence_value, ordinary_filters, raw_clause

_PYTHON_TYPES = {
    Category.INTEGER: int,
    Category.FLOATING: float,
    Category.BOOLEAN: bool,
    Category.TEXT: str,
}


def filter_values(filters: Optional[Mapping[str, Any]]) -> List[Any]:
    values = [op_val.val for _, op_val in ordinary_filters(filters)]

    raw = raw_clause(filters)
    if raw is None:
        return values

    for arg in raw.args:
        if is_sequence_value(arg):
            values.extend(arg)
        else:
            values.append(arg)
    return values


def update_values(values: Optional[Mapping[str, Any]]) -> List[Any]:
    """Values to SET, in the sorted field order used by the SET clause."""
    if not values:
        return []
    return [values[name] for name in sorted(values)]


def update_args(
    values: Optional[Mapping[str, Any]], filters: Optional[Mapping[str, Any]]
) -> List[Any]:
    return update_values(values) + filter_values(filters)


def _read(record: Any, column: ColumnMetadata) -> Any:
    if isinstance(record, Mapping):
        if column.field in record:
            return record[column.field]
        return record[column.attribute or column.field]
    if column.attribute and hasattr(record, column.attribute):
        return getattr(record, column.attribute)
    return getattr(record, column.field)


def record_values(record: Any, schema: Schema, include_primary_key: bool = False) -> List[Any]:
    """
    Column values of ``record`` in declaration order.

    ``record`` may be a mapping keyed by field name or any object exposing the
    fields as attributes (pydantic models are read through their attribute
    names when fields are aliased).
    """
    columns = schema.columns if include_primary_key else schema.non_key_columns
    return [_read(record, column) for column in columns]


def insert_args(record: Any, schema: Schema) -> List[Any]:
    return record_values(record, schema)


def insert_on_conflict_args(record: Any, schema: Schema) -> List[Any]:
    return record_values(record, schema, include_primary_key=True) + record_values(record, schema)


def update_by_id_args(record: Any, schema: Schema) -> List[Any]:
    pk = schema.primary_key
    values = record_values(record, schema)
    if pk is not None:
        values.append(_read(record, pk))
    return values


def _convert(value: Any, column: ColumnMetadata) -> Any:
    target = _PYTHON_TYPES[column.category]
    if isinstance(value, target) and not (target is int and isinstance(value, bool)):
        return value
    if target is bool and isinstance(value, str):
        lowered = value.lower()
        if lowered not in ("true", "false"):
            raise ValueError(f"invalid boolean {value!r}")
        return lowered == "true"
    if isinstance(value, (int, float, bool, str)):
        return target(value)
    raise TypeError(f"cannot set field {column.field} ({target.__name__}) with {type(value).__name__}")


def set_record_fields(record: Any, values: Optional[Mapping[str, Any]], schema: Schema) -> None:
    """
    Assign ``values`` (plain values or OpVal entries) onto ``record``.

    Unknown fields are skipped. Every convertible value is assigned; if any
    value could not be converted the first failure is raised afterwards as
    ValueError.
    """
    if not values:
        return

    errors: List[Tuple[str, Exception]] = []
    for column in schema.columns:
        if column.field not in values:
            continue
        value = values[column.field]
        if isinstance(value, OpVal):
            value = value.val
        try:
            converted = _convert(value, column)
        except (TypeError, ValueError) as exc:
            errors.append((column.field, exc))
            continue

        if isinstance(record, dict):
            record[column.field] = converted
        else:
            setattr(record, column.attribute or column.field, converted)

    if errors:
        field, exc = errors[0]
        raise ValueError(f"cannot set field {field}: {exc}") from exc


__all__ = [
    "filter_values",
    "insert_args",
    "insert_on_conflict_args",
    "record_values",
    "set_record_fields",
    "update_args",
    "update_by_id_args",
    "update_values",
]
