"""
QueryBuilder: precomputed PostgreSQL statements for one record type.

Construction reflects the record type once and caches every fixed-shape
statement. Dynamic builders (``select``, ``select_count``, ``delete``,
``delete_returning_id``, ``update``) assemble WHERE/SET/ORDER BY fragments per
call and never mutate the builder, so an instance can be shared freely.

Usage:
    builder = QueryBuilder(User)
    builder.create_table()
    sql = builder.select(["Age", "desc"], 10, 0, Filters().add("Price", OpVal(Operator.EQUAL, 5)))
    args = builder.filter_args(filters)
"""

from __future__ import annotations

import enum
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generator, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from pgquerykit.builder.clauses import FilterClauseBuilder
from pgquerykit.builder.errors import ConstructionError, QueryBuilderError
from pgquerykit.builder.reflector import Schema, reflect
from pgquerykit.builder.templates import QueryTemplates, build_templates
from pgquerykit.builder import values as value_extractor
from pgquerykit.config import Settings, get_settings
from pgquerykit.domain.models import RecordType, record_type_from_model
from pgquerykit.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_TAG_NAME = "sql"
TERMINATOR = ";"


class BuilderFlag(enum.Flag):
    NONE = 0
    HAS_AUDIT_FIELDS = 1


@dataclass(frozen=True)
class BuilderOptions:
    """
    Construction options.

    ``tag_name`` selects which ``json_schema_extra`` keys describe a pydantic
    model's columns; ``table_name_prefix`` is prepended to the derived table name.
    """

    tag_name: str = DEFAULT_TAG_NAME
    table_name_prefix: str = ""

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BuilderOptions":
        settings = settings or get_settings()
        return cls(
            tag_name=settings.tag_name or DEFAULT_TAG_NAME,
            table_name_prefix=settings.table_name_prefix,
        )


def describe_record(record: Any, tag_name: str = DEFAULT_TAG_NAME) -> RecordType:
    """
    Normalize the accepted record descriptions into a RecordType.

    Accepts a RecordType, a pydantic model class or instance, or a mapping
    with ``name`` and ``fields`` keys.
    """
    if isinstance(record, RecordType):
        return record
    if isinstance(record, type) and issubclass(record, BaseModel):
        return record_type_from_model(record, tag_name)
    if isinstance(record, BaseModel):
        return record_type_from_model(type(record), tag_name)
    if isinstance(record, Mapping):
        return RecordType.model_validate(record)
    raise TypeError(f"unsupported record description of type {type(record).__name__}")


def _fallback_name(record: Any) -> str:
    if isinstance(record, type):
        return record.__name__
    if isinstance(record, Mapping) and isinstance(record.get("name"), str) and record["name"]:
        return record["name"]
    return type(record).__name__


@contextmanager
def _operation(op: str) -> Generator[None, None, None]:
    try:
        yield
    except QueryBuilderError as exc:
        raise exc.for_operation(op) from exc


class QueryBuilder:
    """
    Reflects a record type and generates PostgreSQL queries for its table.

    Table and column names are the snake_case forms of the type and field
    names. A malformed record description does not raise: the error is kept
    and returned by ``err()``, static statements stay available and dynamic
    builders raise the stored ConstructionError.
    """

    def __init__(self, record: Any, options: Optional[BuilderOptions] = None) -> None:
        self._options = options or BuilderOptions()
        self._error: Optional[ConstructionError] = None

        try:
            record_type = describe_record(record, self._options.tag_name)
        except (TypeError, ValueError) as exc:
            self._error = ConstructionError("New", str(exc))
            record_type = RecordType(name=_fallback_name(record), fields=())
            log.warning(
                "Record description could not be reflected",
                extra={"record": _fallback_name(record), "error": str(exc)},
            )

        self._schema: Schema = reflect(record_type, self._options.table_name_prefix)
        self._templates: QueryTemplates = build_templates(self._schema)
        self._clauses = FilterClauseBuilder(self._schema)
        self._flags = (
            BuilderFlag.HAS_AUDIT_FIELDS if self._schema.has_audit_fields else BuilderFlag.NONE
        )

        log.debug(
            "Query builder ready",
            extra={"table": self._schema.table_name, "columns": len(self._schema.columns)},
        )

    # Introspection

    def err(self) -> Optional[ConstructionError]:
        """Error raised while reflecting the record description, if any."""
        return self._error

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def table_name(self) -> str:
        return self._schema.table_name

    def flags(self) -> BuilderFlag:
        return self._flags

    def has_audit_fields(self) -> bool:
        """True if CreatedAt, CreatedBy, ModifiedAt and ModifiedBy are all int64 fields."""
        return bool(self._flags & BuilderFlag.HAS_AUDIT_FIELDS)

    def unique_fields(self) -> List[str]:
        return self._schema.unique_fields()

    def password_fields(self) -> List[str]:
        return self._schema.password_fields()

    def field_to_column(self, field: str) -> Optional[str]:
        column = self._schema.by_field.get(field)
        return column.name if column else None

    def column_to_field(self, column: str) -> Optional[str]:
        meta = self._schema.by_column.get(column)
        return meta.field if meta else None

    def has_field(self, field: str) -> bool:
        return self._schema.has_field(field)

    def value_from_string(self, field: str, value: str) -> tuple:
        return self._schema.value_from_string(field, value)

    # Static statements

    def drop_table(self) -> str:
        return self._templates.drop_table + TERMINATOR

    def create_table(self) -> str:
        return self._templates.create_table + TERMINATOR

    def insert(self) -> str:
        return self._templates.insert + TERMINATOR

    def update_by_id(self) -> str:
        return self._templates.update_by_id + TERMINATOR

    def insert_on_conflict_update(self) -> str:
        return self._templates.insert_on_conflict_update + TERMINATOR

    def select_by_id(self) -> str:
        return self._templates.select_by_id + TERMINATOR

    def delete_by_id(self) -> str:
        return self._templates.delete_by_id + TERMINATOR

    # Dynamic statements

    def _check(self, op: str) -> None:
        if self._error is not None:
            raise self._error.for_operation(op)

    def select(
        self,
        order: Optional[Sequence[str]] = None,
        limit: int = 0,
        offset: int = 0,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        SELECT with WHERE built from ``filters``, ORDER BY and LIMIT/OFFSET.

        Filter fields are numbered in alphabetical order; pass the values from
        ``filter_args`` to keep them aligned. Columns are selected in
        declaration order.
        """
        self._check("Select")
        with _operation("Select"):
            q_order = self._clauses.order_by(order)
            q_limit = self._clauses.limit_offset(limit, offset)
            q_where = self._clauses.where(filters, 1)

        query = self._templates.select_prefix
        if q_where:
            query += " WHERE " + q_where
        if q_order:
            query += " ORDER BY " + q_order
        if q_limit:
            query += " " + q_limit
        return query + TERMINATOR

    def select_count(self, filters: Optional[Mapping[str, Any]] = None) -> str:
        self._check("SelectCount")
        with _operation("SelectCount"):
            q_where = self._clauses.where(filters, 1)

        query = self._templates.select_count_prefix
        if q_where:
            query += " WHERE " + q_where
        return query + TERMINATOR

    def delete(self, filters: Optional[Mapping[str, Any]] = None) -> str:
        self._check("Delete")
        with _operation("Delete"):
            q_where = self._clauses.where(filters, 1)

        query = self._templates.delete_prefix
        if q_where:
            query += " WHERE " + q_where
        return query + TERMINATOR

    def delete_returning_id(self, filters: Optional[Mapping[str, Any]] = None) -> str:
        self._check("DeleteReturningId")
        with _operation("DeleteReturningId"):
            q_where = self._clauses.where(filters, 1)

        query = self._templates.delete_prefix
        if q_where:
            query += " WHERE " + q_where
        return f"{query} RETURNING {self._templates.primary_key}{TERMINATOR}"

    def update(
        self,
        values: Mapping[str, Any],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        UPDATE setting ``values`` on rows matching ``filters``.

        SET placeholders come first (fields sorted alphabetically), WHERE
        placeholders continue after them; ``update_args`` returns the matching
        value list.
        """
        self._check("Update")
        with _operation("Update"):
            q_set, used = self._clauses.set_values(values)
            q_where = self._clauses.where(filters, used + 1)

        query = f"{self._templates.update_prefix} {q_set}"
        if q_where:
            query += " WHERE " + q_where
        return query + TERMINATOR

    # Parameter lists

    def filter_args(self, filters: Optional[Mapping[str, Any]]) -> List[Any]:
        with _operation("FilterArgs"):
            return value_extractor.filter_values(filters)

    def update_args(
        self, values: Mapping[str, Any], filters: Optional[Mapping[str, Any]] = None
    ) -> List[Any]:
        with _operation("UpdateArgs"):
            return value_extractor.update_args(values, filters)

    def insert_args(self, record: Any) -> List[Any]:
        return value_extractor.insert_args(record, self._schema)

    def insert_on_conflict_args(self, record: Any) -> List[Any]:
        return value_extractor.insert_on_conflict_args(record, self._schema)

    def update_by_id_args(self, record: Any) -> List[Any]:
        return value_extractor.update_by_id_args(record, self._schema)

    def set_record_fields(self, record: Any, values: Optional[Mapping[str, Any]]) -> None:
        value_extractor.set_record_fields(record, values, self._schema)

    def __repr__(self) -> str:
        return f"QueryBuilder(table={self._schema.table_name}, columns={len(self._schema.columns)})"


__all__ = ["BuilderFlag", "BuilderOptions", "QueryBuilder", "describe_record"]
