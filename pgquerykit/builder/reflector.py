"""
Schema reflection: turns a RecordType into per-column metadata.

Each supported field becomes a column named after the field in snake_case.
Column order follows field declaration order and drives both CREATE TABLE
and the SELECT column list. Two field names are special:

- ``Id``/``ID`` always becomes ``"id" SERIAL PRIMARY KEY``.
- ``Flags`` always becomes ``BIGINT NOT NULL DEFAULT 0``.

Per-field options (space separated):

- ``uniq``            adds a UNIQUE constraint
- ``pass``            marks the field as a password
- ``type:<SQLTYPE>``  overrides the column type; only TEXT, BPCHAR and
                      VARCHAR/CHARACTER VARYING/BPCHAR/CHAR/CHARACTER(n) are
                      accepted, anything else is ignored. Options are split
                      on spaces, so a type containing a space (CHARACTER
                      VARYING(n)) cannot be given this way; use VARCHAR(n)
                      instead.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pgquerykit.builder.errors import InvalidFieldError
from pgquerykit.domain.models import FieldKind, FieldSpec, RecordType
from pgquerykit.utils.logging import get_logger
from pgquerykit.utils.naming import field_to_column, quote_identifier

log = get_logger(__name__)

PRIMARY_KEY_FIELDS = frozenset({"Id", "ID"})
FLAGS_FIELD = "Flags"
AUDIT_FIELDS = frozenset({"CreatedAt", "CreatedBy", "ModifiedAt", "ModifiedBy"})

PRIMARY_KEY_DEFINITION = "SERIAL PRIMARY KEY"
FLAGS_DEFINITION = "BIGINT NOT NULL DEFAULT 0"

_SIZED_TYPE_RE = re.compile(r"^(VARCHAR|CHARACTER VARYING|BPCHAR|CHAR|CHARACTER)\([1-9][0-9]*\)$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d*\.\d+$")


class ColumnFlag(enum.Flag):
    NONE = 0
    UNIQUE = 1
    PASSWORD = 2
    NON_TEXT = 4
    PRIMARY_KEY = 8


class Category(str, enum.Enum):
    INTEGER = "integer"
    FLOATING = "floating"
    BOOLEAN = "boolean"
    TEXT = "text"


# (SQL type, default expression) per kind.
_KIND_TYPES: Dict[FieldKind, Tuple[str, str]] = {
    FieldKind.STRING: ("VARCHAR(255)", "''"),
    FieldKind.BOOL: ("BOOLEAN", "false"),
    FieldKind.INT: ("BIGINT", "0"),
    FieldKind.INT64: ("BIGINT", "0"),
    FieldKind.INT32: ("INTEGER", "0"),
    FieldKind.INT16: ("SMALLINT", "0"),
    FieldKind.INT8: ("SMALLINT", "0"),
    FieldKind.UINT: ("BIGINT", "0"),
    FieldKind.UINT64: ("BIGINT", "0"),
    FieldKind.UINT32: ("INTEGER", "0"),
    FieldKind.UINT16: ("SMALLINT", "0"),
    FieldKind.UINT8: ("SMALLINT", "0"),
    FieldKind.FLOAT32: ("REAL", "0"),
    FieldKind.FLOAT64: ("DOUBLE PRECISION", "0"),
}


def category_for_kind(kind: FieldKind) -> Category:
    if kind.is_integer:
        return Category.INTEGER
    if kind.is_float:
        return Category.FLOATING
    if kind is FieldKind.BOOL:
        return Category.BOOLEAN
    return Category.TEXT


def parse_type_override(value: str) -> Optional[str]:
    """Return the upper-cased SQL type if it is on the allow-list, else None."""
    upper = value.upper()
    if upper in ("TEXT", "BPCHAR"):
        return upper
    if _SIZED_TYPE_RE.match(upper):
        return upper
    return None


@dataclass(frozen=True)
class ColumnMetadata:
    """
    SQL column derived from a single record field.
    """

    field: str
    name: str
    kind: FieldKind
    category: Category
    flags: ColumnFlag
    definition: str
    type_override: Optional[str] = None
    default: Optional[str] = None
    attribute: Optional[str] = None

    @property
    def quoted(self) -> str:
        return quote_identifier(self.name)

    @property
    def is_primary_key(self) -> bool:
        return bool(self.flags & ColumnFlag.PRIMARY_KEY)

    @property
    def is_unique(self) -> bool:
        return bool(self.flags & ColumnFlag.UNIQUE)

    @property
    def is_password(self) -> bool:
        return bool(self.flags & ColumnFlag.PASSWORD)

    @property
    def is_text(self) -> bool:
        return not self.flags & ColumnFlag.NON_TEXT


@dataclass(frozen=True)
class Schema:
    """
    Immutable column metadata for one table.

    Columns keep declaration order. Lookups go both ways: field name to column
    and column name to field name.
    """

    table_name: str
    columns: Tuple[ColumnMetadata, ...]
    has_audit_fields: bool
    by_field: Mapping[str, ColumnMetadata]
    by_column: Mapping[str, ColumnMetadata]

    @property
    def primary_key(self) -> Optional[ColumnMetadata]:
        for column in self.columns:
            if column.is_primary_key:
                return column
        return self.columns[0] if self.columns else None

    @property
    def non_key_columns(self) -> Tuple[ColumnMetadata, ...]:
        pk = self.primary_key
        return tuple(column for column in self.columns if column is not pk)

    def has_field(self, field: str) -> bool:
        return field in self.by_field

    def column_for_field(self, field: str, op: str = "column") -> ColumnMetadata:
        """Resolve a field name to its column or raise InvalidFieldError."""
        try:
            return self.by_field[field]
        except (KeyError, TypeError):
            raise InvalidFieldError(op, field) from None

    def unique_fields(self) -> List[str]:
        return [column.field for column in self.columns if column.is_unique]

    def password_fields(self) -> List[str]:
        return [column.field for column in self.columns if column.is_password]

    def value_from_string(self, field: str, value: str) -> Tuple[bool, Any]:
        """
        Convert a string to the Python type of ``field``.

        Returns ``(True, converted)`` on success and ``(False, None)`` when the
        field is unknown or the text does not parse for its kind.
        """
        column = self.by_field.get(field)
        if column is None:
            return False, None

        if column.category is Category.INTEGER:
            if _INT_RE.match(value):
                return True, int(value)
        elif column.category is Category.FLOATING:
            if _FLOAT_RE.match(value) or _INT_RE.match(value):
                return True, float(value)
        elif column.category is Category.BOOLEAN:
            lowered = value.lower()
            if lowered in ("true", "false"):
                return True, lowered == "true"
        else:
            return True, value
        return False, None


def derive_table_name(type_name: str, prefix: str = "") -> str:
    """
    Table name for a record type, quoted.

    A variant type such as ``User_Register`` maps to its base entity ``User``.
    """
    base = type_name.split("_", 1)[0]
    return quote_identifier(prefix + field_to_column(base))


def _column_definition(
    spec: FieldSpec, flags: ColumnFlag, type_override: Optional[str]
) -> str:
    if flags & ColumnFlag.PRIMARY_KEY:
        return PRIMARY_KEY_DEFINITION
    if spec.name == FLAGS_FIELD:
        return FLAGS_DEFINITION

    if type_override:
        sql_type, default = type_override, "''"
    else:
        sql_type, default = _KIND_TYPES[spec.kind]
    if spec.default is not None:
        default = spec.default

    definition = f"{sql_type} NOT NULL DEFAULT {default}"
    if flags & ColumnFlag.UNIQUE:
        definition += " UNIQUE"
    return definition


def _reflect_field(spec: FieldSpec) -> ColumnMetadata:
    flags = ColumnFlag.NONE
    type_override: Optional[str] = None

    for token in spec.option_tokens:
        if token == "uniq":
            flags |= ColumnFlag.UNIQUE
        elif token == "pass":
            flags |= ColumnFlag.PASSWORD
        elif token.startswith("type:"):
            parsed = parse_type_override(token[len("type:"):])
            if parsed is None:
                log.debug(
                    "Ignoring unsupported type override",
                    extra={"field": spec.name, "option": token},
                )
            else:
                type_override = parsed

    kind = spec.kind
    if spec.name in PRIMARY_KEY_FIELDS:
        flags |= ColumnFlag.PRIMARY_KEY
        kind, type_override = FieldKind.INT64, None
    elif spec.name == FLAGS_FIELD:
        kind, type_override = FieldKind.INT64, None
    if kind is not FieldKind.STRING:
        flags |= ColumnFlag.NON_TEXT

    return ColumnMetadata(
        field=spec.name,
        name=field_to_column(spec.name),
        kind=kind,
        category=category_for_kind(kind),
        flags=flags,
        definition=_column_definition(spec, flags, type_override),
        type_override=type_override,
        default=spec.default,
        attribute=spec.attribute,
    )


def reflect(record_type: RecordType, table_name_prefix: str = "") -> Schema:
    """
    Build the Schema for a record type.

    Fields of unsupported kind are skipped; they never become columns.
    """
    columns: List[ColumnMetadata] = []
    audit_fields = 0

    for spec in record_type.fields:
        if not spec.kind.is_supported:
            log.debug("Skipping unsupported field", extra={"field": spec.name, "kind": spec.kind.value})
            continue

        columns.append(_reflect_field(spec))
        if spec.name in AUDIT_FIELDS and spec.kind is FieldKind.INT64:
            audit_fields += 1

    return Schema(
        table_name=derive_table_name(record_type.name, table_name_prefix),
        columns=tuple(columns),
        has_audit_fields=audit_fields == len(AUDIT_FIELDS),
        by_field=MappingProxyType({column.field: column for column in columns}),
        by_column=MappingProxyType({column.name: column for column in columns}),
    )


__all__ = [
    "AUDIT_FIELDS",
    "Category",
    "ColumnFlag",
    "ColumnMetadata",
    "Schema",
    "category_for_kind",
    "derive_table_name",
    "parse_type_override",
    "reflect",
]
