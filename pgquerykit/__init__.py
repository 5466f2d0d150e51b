"""
pgquerykit - precomputed PostgreSQL statements for record types.

This package turns a description of a record type into the SQL for a single
table, including:

- DDL (CREATE TABLE / DROP TABLE) derived from the field list
- Fixed-shape statements (insert, upsert, update/select/delete by id)
- Dynamic WHERE / ORDER BY / LIMIT / SET fragments with `$n` placeholders
- Parameter lists aligned with the generated placeholders

Statement execution and connection management are left to the caller.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from pgquerykit.builder import (
    BuilderFlag,
    BuilderOptions,
    ConstructionError,
    EmptyUpdateError,
    InvalidFieldError,
    InvalidFilterError,
    InvalidLimitError,
    QueryBuilder,
    QueryBuilderError,
    RawClauseError,
)
from pgquerykit.config import Settings, get_settings
from pgquerykit.domain import (
    RAW,
    Conjunction,
    FieldKind,
    FieldSpec,
    Filters,
    OpVal,
    Operator,
    RecordType,
    record_type_from_model,
)
from pgquerykit.utils.logging import configure_logging, get_logger
from pgquerykit.utils.naming import column_to_field, field_to_column, prettify_create_table

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Builder
    "BuilderFlag",
    "BuilderOptions",
    "QueryBuilder",
    # Record descriptions and filters
    "FieldKind",
    "FieldSpec",
    "RecordType",
    "record_type_from_model",
    "Conjunction",
    "Filters",
    "OpVal",
    "Operator",
    "RAW",
    # Errors
    "ConstructionError",
    "EmptyUpdateError",
    "InvalidFieldError",
    "InvalidFilterError",
    "InvalidLimitError",
    "QueryBuilderError",
    "RawClauseError",
    # Naming
    "column_to_field",
    "field_to_column",
    "prettify_create_table",
    # Logging
    "configure_logging",
    "get_logger",
]
