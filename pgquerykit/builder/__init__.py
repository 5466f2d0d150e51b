"""
Builder package: schema reflection, static templates, dynamic clauses and
parameter extraction.

Most callers only need ``QueryBuilder``; the component modules are exported
for direct use and testing.
"""

from pgquerykit.builder.clauses import FilterClauseBuilder
from pgquerykit.builder.errors import (
    ConstructionError,
    EmptyUpdateError,
    InvalidFieldError,
    InvalidFilterError,
    InvalidLimitError,
    QueryBuilderError,
    RawClauseError,
)
from pgquerykit.builder.query_builder import (
    BuilderFlag,
    BuilderOptions,
    QueryBuilder,
    describe_record,
)
from pgquerykit.builder.reflector import (
    Category,
    ColumnFlag,
    ColumnMetadata,
    Schema,
    reflect,
)
from pgquerykit.builder.templates import QueryTemplates, build_templates

__all__ = [
    # Facade
    "BuilderFlag",
    "BuilderOptions",
    "QueryBuilder",
    "describe_record",
    # Components
    "FilterClauseBuilder",
    "QueryTemplates",
    "build_templates",
    "reflect",
    # Schema
    "Category",
    "ColumnFlag",
    "ColumnMetadata",
    "Schema",
    # Errors
    "ConstructionError",
    "EmptyUpdateError",
    "InvalidFieldError",
    "InvalidFilterError",
    "InvalidLimitError",
    "QueryBuilderError",
    "RawClauseError",
]
