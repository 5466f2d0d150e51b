"""
Utilities package for pgquerykit.

Exports shared helpers for logging and name casing. Keep this package
lightweight and free of SQL rendering logic.
"""

from pgquerykit.utils.logging import configure_logging, get_logger
from pgquerykit.utils.naming import column_to_field, field_to_column, prettify_create_table

__all__ = [
    "configure_logging",
    "get_logger",
    "column_to_field",
    "field_to_column",
    "prettify_create_table",
]
