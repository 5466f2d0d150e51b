"""
Exceptions raised by the query builder.

Every error carries ``op``, the name of the operation that failed. Dynamic
builders re-raise failures from their internal stages under the public
operation name (``Select``, ``Update``...) with the original error chained.
"""

from __future__ import annotations

import copy
from typing import Optional


class QueryBuilderError(Exception):
    """Base class for all builder errors."""

    def __init__(self, op: str, message: str) -> None:
        super().__init__(op, message)
        self.op = op
        self.message = message

    def __str__(self) -> str:
        return f"{self.op}: {self.message}"

    def for_operation(self, op: str) -> "QueryBuilderError":
        """Return a copy of this error reported under another operation name."""
        clone = copy.copy(self)
        clone.op = op
        return clone


class ConstructionError(QueryBuilderError):
    """The record-type description could not be reflected into a schema."""


class InvalidFieldError(QueryBuilderError):
    """An order, filter, update or raw reference names an unknown field."""

    def __init__(self, op: str, field: Optional[str], message: str = "invalid field/column") -> None:
        super().__init__(op, f"{message}: {field!r}")
        self.field = field


class InvalidFilterError(QueryBuilderError):
    """A filter entry is neither an OpVal nor an (op, value) pair."""

    def __init__(self, op: str, field: Optional[str], message: str = "invalid filter entry") -> None:
        super().__init__(op, f"{message}: {field!r}")
        self.field = field


class InvalidLimitError(QueryBuilderError):
    """LIMIT or OFFSET is not an integer."""


class RawClauseError(QueryBuilderError):
    """The raw filter entry is malformed (bad shape, template or argument count)."""


class EmptyUpdateError(QueryBuilderError):
    """An UPDATE was requested without any value to set."""


__all__ = [
    "ConstructionError",
    "EmptyUpdateError",
    "InvalidFieldError",
    "InvalidFilterError",
    "InvalidLimitError",
    "QueryBuilderError",
    "RawClauseError",
]
