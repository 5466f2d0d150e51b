"""
Filter descriptions used to build dynamic WHERE clauses.

A ``Filters`` mapping pairs field names with an ``OpVal`` (operator and value).
The reserved ``RAW`` key carries an almost-raw SQL fragment: its ``op`` is the
``Conjunction`` used to join it to the ordinary filters and its ``val`` is a
list ``[template, arg1, arg2, ...]``. Inside the template ``.FieldName``
references a column and ``?`` marks one argument; a list or tuple argument
expands to a comma-separated run of placeholders.

Example:
    filters = Filters()
    filters.add("Price", OpVal(Operator.GREATER, 10))
    filters.add_raw(".Age IN (?) OR .Name=?", [18, 21], "Jane", conjunction=Conjunction.OR)
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pgquerykit.builder.errors import InvalidFilterError, RawClauseError

RAW = "_"


class Operator(str, Enum):
    EQUAL = "eq"
    NOT_EQUAL = "ne"
    LIKE = "like"
    MATCH = "match"
    GREATER = "gt"
    LOWER = "lt"
    GREATER_OR_EQUAL = "ge"
    LOWER_OR_EQUAL = "le"
    BIT = "bit"


class Conjunction(str, Enum):
    OR = "OR"
    AND = "AND"


@dataclass(frozen=True)
class OpVal:
    """Operator (or conjunction, for the raw entry) paired with a value."""

    op: Optional[Union[Operator, Conjunction]] = Operator.EQUAL
    val: Any = None


class Filters(Dict[str, OpVal]):
    """Field name to OpVal mapping with an optional RAW entry."""

    def add(self, name: str, value: OpVal) -> "Filters":
        self[name] = value
        return self

    def add_raw(
        self,
        template: str,
        *args: Any,
        conjunction: Conjunction = Conjunction.AND,
    ) -> "Filters":
        self[RAW] = OpVal(conjunction, [template, *args])
        return self


def is_sequence_value(value: Any) -> bool:
    """True for list-like values that expand into several placeholders."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


@dataclass(frozen=True)
class RawClause:
    conjunction: Any
    template: Any
    args: Tuple[Any, ...]


def as_op_val(name: str, entry: Any) -> OpVal:
    """
    Normalize a filter entry to an OpVal.

    Accepts an OpVal or an ``(op, value)`` tuple; anything else raises
    RawClauseError for the RAW entry and InvalidFilterError otherwise.
    """
    if isinstance(entry, OpVal):
        return entry
    if isinstance(entry, tuple) and len(entry) == 2:
        return OpVal(*entry)
    if name == RAW:
        raise RawClauseError(
            "queryFilters",
            f"raw entry must be an OpVal or (conjunction, [template, ...]) pair, got {type(entry).__name__}",
        )
    raise InvalidFilterError("queryFilters", name)


def ordinary_filters(filters: Optional[Mapping[str, Any]]) -> List[Tuple[str, OpVal]]:
    """Non-raw entries sorted by field name, the order placeholders are numbered in."""
    if not filters:
        return []
    return [(name, as_op_val(name, filters[name])) for name in sorted(filters) if name != RAW]


def raw_clause(filters: Optional[Mapping[str, Any]]) -> Optional[RawClause]:
    """
    The RAW entry split into conjunction, template and arguments.

    Returns None when there is no RAW entry, its value is not a list or the
    template is empty; such an entry contributes neither SQL nor values.
    """
    if not filters or RAW not in filters:
        return None
    entry = as_op_val(RAW, filters[RAW])
    items = entry.val
    if not is_sequence_value(items) or len(items) == 0:
        return None
    if items[0] == "":
        return None
    return RawClause(conjunction=entry.op, template=items[0], args=tuple(items[1:]))


__all__ = [
    "RAW",
    "Conjunction",
    "Filters",
    "OpVal",
    "Operator",
    "RawClause",
    "as_op_val",
    "is_sequence_value",
    "ordinary_filters",
    "raw_clause",
]
