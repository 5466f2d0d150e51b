"""
Dynamic clause assembly: WHERE, ORDER BY, LIMIT/OFFSET and SET fragments.

Placeholder numbering is deterministic. Ordinary filters and SET values are
visited in ascending field-name order, whatever order the caller built the
mapping in; raw-clause arguments follow in the order given. The value
extractor in ``pgquerykit.builder.values`` walks the same order, so the n-th
value always lands on ``$n``.
"""

from __future__ import annotations

import operator
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pgquerykit.builder.errors import (
    EmptyUpdateError,
    InvalidFieldError,
    InvalidLimitError,
    RawClauseError,
)
from pgquerykit.builder.reflector import Schema
from pgquerykit.builder.templates import placeholders
from pgquerykit.domain.filters import (
    Conjunction,
    Operator,
    RawClause,
    is_sequence_value,
    ordinary_filters,
    raw_clause,
)

# A field reference in a raw template: a dot followed by identifier characters.
_RAW_REFERENCE_RE = re.compile(r"\.([A-Za-z0-9_]+)")
_RAW_MARKER = "?"

_OPERATOR_FORMATS: Dict[Operator, str] = {
    Operator.EQUAL: "{col}=${n}",
    Operator.NOT_EQUAL: "{col}!=${n}",
    Operator.LIKE: "{col} LIKE ${n}",
    Operator.MATCH: "{col} ~ ${n}",
    Operator.GREATER: "{col}>${n}",
    Operator.LOWER: "{col}<${n}",
    Operator.GREATER_OR_EQUAL: "{col}>=${n}",
    Operator.LOWER_OR_EQUAL: "{col}<=${n}",
    Operator.BIT: "{col}&${n}>0",
}

_TEXT_OPERATORS = frozenset({Operator.LIKE, Operator.MATCH})


class FilterClauseBuilder:
    """
    Builds parameterized SQL fragments against a single Schema.

    Stateless apart from the schema it reads, so one instance can serve any
    number of concurrent callers.
    """

    def __init__(self, schema: Schema) -> None:
        self._schema = schema

    def where(self, filters: Optional[Mapping[str, Any]], first_placeholder: int = 1) -> str:
        """
        Boolean expression for ``filters`` without the WHERE keyword.

        Returns an empty string when there is nothing to filter on.
        """
        ordinary, number = self._ordinary_conditions(filters, first_placeholder)

        raw = raw_clause(filters)
        if raw is None:
            return ordinary

        raw_sql, _ = self._raw_condition(raw, number)
        if not ordinary:
            return f"({raw_sql})"

        joiner = " OR " if raw.conjunction == Conjunction.OR else " AND "
        return f"({ordinary}){joiner}({raw_sql})"

    def _ordinary_conditions(
        self, filters: Optional[Mapping[str, Any]], number: int
    ) -> Tuple[str, int]:
        conditions: List[str] = []
        for name, op_val in ordinary_filters(filters):
            column = self._schema.column_for_field(name, op="queryFilters")
            op = _coerce_operator(op_val.op)

            if not column.is_text and op in _TEXT_OPERATORS:
                target = f"CAST({column.quoted} AS TEXT)"
            else:
                target = column.quoted

            conditions.append(_OPERATOR_FORMATS[op].format(col=target, n=number))
            number += 1

        return " AND ".join(conditions), number

    def _raw_condition(self, raw: RawClause, number: int) -> Tuple[str, int]:
        """
        Render the raw template.

        Field references are resolved and substituted first; ``?`` markers are
        numbered afterwards, left to right.
        """
        if not isinstance(raw.template, str):
            raise RawClauseError("queryFilters", "raw template must be a string")

        resolved: Dict[str, str] = {}

        def _substitute(match: "re.Match[str]") -> str:
            field = match.group(1)
            if field not in resolved:
                column = self._schema.by_field.get(field)
                if column is None:
                    raise InvalidFieldError(
                        "queryFilters", field, "invalid field/column to filter in raw clause"
                    )
                resolved[field] = column.quoted
            return resolved[field]

        sql = _RAW_REFERENCE_RE.sub(_substitute, raw.template)

        pieces = sql.split(_RAW_MARKER)
        if len(pieces) - 1 != len(raw.args):
            raise RawClauseError(
                "queryFilters",
                f"raw template has {len(pieces) - 1} '?' markers "
                f"but {len(raw.args)} arguments were given",
            )

        out = [pieces[0]]
        for arg, piece in zip(raw.args, pieces[1:]):
            if is_sequence_value(arg):
                if len(arg) == 0:
                    raise RawClauseError("queryFilters", "list argument to a raw clause must not be empty")
                out.append(placeholders(number, len(arg)))
                number += len(arg)
            else:
                out.append(f"${number}")
                number += 1
            out.append(piece)

        return "".join(out), number

    def order_by(self, order: Optional[Sequence[str]]) -> str:
        """
        ORDER BY list from alternating ``[field, direction, ...]`` pairs.

        ``"desc"`` sorts descending; any other direction sorts ascending.
        """
        if not order:
            return ""

        parts: List[str] = []
        for i in range(0, len(order), 2):
            field = order[i]
            if i + 1 >= len(order):
                raise InvalidFieldError("queryOrder", field, "missing direction for order field")
            column = self._schema.column_for_field(field, op="queryOrder")
            direction = "DESC" if order[i + 1] == "desc" else "ASC"
            parts.append(f"{column.quoted} {direction}")

        return ",".join(parts)

    @staticmethod
    def limit_offset(limit: int, offset: int) -> str:
        limit, offset = _as_count(limit, "limit"), _as_count(offset, "offset")
        if limit <= 0:
            return ""
        if offset > 0:
            return f"LIMIT {limit} OFFSET {offset}"
        return f"LIMIT {limit}"

    def set_values(self, values: Optional[Mapping[str, Any]]) -> Tuple[str, int]:
        """
        SET assignment list for ``values`` and the number of placeholders used.

        A WHERE clause following the assignments continues at ``count + 1``.
        """
        if not values:
            raise EmptyUpdateError("querySet", "no fields to set")

        columns = [self._schema.column_for_field(name, op="querySet") for name in sorted(values)]
        return ",".join(f"{c.quoted}=${i}" for i, c in enumerate(columns, start=1)), len(columns)


def _as_count(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidLimitError("queryLimitOffset", f"{name} must be an integer, got bool")
    try:
        return operator.index(value)
    except TypeError:
        raise InvalidLimitError(
            "queryLimitOffset", f"{name} must be an integer, got {type(value).__name__}"
        ) from None


def _coerce_operator(op: Any) -> Operator:
    try:
        return Operator(op)
    except ValueError:
        return Operator.EQUAL


__all__ = ["FilterClauseBuilder"]
