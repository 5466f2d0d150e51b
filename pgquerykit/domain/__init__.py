"""
Domain package for pgquerykit.

Exports record-type descriptions and filter definitions. Keep this package
focused on data definitions; SQL rendering lives in ``pgquerykit.builder``.
"""

from pgquerykit.domain.filters import RAW, Conjunction, Filters, OpVal, Operator
from pgquerykit.domain.models import FieldKind, FieldSpec, RecordType, record_type_from_model

__all__ = [
    "Conjunction",
    "FieldKind",
    "FieldSpec",
    "Filters",
    "OpVal",
    "Operator",
    "RAW",
    "RecordType",
    "record_type_from_model",
]
