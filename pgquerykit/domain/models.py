"""
Record-type descriptions consumed by the schema reflector.

A record type is an ordered list of fields, each with a name, a primitive
kind and a space-separated option string (``uniq``, ``pass``,
``type:<SQLTYPE>``) plus an optional literal default. Descriptions can be
written by hand or derived from a pydantic model with
``record_type_from_model``.
"""
from __future__ import annotations

import re
import types
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel, Field, field_validator, model_validator

_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class FieldKind(str, Enum):
    """Primitive kind of a record field."""

    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOL = "bool"
    STRING = "string"
    OTHER = "other"

    @property
    def is_supported(self) -> bool:
        return self is not FieldKind.OTHER

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_KINDS

    @property
    def is_float(self) -> bool:
        return self in (FieldKind.FLOAT32, FieldKind.FLOAT64)


_INTEGER_KINDS = frozenset(
    {
        FieldKind.INT,
        FieldKind.INT8,
        FieldKind.INT16,
        FieldKind.INT32,
        FieldKind.INT64,
        FieldKind.UINT,
        FieldKind.UINT8,
        FieldKind.UINT16,
        FieldKind.UINT32,
        FieldKind.UINT64,
    }
)


class FieldSpec(BaseModel):
    """
    A single field of a record type.
    """

    name: str = Field(..., description="Field name, CamelCase by convention.")
    kind: FieldKind = Field(..., description="Primitive kind of the field.")
    options: str = Field("", description="Space-separated option tokens.")
    default: Optional[str] = Field(None, description="Literal SQL default expression.")
    attribute: Optional[str] = Field(
        None, description="Python attribute holding the value when it differs from the name."
    )

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _FIELD_NAME_RE.match(value):
            raise ValueError(f"invalid field name {value!r}")
        return value

    @property
    def option_tokens(self) -> List[str]:
        return [token for token in self.options.split(" ") if token]


class RecordType(BaseModel):
    """
    An ordered description of a record type.

    The first field is conventionally the identity primary key (``Id``/``ID``).
    """

    name: str = Field(..., min_length=1, description="Type name, e.g. 'User' or 'User_Register'.")
    fields: Tuple[FieldSpec, ...] = Field(..., description="Fields in declaration order.")

    model_config = {
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_unique_names(self) -> "RecordType":
        seen = set()
        for spec in self.fields:
            if spec.name in seen:
                raise ValueError(f"duplicate field name {spec.name!r}")
            seen.add(spec.name)
        if {"Id", "ID"} <= seen:
            raise ValueError("duplicate primary key: both 'Id' and 'ID' are declared")
        return self


_PYTHON_KINDS: Dict[Any, FieldKind] = {
    bool: FieldKind.BOOL,
    int: FieldKind.INT64,
    float: FieldKind.FLOAT64,
    str: FieldKind.STRING,
}


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def kind_from_annotation(annotation: Any) -> FieldKind:
    """Map a Python type annotation to a field kind; unknown types map to OTHER."""
    annotation = _unwrap_optional(annotation)
    for python_type, kind in _PYTHON_KINDS.items():
        if annotation is python_type:
            return kind
    return FieldKind.OTHER


def record_type_from_model(model_cls: Type[BaseModel], tag_name: str = "sql") -> RecordType:
    """
    Describe a pydantic model class as a RecordType.

    Per-field options are read from ``json_schema_extra``: ``<tag_name>`` holds
    the option string, ``<tag_name>_val`` the literal default and
    ``<tag_name>_kind`` an explicit FieldKind (e.g. ``"int32"``).
    """
    specs = []
    for attr_name, info in model_cls.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        kind = extra.get(f"{tag_name}_kind")
        default = extra.get(f"{tag_name}_val")
        specs.append(
            FieldSpec(
                name=info.alias or attr_name,
                kind=FieldKind(kind) if kind else kind_from_annotation(info.annotation),
                options=str(extra.get(tag_name, "")),
                default=None if default is None else str(default),
                attribute=attr_name,
            )
        )
    return RecordType(name=model_cls.__name__, fields=tuple(specs))


__all__ = [
    "FieldKind",
    "FieldSpec",
    "RecordType",
    "kind_from_annotation",
    "record_type_from_model",
]
