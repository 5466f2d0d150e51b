from __future__ import annotations

import threading
from typing import List, Optional

import pytest
from pydantic import BaseModel, Field

from pgquerykit.builder.errors import ConstructionError
from pgquerykit.builder.query_builder import BuilderFlag, BuilderOptions, QueryBuilder
from pgquerykit.config import Settings
from pgquerykit.domain.filters import OpVal, Operator
from pgquerykit.domain.models import FieldKind, record_type_from_model

THREADS = 8


class Account(BaseModel):
    ID: int = 0
    Email: str = Field("", json_schema_extra={"sql": "uniq type:varchar(320)"})
    Password: str = Field("", json_schema_extra={"sql": "pass"})
    Balance: float = 0.0
    Level: int = Field(0, json_schema_extra={"sql_kind": "int16", "sql_val": "1"})
    Tags: List[str] = Field(default_factory=list)
    Nickname: Optional[str] = None
    CreatedAt: int = 0
    CreatedBy: int = 0
    ModifiedAt: int = 0
    ModifiedBy: int = 0


class Customer(BaseModel):
    id: int = Field(0, alias="ID")
    post_code: str = Field("", alias="PostCode", json_schema_extra={"db": "uniq"})


def test_record_type_from_model_maps_python_types() -> None:
    record = record_type_from_model(Account)

    kinds = {spec.name: spec.kind for spec in record.fields}
    assert record.name == "Account"
    assert kinds["ID"] is FieldKind.INT64
    assert kinds["Balance"] is FieldKind.FLOAT64
    assert kinds["Level"] is FieldKind.INT16
    assert kinds["Tags"] is FieldKind.OTHER
    assert kinds["Nickname"] is FieldKind.STRING


def test_builder_from_pydantic_model() -> None:
    builder = QueryBuilder(Account)

    assert builder.err() is None
    assert builder.create_table() == (
        'CREATE TABLE IF NOT EXISTS "account" ("id" SERIAL PRIMARY KEY,'
        "\"email\" VARCHAR(320) NOT NULL DEFAULT '' UNIQUE,"
        "\"password\" VARCHAR(255) NOT NULL DEFAULT '',"
        '"balance" DOUBLE PRECISION NOT NULL DEFAULT 0,'
        '"level" SMALLINT NOT NULL DEFAULT 1,'
        "\"nickname\" VARCHAR(255) NOT NULL DEFAULT '',"
        '"created_at" BIGINT NOT NULL DEFAULT 0,"created_by" BIGINT NOT NULL DEFAULT 0,'
        '"modified_at" BIGINT NOT NULL DEFAULT 0,"modified_by" BIGINT NOT NULL DEFAULT 0);'
    )
    assert builder.unique_fields() == ["Email"]
    assert builder.password_fields() == ["Password"]
    assert builder.has_audit_fields()
    assert builder.flags() == BuilderFlag.HAS_AUDIT_FIELDS


def test_tag_name_option_selects_extra_keys() -> None:
    default_tag = QueryBuilder(Customer)
    db_tag = QueryBuilder(Customer, BuilderOptions(tag_name="db"))

    assert default_tag.unique_fields() == []
    assert db_tag.unique_fields() == ["PostCode"]
    assert db_tag.field_to_column("PostCode") == "post_code"


def test_aliased_model_values_are_read_by_attribute() -> None:
    builder = QueryBuilder(Customer)
    customer = Customer(ID=3, PostCode="00-950")

    assert builder.insert_args(customer) == ["00-950"]
    assert builder.update_by_id_args(customer) == ["00-950", 3]


def test_builder_from_mapping() -> None:
    builder = QueryBuilder(
        {"name": "Note", "fields": [{"name": "ID", "kind": "int64"}, {"name": "Body", "kind": "string"}]}
    )

    assert builder.err() is None
    assert builder.insert() == 'INSERT INTO "note"("body") VALUES ($1) RETURNING "id";'


@pytest.mark.parametrize(
    "record",
    [
        None,
        42,
        {"name": "Dup", "fields": [{"name": "A", "kind": "int"}, {"name": "A", "kind": "int"}]},
        {"name": "Bad", "fields": [{"name": "has space", "kind": "int"}]},
        {"name": "Bad", "fields": [{"name": "A", "kind": "decimal"}]},
    ],
)
def test_construction_error_is_deferred(record: object) -> None:
    builder = QueryBuilder(record)

    err = builder.err()
    assert isinstance(err, ConstructionError)
    assert builder.drop_table().startswith("DROP TABLE IF EXISTS ")
    with pytest.raises(ConstructionError) as exc_info:
        builder.select()
    assert exc_info.value.op == "Select"


def test_field_and_column_translation(builder: QueryBuilder) -> None:
    assert builder.field_to_column("PostCode2") == "post_code2"
    assert builder.column_to_field("post_code2") == "PostCode2"
    assert builder.column_to_field("id") == "ID"
    assert builder.field_to_column("ID") == "id"
    assert builder.field_to_column("Nope") is None
    assert builder.column_to_field("nope") is None

    for column in builder.schema.columns:
        assert builder.field_to_column(builder.column_to_field(column.name)) == column.name


def test_has_field_and_value_from_string(builder: QueryBuilder) -> None:
    assert builder.has_field("Price")
    assert not builder.has_field("Nope")
    assert builder.value_from_string("Price", "0") == (True, 0)


def test_test_struct_has_no_audit_fields(builder: QueryBuilder) -> None:
    assert not builder.has_audit_fields()
    assert builder.flags() == BuilderFlag.NONE


def test_options_from_settings() -> None:
    settings = Settings(tag_name="db", table_name_prefix="app_")

    options = BuilderOptions.from_settings(settings)

    assert options == BuilderOptions(tag_name="db", table_name_prefix="app_")


def test_builder_is_safe_to_share_between_threads(builder: QueryBuilder) -> None:
    filters = {"Price": OpVal(Operator.EQUAL, 1), "Age": OpVal(Operator.GREATER, 2)}
    expected = builder.select(["Age", "desc"], 10, 5, filters)
    results: List[str] = []
    lock = threading.Lock()

    def worker() -> None:
        sql = builder.select(["Age", "desc"], 10, 5, filters)
        with lock:
            results.append(sql)

    threads = [threading.Thread(target=worker) for _ in range(THREADS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == [expected] * THREADS


def test_both_primary_key_spellings_are_a_construction_error() -> None:
    builder = QueryBuilder(
        {"name": "Twice", "fields": [{"name": "Id", "kind": "int64"}, {"name": "ID", "kind": "int64"}]}
    )

    assert isinstance(builder.err(), ConstructionError)
    assert "primary key" in str(builder.err())
    assert builder.schema.columns == ()
