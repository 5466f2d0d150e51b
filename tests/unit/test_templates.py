from __future__ import annotations

from pgquerykit.builder.query_builder import BuilderOptions, QueryBuilder
from pgquerykit.builder.reflector import reflect
from pgquerykit.builder.templates import assignments, build_templates, placeholders
from pgquerykit.domain.models import FieldKind, FieldSpec, RecordType

EXPECTED_TERMINATORS = 1


def test_drop_table(builder: QueryBuilder) -> None:
    assert builder.drop_table() == 'DROP TABLE IF EXISTS "test_struct";'


def test_create_table(builder: QueryBuilder) -> None:
    want = (
        'CREATE TABLE IF NOT EXISTS "test_struct" ("id" SERIAL PRIMARY KEY,"flags" BIGINT NOT NULL DEFAULT 0,'
        "\"primary_email\" VARCHAR(255) NOT NULL DEFAULT '',\"email_secondary\" VARCHAR(255) NOT NULL DEFAULT '',"
        "\"first_name\" VARCHAR(255) NOT NULL DEFAULT '',\"last_name\" VARCHAR(255) NOT NULL DEFAULT '',"
        '"age" BIGINT NOT NULL DEFAULT 0,"price" BIGINT NOT NULL DEFAULT 0,'
        "\"post_code\" VARCHAR(255) NOT NULL DEFAULT '',\"post_code2\" VARCHAR(255) NOT NULL DEFAULT '',"
        "\"password\" VARCHAR(255) NOT NULL DEFAULT '',"
        "\"created_by\" BIGINT NOT NULL DEFAULT 0,\"key\" VARCHAR(2000) NOT NULL DEFAULT '' UNIQUE);"
    )
    assert builder.create_table() == want


def test_create_table_for_minimal_record() -> None:
    record = RecordType(
        name="Listing",
        fields=(
            FieldSpec(name="Id", kind=FieldKind.INT64),
            FieldSpec(name="Flags", kind=FieldKind.INT64),
            FieldSpec(name="Price", kind=FieldKind.INT),
            FieldSpec(name="PostCode", kind=FieldKind.STRING, options="uniq type:varchar(2000)"),
        ),
    )

    got = QueryBuilder(record).create_table()

    assert got == (
        'CREATE TABLE IF NOT EXISTS "listing" ("id" SERIAL PRIMARY KEY,'
        '"flags" BIGINT NOT NULL DEFAULT 0,'
        '"price" BIGINT NOT NULL DEFAULT 0,'
        "\"post_code\" VARCHAR(2000) NOT NULL DEFAULT '' UNIQUE);"
    )


def test_insert(builder: QueryBuilder) -> None:
    want = (
        'INSERT INTO "test_struct"("flags","primary_email","email_secondary","first_name","last_name",'
        '"age","price","post_code","post_code2","password","created_by","key") '
        'VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9,$10,$11,$12) RETURNING "id";'
    )
    assert builder.insert() == want


def test_update_by_id(builder: QueryBuilder) -> None:
    want = (
        'UPDATE "test_struct" SET "flags"=$1,"primary_email"=$2,"email_secondary"=$3,"first_name"=$4,"last_name"=$5,'
        '"age"=$6,"price"=$7,"post_code"=$8,"post_code2"=$9,"password"=$10,"created_by"=$11,"key"=$12 WHERE "id" = $13;'
    )
    assert builder.update_by_id() == want


def test_insert_on_conflict_update(builder: QueryBuilder) -> None:
    want = (
        'INSERT INTO "test_struct"("id","flags","primary_email","email_secondary","first_name","last_name",'
        '"age","price","post_code","post_code2","password","created_by","key") '
        "VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9,$10,$11,$12,$13) "
        'ON CONFLICT ("id") DO UPDATE SET '
        '"flags"=$14,"primary_email"=$15,"email_secondary"=$16,"first_name"=$17,"last_name"=$18,"age"=$19,'
        '"price"=$20,"post_code"=$21,"post_code2"=$22,"password"=$23,"created_by"=$24,"key"=$25 '
        'RETURNING "id";'
    )
    assert builder.insert_on_conflict_update() == want


def test_select_and_delete_by_id(builder: QueryBuilder, select_prefix: str) -> None:
    assert builder.select_by_id() == select_prefix + ' WHERE "id" = $1;'
    assert builder.delete_by_id() == 'DELETE FROM "test_struct" WHERE "id" = $1;'


def test_terminator_appended_once_on_output(builder: QueryBuilder, test_struct: RecordType) -> None:
    templates = build_templates(reflect(test_struct))

    assert not templates.create_table.endswith(";")
    assert not templates.select_prefix.endswith(";")
    for sql in (builder.create_table(), builder.create_table(), builder.insert()):
        assert sql.count(";") == EXPECTED_TERMINATORS
        assert sql.endswith(";")


def test_prefixes(test_struct: RecordType, select_prefix: str) -> None:
    templates = build_templates(reflect(test_struct))

    assert templates.select_prefix == select_prefix
    assert templates.select_count_prefix == 'SELECT COUNT(*) AS cnt FROM "test_struct"'
    assert templates.delete_prefix == 'DELETE FROM "test_struct"'
    assert templates.update_prefix == 'UPDATE "test_struct" SET'


def test_table_name_prefix_option(test_struct: RecordType) -> None:
    builder = QueryBuilder(test_struct, BuilderOptions(table_name_prefix="app_"))

    assert builder.drop_table() == 'DROP TABLE IF EXISTS "app_test_struct";'
    assert builder.delete_by_id() == 'DELETE FROM "app_test_struct" WHERE "id" = $1;'


def test_variant_type_maps_to_base_table() -> None:
    record = RecordType(
        name="User_Register",
        fields=(
            FieldSpec(name="ID", kind=FieldKind.INT64),
            FieldSpec(name="Email", kind=FieldKind.STRING),
        ),
    )

    assert QueryBuilder(record).drop_table() == 'DROP TABLE IF EXISTS "user";'


def test_empty_schema_still_renders() -> None:
    builder = QueryBuilder(RecordType(name="Empty", fields=()))

    assert builder.create_table() == 'CREATE TABLE IF NOT EXISTS "empty" ();'
    assert builder.select_by_id() == 'SELECT  FROM "empty" WHERE "id" = $1;'


def test_placeholder_helpers() -> None:
    assert placeholders(3, 2) == "$3,$4"
    assert placeholders(1, 0) == ""

    schema = reflect(
        RecordType(
            name="Pair",
            fields=(
                FieldSpec(name="Left", kind=FieldKind.STRING),
                FieldSpec(name="Right", kind=FieldKind.STRING),
            ),
        )
    )
    assert assignments(schema.columns, 5) == '"left"=$5,"right"=$6'
