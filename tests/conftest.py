"""
Pytest configuration for pgquerykit.

Provides fixtures for:
- A reference record type and its QueryBuilder
- Settings override for integration tests
- Database connection management (integration tests only)
"""

from __future__ import annotations

import os
from typing import Generator

import pytest

from pgquerykit.builder.query_builder import QueryBuilder
from pgquerykit.config import Settings
from pgquerykit.domain.models import FieldKind, FieldSpec, RecordType

TEST_STRUCT = RecordType(
    name="TestStruct",
    fields=(
        FieldSpec(name="ID", kind=FieldKind.INT64),
        FieldSpec(name="Flags", kind=FieldKind.INT64),
        FieldSpec(name="PrimaryEmail", kind=FieldKind.STRING),
        FieldSpec(name="EmailSecondary", kind=FieldKind.STRING),
        FieldSpec(name="FirstName", kind=FieldKind.STRING),
        FieldSpec(name="LastName", kind=FieldKind.STRING),
        FieldSpec(name="Age", kind=FieldKind.INT),
        FieldSpec(name="Price", kind=FieldKind.INT),
        FieldSpec(name="PostCode", kind=FieldKind.STRING),
        FieldSpec(name="PostCode2", kind=FieldKind.STRING),
        FieldSpec(name="Password", kind=FieldKind.STRING),
        FieldSpec(name="CreatedBy", kind=FieldKind.INT64),
        FieldSpec(name="Key", kind=FieldKind.STRING, options="uniq type:varchar(2000)"),
    ),
)

SELECT_PREFIX = (
    'SELECT "id","flags","primary_email","email_secondary","first_name","last_name",'
    '"age","price","post_code","post_code2","password","created_by","key" FROM "test_struct"'
)


@pytest.fixture(scope="session")
def test_struct() -> RecordType:
    return TEST_STRUCT


@pytest.fixture(scope="session")
def builder(test_struct: RecordType) -> QueryBuilder:
    """
    Session-scoped builder; builders are immutable so sharing is safe.
    """
    return QueryBuilder(test_struct)


@pytest.fixture(scope="session")
def select_prefix() -> str:
    return SELECT_PREFIX


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "pgquerykit"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    return test_settings.dsn


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    psycopg = pytest.importorskip("psycopg")
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(test_dsn: str, db_connection_available: bool) -> Generator:
    """
    Session-scoped connection using server-side ``$n`` parameters.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    psycopg = pytest.importorskip("psycopg")
    conn = psycopg.connect(test_dsn, cursor_factory=psycopg.RawCursor, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()
