"""
Integration tests for loading into PostgreSQL.

Requires Docker: a PostgreSQL container is started by the postgres_container
fixture.
"""

import uuid
from datetime import date

import pytest

from autoload.batch.pipeline import LoadPipeline
from autoload.core.models import JsonNumber, LoaderConfig
from autoload.observability.logger import LogSinks
from autoload.warehouse.dialect import PostgresDialect
from autoload.warehouse.schema_mgmt import SchemaReconciler

TIMESTAMP = "2020-01-01T00:00:00Z"


@pytest.fixture
def table() -> str:
    """Unique table name per test (the container is shared by the session)"""
    return f"events_{uuid.uuid4().hex[:8]}"


@pytest.fixture
def config() -> LoaderConfig:
    return LoaderConfig(latest_view="{table}_latest")


@pytest.fixture
def pipeline(pg_pool, config) -> LoadPipeline:
    return LoadPipeline(pg_pool, PostgresDialect(), config, LogSinks.null())


def alice():
    return {"name": "Alice", "active": True, "score": JsonNumber("3.5"), "visited": "2020-01-01"}


@pytest.mark.integration
def test_first_insert_creates_table(pipeline, pg_pool, table):
    """Test that the first record creates the table with inferred types."""
    result = pipeline.insert(alice(), table, 1, TIMESTAMP)

    assert result.status == "inserted"
    columns = SchemaReconciler(pg_pool, PostgresDialect(), logs=LogSinks.null()).table_columns(table)
    assert columns == {
        "_date": "date",
        "_hash": "numeric",
        "_id": "bigint",
        "_timestamp": "timestamp with time zone",
        "active": "smallint",
        "name": "text",
        "score": "double precision",
        "visited": "date",
    }


@pytest.mark.integration
def test_repeated_insert_writes_one_row(pipeline, pg_pool, table):
    """Test that loading the same content twice leaves a single row."""
    first = pipeline.insert(alice(), table, 1, TIMESTAMP)
    second = pipeline.insert(alice(), table, 1, TIMESTAMP)

    assert first.status == "inserted"
    assert second.status == "duplicate"

    rows = pg_pool.query(f'SELECT "_id", "_hash", "name", "visited" FROM "{table}"')
    assert len(rows) == 1
    assert rows[0][0] == 1
    assert int(rows[0][1]) == first.content_hash
    assert rows[0][2] == "Alice"
    assert rows[0][3] == date(2020, 1, 1)


@pytest.mark.integration
def test_integer_column_widened(pipeline, pg_pool, table):
    """Test int -> float widening with a latest view in place."""
    pipeline.insert({"score": JsonNumber("1")}, table, 1, TIMESTAMP)
    widened = pipeline.insert({"score": JsonNumber("2.5")}, table, 2, TIMESTAMP)
    aligned = pipeline.insert({"score": JsonNumber("4")}, table, 3, TIMESTAMP)

    assert any("TYPE DOUBLE PRECISION" in s for s in widened.statements)
    assert aligned.statements == []

    rows = pg_pool.query(f'SELECT "score" FROM "{table}" ORDER BY "_id"')
    assert [row[0] for row in rows] == [1.0, 2.5, 4.0]


@pytest.mark.integration
def test_new_column_added(pipeline, pg_pool, table):
    pipeline.insert({"a": JsonNumber("1")}, table, 1, TIMESTAMP)
    pipeline.insert({"a": JsonNumber("2"), "meta": {"source": "api"}}, table, 2, TIMESTAMP)

    rows = pg_pool.query(f'SELECT "a", "meta_source" FROM "{table}" ORDER BY "_id"')
    assert rows == [(1, None), (2, "api")]


@pytest.mark.integration
def test_latest_view_returns_newest_row_per_id(pipeline, pg_pool, table, config):
    pipeline.insert({"status": "new"}, table, 1, "2020-01-01T10:00:00Z")
    pipeline.insert({"status": "paid"}, table, 1, "2020-01-02T10:00:00Z")
    pipeline.insert({"status": "new"}, table, 2, "2020-01-01T11:00:00Z")

    view = config.view_name(table)
    rows = pg_pool.query(f'SELECT "_id", "status" FROM "{view}" ORDER BY "_id"')
    assert rows == [(1, "paid"), (2, "new")]


@pytest.mark.integration
def test_load_file(pipeline, pg_pool, table, tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text(
        '{"id": 1, "user": {"name": "Bob"}}\n'
        '{"id": 2, "user": {"name": "Eve"}}\n'
        '{"id": 3, "tags": ["x"]}\n'
    )

    summary = pipeline.load_file(path, table, id_key="id", timestamp=TIMESTAMP)

    assert summary == {"total": 3, "inserted": 2, "duplicates": 0, "failed": 1}
    assert pg_pool.query_row(f'SELECT count(*) FROM "{table}"') == (2,)
