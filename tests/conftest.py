"""
Pytest configuration and fixtures for autoload tests

This module provides shared fixtures for unit and integration tests.
"""
import re
from contextlib import contextmanager
from typing import Generator

import pytest

from autoload.core.models import LoaderConfig
from autoload.observability.logger import LogSinks
from autoload.warehouse.dialect import ClickHouseDialect


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )


# =======================
# IN-MEMORY STORE
# =======================

CREATE_TABLE = re.compile(r"^CREATE TABLE IF NOT EXISTS `([^`]+)` \(\n(.*)\n\) ENGINE", re.DOTALL)
COLUMN_LINE = re.compile(r"^\s+`([^`]+)`\s+(\S+?),?$")
CREATE_VIEW = re.compile(r"^CREATE VIEW IF NOT EXISTS `([^`]+)` AS ")
ADD_COLUMN = re.compile(r"^ALTER TABLE `([^`]+)` ADD COLUMN IF NOT EXISTS `([^`]+)` (\S+)$")
MODIFY_COLUMN = re.compile(r"^ALTER TABLE `([^`]+)` MODIFY COLUMN `([^`]+)` (\S+)$")
EXISTS_TABLE = re.compile(r"^EXISTS TABLE `([^`]+)`$")
DESCRIBE_TABLE = re.compile(r"^DESCRIBE TABLE `([^`]+)`$")
DUPLICATE_PROBE = re.compile(
    r"^SELECT 1 FROM `([^`]+)` WHERE `([^`]+)` = %s AND `([^`]+)` = %s LIMIT 1$"
)
INSERT = re.compile(r"^INSERT INTO `([^`]+)` \((.*)\) VALUES \((.*)\)$")


class MemoryStore:
    """
    Store that understands the ClickHouse dialect's statements and keeps
    tables, views and rows in memory.

    Every statement is appended to ``statements``. Setting ``fail_on`` to a
    substring makes any statement containing it raise RuntimeError.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, str]] = {}
        self.views: set[str] = set()
        self.rows: dict[str, list[dict]] = {}
        self.statements: list[str] = []
        self.fail_on: str | None = None

    def _record(self, statement: str) -> None:
        self.statements.append(statement)
        if self.fail_on is not None and self.fail_on in statement:
            raise RuntimeError(f"store failure on: {statement}")

    def execute(self, statement, params=None):
        self._record(statement)

        match = CREATE_TABLE.match(statement)
        if match:
            table, body = match.groups()
            if table not in self.tables:
                columns = {}
                for line in body.split("\n"):
                    name, type_name = COLUMN_LINE.match(line).groups()
                    columns[name] = type_name
                self.tables[table] = columns
                self.rows[table] = []
            return

        match = CREATE_VIEW.match(statement)
        if match:
            self.views.add(match.group(1))
            return

        match = ADD_COLUMN.match(statement)
        if match:
            table, name, type_name = match.groups()
            self.tables[table].setdefault(name, type_name)
            return

        match = MODIFY_COLUMN.match(statement)
        if match:
            table, name, type_name = match.groups()
            self.tables[table][name] = type_name
            return

        raise ValueError(f"MemoryStore cannot execute: {statement}")

    def query_row(self, statement, params=None):
        self._record(statement)

        match = EXISTS_TABLE.match(statement)
        if match:
            return (1 if match.group(1) in self.tables else 0,)

        match = DUPLICATE_PROBE.match(statement)
        if match:
            table, id_column, hash_column = match.groups()
            for row in self.rows.get(table, []):
                if row.get(id_column) == params[0] and row.get(hash_column) == params[1]:
                    return (1,)
            return None

        raise ValueError(f"MemoryStore cannot query: {statement}")

    def query(self, statement, params=None):
        self._record(statement)

        match = DESCRIBE_TABLE.match(statement)
        if match:
            columns = self.tables.get(match.group(1), {})
            return [(name, type_name, "", "") for name, type_name in columns.items()]

        raise ValueError(f"MemoryStore cannot query: {statement}")

    @contextmanager
    def transaction(self):
        pending = []
        store = self

        class _Cursor:
            def execute(self, statement, params=None):
                store._record(statement)
                match = INSERT.match(statement)
                if not match:
                    raise ValueError(f"MemoryStore cannot execute in transaction: {statement}")
                table, names, _ = match.groups()
                names = [name.strip("`") for name in names.split(", ")]
                if table not in store.tables:
                    raise RuntimeError(f"Table {table} doesn't exist")
                missing = [name for name in names if name not in store.tables[table]]
                if missing:
                    raise RuntimeError(f"No such column(s) in {table}: {missing}")
                pending.append((table, dict(zip(names, params))))

        yield _Cursor()

        for table, row in pending:
            self.rows[table].append(row)

    def count(self, prefix: str) -> int:
        """Number of recorded statements starting with prefix."""
        return sum(1 for statement in self.statements if statement.startswith(prefix))


@pytest.fixture
def memory_store() -> MemoryStore:
    """Empty in-memory ClickHouse-speaking store"""
    return MemoryStore()


@pytest.fixture
def dialect() -> ClickHouseDialect:
    return ClickHouseDialect()


@pytest.fixture
def loader_config() -> LoaderConfig:
    """Loader settings with default reserved column names"""
    return LoaderConfig()


@pytest.fixture
def null_logs() -> LogSinks:
    """Log sinks that discard everything"""
    return LogSinks.null()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_autoload",
        password="test_password",
        dbname="test_warehouse"
    ) as postgres:
        yield postgres


@pytest.fixture
def pg_pool(postgres_container) -> Generator:
    """
    Open a connection pool against the test container

    Yields:
        DatabaseConnectionPool instance
    """
    from autoload.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_warehouse",
        user="test_autoload",
        password="test_password",
    )
    pool.open()
    try:
        yield pool
    finally:
        pool.close()
