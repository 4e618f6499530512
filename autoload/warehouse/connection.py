"""
PostgreSQL connection pool management using psycopg3

This module provides the pooled Store implementation used by the CLI and
the integration tests. Any psycopg error propagates to the caller as-is.
"""
import os
import time
from contextlib import contextmanager
from typing import Any, Sequence

from psycopg import OperationalError
from psycopg_pool import ConnectionPool


class DatabaseConnectionPool:
    """
    PostgreSQL connection pool manager using psycopg3

    Provides efficient connection pooling with automatic reconnection
    and implements the Store protocol: execute, query_row, query and
    transaction.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 4,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize database connection pool

        Args:
            host: Database host (defaults to env var DB_HOST)
            port: Database port (defaults to env var DB_PORT)
            database: Database name (defaults to env var DB_NAME)
            user: Database user (defaults to env var DB_USER)
            password: Database password (defaults to env var DB_PASSWORD)
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Connection timeout in seconds
        """
        self.host = host or os.getenv("DB_HOST", "localhost")
        self.port = port or int(os.getenv("DB_PORT", "5432"))
        self.database = database or os.getenv("DB_NAME", "warehouse")
        self.user = user or os.getenv("DB_USER", "autoload")
        self.password = password or os.getenv("DB_PASSWORD")

        # Security: Require password to be explicitly set
        if not self.password:
            raise ValueError(
                "Database password must be provided. "
                "Set DB_PASSWORD environment variable or pass to constructor."
            )

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout

        self.conninfo = (
            f"host={self.host} "
            f"port={self.port} "
            f"dbname={self.database} "
            f"user={self.user} "
            f"password={self.password} "
            f"connect_timeout={int(self.timeout)}"
        )

        self._pool: ConnectionPool | None = None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the connection pool with retry logic.

        Args:
            max_retries: Maximum number of connection attempts
            retry_delay: Delay between retries in seconds

        Raises:
            OperationalError: If connection fails after all retries
        """
        if self._pool is not None:
            return

        for attempt in range(1, max_retries + 1):
            # A pool that failed to open cannot be reused
            pool = ConnectionPool(
                conninfo=self.conninfo,
                min_size=self.min_size,
                max_size=self.max_size,
                timeout=self.timeout,
                open=False,
            )
            try:
                pool.open(wait=True, timeout=self.timeout)
                self._pool = pool
                return
            except OperationalError as e:
                pool.close()
                if attempt < max_retries:
                    time.sleep(retry_delay)
                else:
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e

    def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Get a connection from the pool

        Yields:
            psycopg.Connection: Database connection

        Raises:
            RuntimeError: If pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def get_cursor(self):
        """
        Get a cursor from a pooled connection

        Yields:
            psycopg.Cursor: Database cursor
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                yield cur

    def execute(self, statement: str, params: Sequence[Any] | None = None) -> None:
        """
        Execute a statement that returns no rows and commit it

        Args:
            statement: SQL statement
            params: Statement parameters (optional)
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(statement, params or None)
            conn.commit()

    def query_row(self, statement: str, params: Sequence[Any] | None = None) -> tuple | None:
        """
        Execute a query and return its first row

        Args:
            statement: SQL query
            params: Query parameters (optional)

        Returns:
            First row as a tuple, or None if the query returned no rows
        """
        with self.get_cursor() as cur:
            cur.execute(statement, params or None)
            return cur.fetchone()

    def query(self, statement: str, params: Sequence[Any] | None = None) -> list[tuple]:
        """
        Execute a query and return all rows

        Args:
            statement: SQL query
            params: Query parameters (optional)

        Returns:
            List of row tuples
        """
        with self.get_cursor() as cur:
            cur.execute(statement, params or None)
            return cur.fetchall()

    @contextmanager
    def transaction(self):
        """
        Run statements in a single transaction

        Commits when the block exits normally, rolls back if it raises.

        Yields:
            psycopg.Cursor: Cursor bound to the transaction
        """
        with self.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    yield cur

    def __enter__(self):
        """Context manager entry"""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
        return False
