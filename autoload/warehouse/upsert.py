"""
Idempotent writes for warehouse records.

A record is only inserted when no row with the same (id, content hash) pair
exists, which makes repeated loads of the same content safe.
"""

import time
from typing import Any

from autoload.core.models import LoaderConfig
from autoload.observability import metrics
from autoload.observability.logger import LogSinks
from autoload.warehouse.dialect import Dialect
from autoload.warehouse.store import Store


class RecordWriter:
    """
    Handles the duplicate probe and the single-row insert transaction.
    """

    def __init__(
        self,
        store: Store,
        dialect: Dialect,
        config: LoaderConfig | None = None,
        logs: LogSinks | None = None,
    ):
        """
        Initialize record writer.

        Args:
            store: Query execution collaborator
            dialect: SQL dialect spoken by the store
            config: Loader settings naming the id and hash columns
            logs: Log sinks (defaults to the "autoload" loggers)
        """
        self.store = store
        self.dialect = dialect
        self.config = config or LoaderConfig()
        self.logs = logs or LogSinks.default()

    def is_duplicate(self, table: str, record_id: int, content_hash: int) -> bool:
        """
        Check whether a row with this id and content hash already exists.

        Only meaningful for an existing table; a first load can never be a
        duplicate.

        Args:
            table: Table name
            record_id: Entity id
            content_hash: Content hash of the record

        Returns:
            True if a matching row exists
        """
        statement = self.dialect.duplicate_probe(table, self.config)
        self.logs.debug.debug(statement)
        row = self.store.query_row(statement, (record_id, content_hash))
        return row is not None

    def insert_row(self, table: str, names: list[str], values: list[Any]) -> None:
        """
        Insert one row atomically.

        Args:
            table: Table name
            names: Column names, in insert order
            values: Values matching names

        Raises:
            ValueError: If names and values differ in length
        """
        if len(names) != len(values):
            raise ValueError(
                f"Column count ({len(names)}) does not match value count ({len(values)})"
            )

        statement = self.dialect.insert(table, names)
        self.logs.debug.debug(statement)

        start = time.time()
        with self.store.transaction() as cur:
            cur.execute(statement, values)
        metrics.insert_duration_seconds.labels(table=table).observe(time.time() - start)
