"""
Load pipeline orchestration.

Coordinates the flow per record: augment → flatten → type → dedup → reconcile → insert
"""

from collections.abc import Iterable, Mapping, MutableMapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from autoload.batch.readers import JSONReader
from autoload.core.identity import BookkeepingError, TimestampError, augment
from autoload.core.models import ColumnType, LoaderConfig, LoadResult, TypedColumn
from autoload.core.schema import StructuralError, TypeMapper, flatten
from autoload.observability import metrics
from autoload.observability.logger import LogSinks, log_operation
from autoload.warehouse.dialect import Dialect
from autoload.warehouse.schema_mgmt import SchemaReconciler
from autoload.warehouse.store import Store
from autoload.warehouse.upsert import RecordWriter


class LoadPipeline:
    """
    Loads nested records into a table, evolving its schema as needed.

    Flow for each record:
    1. Add the hash, id, date and timestamp bookkeeping fields
    2. Flatten nested keys into sorted columns
    3. Infer a column type for every value, dropping unsupported ones
    4. If the table exists, skip records whose (id, hash) is already stored
    5. Create the table or add/widen columns
    6. Insert the row in a transaction
    """

    def __init__(
        self,
        store: Store,
        dialect: Dialect,
        config: LoaderConfig | None = None,
        logs: LogSinks | None = None,
    ):
        """
        Initialize load pipeline.

        Args:
            store: Query execution collaborator
            dialect: SQL dialect spoken by the store
            config: Loader settings (defaults to LoaderConfig())
            logs: Log sinks (defaults to the "autoload" loggers)
        """
        self.store = store
        self.dialect = dialect
        self.config = config or LoaderConfig()
        self.logs = logs or LogSinks.default()

        self.type_mapper = TypeMapper(self.config, self.logs)
        self.reconciler = SchemaReconciler(store, dialect, self.config, self.logs)
        self.writer = RecordWriter(store, dialect, self.config, self.logs)

    def insert(
        self,
        record: MutableMapping[str, Any],
        table: str,
        record_id: Any,
        timestamp: str,
    ) -> LoadResult:
        """
        Load a single record.

        The record is augmented in place with the bookkeeping fields.

        Args:
            record: Nested record
            table: Destination table
            record_id: Entity id (int or integer literal)
            timestamp: ISO-8601-like ingestion timestamp

        Returns:
            LoadResult with status "inserted" or "duplicate"

        Raises:
            StructuralError: If the record holds list-like values
            TimestampError: If the timestamp cannot be parsed
            BookkeepingError: If a bookkeeping field does not map to its fixed type
            Exception: Any store error, unchanged
        """
        try:
            return self._insert(record, table, record_id, timestamp)
        except Exception:
            metrics.record_load(table, "failed")
            raise

    def _insert(
        self,
        record: MutableMapping[str, Any],
        table: str,
        record_id: Any,
        timestamp: str,
    ) -> LoadResult:
        record, content_hash = augment(record, record_id, timestamp, self.config)

        columns = flatten(record, self.config.separator)
        typed, dropped = self.type_mapper.map_columns(columns)
        metrics.record_dropped_fields(table, len(dropped))

        typed_by_name = {column.name: column for column in typed}
        self._check_bookkeeping(typed_by_name, record)
        id_value = typed_by_name[self.config.id_field].value
        hash_value = typed_by_name[self.config.hash_field].value

        exists = self.reconciler.table_exists(table)
        if exists and self.writer.is_duplicate(table, id_value, hash_value):
            self.logs.ops.info(
                f"Skipping duplicate record in {table}: id={id_value} hash={hash_value}"
            )
            metrics.record_load(table, "duplicate")
            return LoadResult(
                table=table,
                record_id=id_value,
                content_hash=hash_value,
                status="duplicate",
                dropped_fields=dropped,
            )

        statements = self.reconciler.reconcile(table, typed, exists)

        names = [column.name for column in typed]
        values = [column.value for column in typed]
        self.writer.insert_row(table, names, values)

        self.logs.debug.debug(f"Inserted record id={id_value} into {table} ({len(names)} columns)")
        metrics.record_load(table, "inserted")

        return LoadResult(
            table=table,
            record_id=id_value,
            content_hash=hash_value,
            status="inserted",
            columns=names,
            dropped_fields=dropped,
            statements=statements,
        )

    def _check_bookkeeping(self, typed_by_name: dict[str, TypedColumn], record: Mapping[str, Any]) -> None:
        # The probe, DDL keys and partitioning all rely on these fixed types
        config = self.config
        expected = {
            config.id_field: ColumnType.INT64,
            config.hash_field: ColumnType.UINT64,
            config.date_field: ColumnType.DATE,
            config.timestamp_field: ColumnType.DATETIME,
        }
        for name, column_type in expected.items():
            column = typed_by_name.get(name)
            if column is None or column.type != column_type:
                raise BookkeepingError(
                    f"Field {name} holds {record.get(name)!r}, expected a {column_type.value} value"
                )

    def load_records(
        self,
        records: Iterable[Any],
        table: str,
        id_key: str,
        timestamp: str | None = None,
        timestamp_key: str | None = None,
    ) -> dict[str, int]:
        """
        Load many records into one table.

        Records that cannot be loaded (not a mapping, no id, list-like values,
        bad id, timestamp or bookkeeping value) are counted as failed and skipped. Store errors
        abort the run.

        Args:
            records: Decoded records
            table: Destination table
            id_key: Record key holding each record's entity id
            timestamp: Ingestion timestamp for every record (defaults to now, UTC)
            timestamp_key: Record key holding a per-record timestamp, used when present

        Returns:
            Dictionary with processing results:
            - total: Records seen
            - inserted: Rows written
            - duplicates: Records skipped as already loaded
            - failed: Records rejected
        """
        default_timestamp = timestamp or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        summary = {"total": 0, "inserted": 0, "duplicates": 0, "failed": 0}

        for position, record in enumerate(records, start=1):
            summary["total"] += 1

            if not isinstance(record, MutableMapping) or id_key not in record:
                self.logs.ops.warning(f"Record {position}: missing id key '{id_key}', skipped")
                metrics.record_load(table, "failed")
                summary["failed"] += 1
                continue

            record_timestamp = default_timestamp
            if timestamp_key is not None and isinstance(record.get(timestamp_key), str):
                record_timestamp = record[timestamp_key]

            try:
                result = self.insert(record, table, record[id_key], record_timestamp)
            except (StructuralError, TimestampError, ValueError) as e:
                self.logs.ops.warning(f"Record {position}: rejected: {e}")
                summary["failed"] += 1
                continue

            if result.status == "duplicate":
                summary["duplicates"] += 1
            else:
                summary["inserted"] += 1

        return summary

    def load_file(
        self,
        file_path: str | Path,
        table: str,
        id_key: str,
        timestamp: str | None = None,
        timestamp_key: str | None = None,
        file_format: str | None = None,
    ) -> dict[str, int]:
        """
        Load every record of a JSON or JSON lines file.

        Args:
            file_path: Path to the input file
            table: Destination table
            id_key: Record key holding each record's entity id
            timestamp: Ingestion timestamp for every record (defaults to now, UTC)
            timestamp_key: Record key holding a per-record timestamp
            file_format: "json" or "jsonl" (inferred from the suffix if None)

        Returns:
            Summary as returned by load_records
        """
        reader = JSONReader()
        with log_operation("Loading file", logger=self.logs.ops, file=str(file_path), table=table):
            return self.load_records(
                reader.read(file_path, file_format=file_format),
                table,
                id_key,
                timestamp=timestamp,
                timestamp_key=timestamp_key,
            )
