"""
Schema management operations for the warehouse.

Creates tables on first use and aligns existing tables with the columns
inferred for each record. The live table definition is read from the store
on every call; nothing is cached between records.
"""

from autoload.core.models import LoaderConfig, TypedColumn
from autoload.core.schema.evolution import plan_changes
from autoload.observability import metrics
from autoload.observability.logger import LogSinks
from autoload.warehouse.dialect import Dialect
from autoload.warehouse.store import Store


class SchemaReconciler:
    """
    Brings a live table in line with a record's inferred columns.

    Handles:
    - Table existence checks and introspection
    - Table (and optional latest view) creation
    - Adding missing columns
    - Widening integer columns to floating-point
    """

    def __init__(
        self,
        store: Store,
        dialect: Dialect,
        config: LoaderConfig | None = None,
        logs: LogSinks | None = None,
    ):
        """
        Initialize schema reconciler.

        Args:
            store: Query execution collaborator
            dialect: SQL dialect spoken by the store
            config: Loader settings (bookkeeping names, latest view)
            logs: Log sinks (defaults to the "autoload" loggers)
        """
        self.store = store
        self.dialect = dialect
        self.config = config or LoaderConfig()
        self.logs = logs or LogSinks.default()

    def table_exists(self, table: str) -> bool:
        """
        Check whether a table exists.

        Args:
            table: Table name

        Returns:
            True if the store reports the table
        """
        statement, params = self.dialect.exists_table(table)
        self.logs.debug.debug(statement)
        row = self.store.query_row(statement, params)
        return bool(row and row[0])

    def table_columns(self, table: str) -> dict[str, str]:
        """
        Get the live column definitions of a table.

        Args:
            table: Table name

        Returns:
            Column name -> declared type name, in table order
        """
        statement, params = self.dialect.describe_table(table)
        self.logs.debug.debug(statement)
        return {row[0]: row[1] for row in self.store.query(statement, params)}

    def reconcile(self, table: str, columns: list[TypedColumn], exists: bool) -> list[str]:
        """
        Align the live schema with the inferred columns.

        A missing table is created (with the latest view when configured).
        An existing table gets ADD COLUMN for new columns and MODIFY COLUMN
        for integer columns that now receive floating-point values. Any other
        type mismatch is left for the store to resolve at insert time.

        Args:
            table: Table name
            columns: Typed columns in sorted column order
            exists: Whether the table exists

        Returns:
            Statements executed, in order; empty when already aligned
        """
        if not exists:
            return self._create(table, columns)

        live = self.table_columns(table)
        live_types = {name: self.dialect.column_type(type_name) for name, type_name in live.items()}
        changes = plan_changes(columns, live_types)

        if changes.is_empty:
            return []

        statements = self.dialect.alter_statements(table, changes, self.config)
        self._execute_all(statements)

        for column in changes.added:
            self.logs.ops.info(
                f"Added column {column.name} {self.dialect.type_name(column.type)} to {table}"
            )
            metrics.record_schema_change(table, "add_column")

        for column in changes.widened:
            self.logs.ops.info(
                f"Widened column {column.name} in {table}: "
                f"{live[column.name]} -> {self.dialect.type_name(column.type)}"
            )
            metrics.record_schema_change(table, "widen_column")

        return statements

    def _create(self, table: str, columns: list[TypedColumn]) -> list[str]:
        statements = self.dialect.create_table(table, columns, self.config)
        view = self.config.view_name(table)
        if view is not None:
            statements.append(self.dialect.create_view(view, table, self.config))

        self._execute_all(statements)

        self.logs.ops.info(f"Created table {table} with {len(columns)} columns")
        metrics.record_schema_change(table, "create_table")
        if view is not None:
            self.logs.ops.info(f"Created latest view {view} for {table}")
            metrics.record_schema_change(table, "create_view")

        return statements

    def _execute_all(self, statements: list[str]) -> None:
        for statement in statements:
            self.logs.debug.debug(statement)
            self.store.execute(statement)
