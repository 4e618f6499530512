"""
SQL dialects.

Each dialect renders every statement shape the pipeline issues: existence
probe, describe, create table, latest view, add/modify column, duplicate
probe and insert. Identifiers are always quoted; values always travel as
%s parameters.
"""

from abc import ABC, abstractmethod

from autoload.core.models import ColumnType, LoaderConfig, TypedColumn
from autoload.core.schema.evolution import SchemaChanges


class Dialect(ABC):
    """
    Abstract base class for SQL dialects.

    Subclasses declare their column type names and implement the statements
    whose syntax differs between stores.
    """

    # ColumnType -> declared type name
    TYPE_NAMES: dict[ColumnType, str] = {}

    # Keyword(s) used to create the latest view
    CREATE_VIEW = "CREATE VIEW"

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the dialect identifier."""
        pass

    @abstractmethod
    def quote(self, identifier: str) -> str:
        """Quote a table or column identifier."""
        pass

    @abstractmethod
    def exists_table(self, table: str) -> tuple[str, tuple]:
        """Statement and params for a single-row table existence probe."""
        pass

    @abstractmethod
    def describe_table(self, table: str) -> tuple[str, tuple]:
        """Statement and params returning (name, type, *, *) per column."""
        pass

    @abstractmethod
    def create_table(self, table: str, columns: list[TypedColumn], config: LoaderConfig) -> list[str]:
        """Statements creating a table for the given columns."""
        pass

    @abstractmethod
    def modify_column(self, table: str, column: TypedColumn) -> str:
        """Statement changing a column to the column's inferred type."""
        pass

    def type_name(self, column_type: ColumnType) -> str:
        return self.TYPE_NAMES[column_type]

    def column_type(self, declared: str) -> ColumnType | None:
        """
        Map a type name reported by the store back to a ColumnType.

        Args:
            declared: Type name as returned by describe_table

        Returns:
            Matching ColumnType, or None for types this package never declares
        """
        declared = declared.strip().lower()
        for column_type, type_name in self.TYPE_NAMES.items():
            if type_name.lower() == declared:
                return column_type
        return None

    def column_definition(self, column: TypedColumn) -> str:
        return f"        {self.quote(column.name):<59} {self.type_name(column.type)}"

    def add_column(self, table: str, column: TypedColumn) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} ADD COLUMN IF NOT EXISTS "
            f"{self.quote(column.name)} {self.type_name(column.type)}"
        )

    def create_view(self, view: str, table: str, config: LoaderConfig) -> str:
        """
        Statement creating the latest view: per id, the row with the max timestamp.
        """
        q = self.quote
        id_col = q(config.id_field)
        ts_col = q(config.timestamp_field)
        return (
            f"{self.CREATE_VIEW} {q(view)} AS "
            f"SELECT t.* FROM {q(table)} AS t "
            f"INNER JOIN ("
            f"SELECT {id_col} AS latest_id, max({ts_col}) AS latest_ts "
            f"FROM {q(table)} GROUP BY {id_col}"
            f") AS latest "
            f"ON t.{id_col} = latest.latest_id AND t.{ts_col} = latest.latest_ts"
        )

    def drop_view(self, view: str) -> str:
        return f"DROP VIEW IF EXISTS {self.quote(view)}"

    def alter_statements(
        self,
        table: str,
        changes: SchemaChanges,
        config: LoaderConfig,
    ) -> list[str]:
        """
        Statements applying planned schema changes to an existing table.

        Args:
            table: Table to alter
            changes: Columns to add and widen
            config: Loader settings (for the latest view)

        Returns:
            Statements in execution order; empty when there are no changes
        """
        statements = [self.add_column(table, column) for column in changes.added]
        statements.extend(self.modify_column(table, column) for column in changes.widened)
        return statements

    def param_quote(self, identifier: str) -> str:
        """Quote an identifier for a statement that also carries %s parameters."""
        # % is the placeholder marker, so literal percent signs are doubled
        return self.quote(identifier).replace("%", "%%")

    def duplicate_probe(self, table: str, config: LoaderConfig) -> str:
        """Statement selecting a row by id and content hash; params are (id, hash)."""
        q = self.param_quote
        return (
            f"SELECT 1 FROM {q(table)} "
            f"WHERE {q(config.id_field)} = %s AND {q(config.hash_field)} = %s LIMIT 1"
        )

    def insert(self, table: str, names: list[str]) -> str:
        """Parameterized insert with one placeholder per column, in name order."""
        columns = ", ".join(self.param_quote(name) for name in names)
        placeholders = ", ".join(["%s"] * len(names))
        return f"INSERT INTO {self.param_quote(table)} ({columns}) VALUES ({placeholders})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ClickHouseDialect(Dialect):
    """
    ClickHouse: ReplacingMergeTree tables partitioned by month of the ingestion
    date, ordered by (id, content hash), with the ingestion timestamp as the
    version column.
    """

    TYPE_NAMES = {
        ColumnType.UINT8: "UInt8",
        ColumnType.INT64: "Int64",
        ColumnType.UINT64: "UInt64",
        ColumnType.FLOAT64: "Float64",
        ColumnType.STRING: "String",
        ColumnType.DATE: "Date",
        ColumnType.DATETIME: "DateTime",
    }

    CREATE_VIEW = "CREATE VIEW IF NOT EXISTS"

    @property
    def name(self) -> str:
        return "clickhouse"

    def quote(self, identifier: str) -> str:
        escaped = identifier.replace("\\", "\\\\").replace("`", "\\`")
        return f"`{escaped}`"

    def exists_table(self, table: str) -> tuple[str, tuple]:
        return f"EXISTS TABLE {self.quote(table)}", ()

    def describe_table(self, table: str) -> tuple[str, tuple]:
        return f"DESCRIBE TABLE {self.quote(table)}", ()

    def create_table(self, table: str, columns: list[TypedColumn], config: LoaderConfig) -> list[str]:
        q = self.quote
        definitions = ",\n".join(self.column_definition(column) for column in columns)
        return [
            f"CREATE TABLE IF NOT EXISTS {q(table)} (\n{definitions}\n) "
            f"ENGINE = ReplacingMergeTree({q(config.timestamp_field)}) "
            f"PARTITION BY toYYYYMM({q(config.date_field)}) "
            f"ORDER BY ({q(config.id_field)}, {q(config.hash_field)})"
        ]

    def modify_column(self, table: str, column: TypedColumn) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} MODIFY COLUMN "
            f"{self.quote(column.name)} {self.type_name(column.type)}"
        )


class PostgresDialect(Dialect):
    """
    PostgreSQL: (id, content hash) primary key and an index on the ingestion
    date. Views pin column types, so the latest view is dropped and recreated
    around ALTERs.
    """

    TYPE_NAMES = {
        ColumnType.UINT8: "SMALLINT",
        ColumnType.INT64: "BIGINT",
        ColumnType.UINT64: "NUMERIC(20, 0)",
        ColumnType.FLOAT64: "DOUBLE PRECISION",
        ColumnType.STRING: "TEXT",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "TIMESTAMPTZ",
    }

    # information_schema.columns.data_type spellings
    INFORMATION_SCHEMA_TYPES = {
        "smallint": ColumnType.UINT8,
        "bigint": ColumnType.INT64,
        "numeric": ColumnType.UINT64,
        "double precision": ColumnType.FLOAT64,
        "text": ColumnType.STRING,
        "date": ColumnType.DATE,
        "timestamp with time zone": ColumnType.DATETIME,
    }

    CREATE_VIEW = "CREATE OR REPLACE VIEW"

    @property
    def name(self) -> str:
        return "postgres"

    def quote(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def column_type(self, declared: str) -> ColumnType | None:
        column_type = self.INFORMATION_SCHEMA_TYPES.get(declared.strip().lower())
        if column_type is not None:
            return column_type
        return super().column_type(declared)

    def exists_table(self, table: str) -> tuple[str, tuple]:
        return (
            "SELECT EXISTS ("
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = %s)",
            (table,),
        )

    def describe_table(self, table: str) -> tuple[str, tuple]:
        return (
            "SELECT column_name, data_type, is_nullable, column_default "
            "FROM information_schema.columns "
            "WHERE table_schema = current_schema() AND table_name = %s "
            "ORDER BY ordinal_position",
            (table,),
        )

    def create_table(self, table: str, columns: list[TypedColumn], config: LoaderConfig) -> list[str]:
        q = self.quote
        definitions = ",\n".join(self.column_definition(column) for column in columns)
        primary_key = f"        PRIMARY KEY ({q(config.id_field)}, {q(config.hash_field)})"
        return [
            f"CREATE TABLE IF NOT EXISTS {q(table)} (\n{definitions},\n{primary_key}\n)",
            f"CREATE INDEX IF NOT EXISTS {q(table + '_' + config.date_field + '_idx')} "
            f"ON {q(table)} ({q(config.date_field)})",
        ]

    def modify_column(self, table: str, column: TypedColumn) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} ALTER COLUMN "
            f"{self.quote(column.name)} TYPE {self.type_name(column.type)}"
        )

    def alter_statements(
        self,
        table: str,
        changes: SchemaChanges,
        config: LoaderConfig,
    ) -> list[str]:
        statements = super().alter_statements(table, changes, config)
        view = config.view_name(table)
        if statements and view is not None:
            statements = [self.drop_view(view), *statements, self.create_view(view, table, config)]
        return statements


DIALECTS = {
    "clickhouse": ClickHouseDialect,
    "postgres": PostgresDialect,
}


def get_dialect(name: str) -> Dialect:
    """
    Look up a dialect by name.

    Raises:
        ValueError: If the dialect is unknown
    """
    try:
        return DIALECTS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown dialect '{name}', expected one of {sorted(DIALECTS)}") from None
