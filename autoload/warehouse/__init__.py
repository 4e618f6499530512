"""
Warehouse access: store protocol, SQL dialects, schema reconciliation and writes.
"""

from .dialect import ClickHouseDialect, Dialect, PostgresDialect, get_dialect
from .schema_mgmt import SchemaReconciler
from .store import Store
from .upsert import RecordWriter

__all__ = [
    "Dialect",
    "ClickHouseDialect",
    "PostgresDialect",
    "get_dialect",
    "SchemaReconciler",
    "Store",
    "RecordWriter",
]
