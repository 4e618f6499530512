"""
Prometheus metrics collection for autoload

This module provides metrics instrumentation for monitoring
record loading, schema drift and dropped data.
"""
from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# LOAD METRICS
# =======================

# Records loaded counter
records_loaded_total = Counter(
    name="autoload_records_loaded_total",
    documentation="Total number of records handled by the load pipeline",
    labelnames=["table", "status"],  # status: inserted, duplicate, failed
    registry=REGISTRY,
)

# Insert duration histogram
insert_duration_seconds = Histogram(
    name="autoload_insert_duration_seconds",
    documentation="Time spent in the insert transaction in seconds",
    labelnames=["table"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
    registry=REGISTRY,
)

# =======================
# SCHEMA METRICS
# =======================

# Schema changes counter
schema_changes_total = Counter(
    name="autoload_schema_changes_total",
    documentation="Total number of schema statements issued",
    labelnames=["table", "change_type"],  # change_type: create_table, create_view, add_column, widen_column
    registry=REGISTRY,
)

# Dropped fields counter
fields_dropped_total = Counter(
    name="autoload_fields_dropped_total",
    documentation="Total number of flattened fields dropped for unsupported value types",
    labelnames=["table"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def record_load(table: str, status: str) -> None:
    """
    Record the outcome of loading one record

    Args:
        table: Destination table
        status: inserted, duplicate or failed
    """
    records_loaded_total.labels(table=table, status=status).inc()


def record_schema_change(table: str, change_type: str) -> None:
    """
    Record a schema statement

    Args:
        table: Destination table
        change_type: Kind of statement issued
    """
    schema_changes_total.labels(table=table, change_type=change_type).inc()


def record_dropped_fields(table: str, count: int) -> None:
    """
    Record fields excluded from a record

    Args:
        table: Destination table
        count: Number of dropped fields
    """
    if count > 0:
        fields_dropped_total.labels(table=table).inc(count)


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus text format

    Returns:
        Metrics data in Prometheus exposition format
    """
    return generate_latest(REGISTRY)
