"""
Command-line interface for loading JSON records into PostgreSQL.

Usage:
    autoload load --table <table> --input <file_path> --id-key <key> [options]
    autoload describe --table <table> [options]
"""

import argparse
import sys
from pathlib import Path

from autoload.batch.pipeline import LoadPipeline
from autoload.core.models import LoaderConfig
from autoload.observability import metrics
from autoload.observability.logger import LogSinks, get_logger
from autoload.warehouse.connection import DatabaseConnectionPool
from autoload.warehouse.dialect import PostgresDialect
from autoload.warehouse.schema_mgmt import SchemaReconciler


logger = get_logger(__name__)


def load_config(path: str | None) -> LoaderConfig:
    """
    Load loader settings from YAML, or defaults when no path is given.
    """
    if path is None:
        return LoaderConfig()
    return LoaderConfig.from_yaml(path)


def create_pool(args) -> DatabaseConnectionPool:
    """
    Create and open a connection pool from command-line arguments.

    Unset arguments fall back to the DB_* environment variables.
    """
    pool = DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )
    pool.open()
    return pool


def load_command(args) -> int:
    """
    Execute the load command.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code
    """
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    pool = create_pool(args)
    try:
        pipeline = LoadPipeline(pool, PostgresDialect(), config, LogSinks.default())
        summary = pipeline.load_file(
            input_path,
            table=args.table,
            id_key=args.id_key,
            timestamp=args.timestamp,
            timestamp_key=args.timestamp_key,
            file_format=args.format,
        )
    except Exception as e:
        logger.error(f"Error during load: {e}", exc_info=True)
        return 1
    finally:
        pool.close()

    logger.info("=" * 60)
    logger.info("LOAD COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Total records: {summary['total']}")
    logger.info(f"Inserted: {summary['inserted']}")
    logger.info(f"Duplicates skipped: {summary['duplicates']}")
    logger.info(f"Failed: {summary['failed']}")
    logger.info("=" * 60)

    if args.print_metrics:
        sys.stdout.write(metrics.get_metrics().decode())

    return 0 if summary["failed"] == 0 else 2


def describe_command(args) -> int:
    """
    Execute the describe command: print the live schema of a table.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code
    """
    pool = create_pool(args)
    try:
        reconciler = SchemaReconciler(pool, PostgresDialect(), logs=LogSinks.default())
        if not reconciler.table_exists(args.table):
            logger.error(f"Table not found: {args.table}")
            return 1
        for name, type_name in reconciler.table_columns(args.table).items():
            print(f"{name:<60}{type_name}")
    finally:
        pool.close()

    return 0


def add_db_arguments(parser: argparse.ArgumentParser) -> None:
    """Add database connection arguments (defaults come from DB_* env vars)."""
    parser.add_argument("--db-host", default=None, help="Database host (env: DB_HOST)")
    parser.add_argument("--db-port", type=int, default=None, help="Database port (env: DB_PORT)")
    parser.add_argument("--db-name", default=None, help="Database name (env: DB_NAME)")
    parser.add_argument("--db-user", default=None, help="Database user (env: DB_USER)")
    parser.add_argument("--db-password", default=None, help="Database password (env: DB_PASSWORD)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autoload",
        description="Load nested JSON records into an auto-evolving table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load a JSON lines file, taking each record's id from its "id" key
  autoload load --table events --input data/events.jsonl --id-key id

  # Load with a fixed ingestion timestamp and custom reserved column names
  autoload load --table events --input data/events.json --id-key id \\
      --timestamp 2017-06-27T16:47:14Z --config config/loader.yaml

  # Show the live schema of a table
  autoload describe --table events
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    load_parser = subparsers.add_parser("load", help="Load a JSON file into a table")
    load_parser.add_argument("--table", required=True, help="Destination table")
    load_parser.add_argument("--input", required=True, help="Path to input file")
    load_parser.add_argument("--id-key", required=True, help="Record key holding the entity id")
    load_parser.add_argument(
        "--timestamp",
        default=None,
        help="Ingestion timestamp for all records (default: now, UTC)"
    )
    load_parser.add_argument(
        "--timestamp-key",
        default=None,
        help="Record key holding a per-record ingestion timestamp"
    )
    load_parser.add_argument(
        "--format",
        default=None,
        choices=["json", "jsonl"],
        help="Input file format (default: from the file suffix)"
    )
    load_parser.add_argument("--config", default=None, help="Path to loader YAML configuration")
    load_parser.add_argument(
        "--print-metrics",
        action="store_true",
        help="Print Prometheus metrics after loading"
    )
    add_db_arguments(load_parser)

    describe_parser = subparsers.add_parser("describe", help="Print the live schema of a table")
    describe_parser.add_argument("--table", required=True, help="Table to describe")
    add_db_arguments(describe_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "load":
        sys.exit(load_command(args))
    elif args.command == "describe":
        sys.exit(describe_command(args))


if __name__ == "__main__":
    main()
