"""
Identity and content-hash bookkeeping.

Injects the id, ingestion date, ingestion timestamp and content hash columns
into a record before it is flattened.
"""

import hashlib
import json
from collections.abc import Mapping, MutableMapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from autoload.core.models import JsonNumber, LoaderConfig
from autoload.core.schema.flatten import StructuralError
from autoload.core.schema.inference import INTEGER_LITERAL, NumberParseError, parse_float, to_datetime


class TimestampError(ValueError):
    """Raised when an ingestion timestamp cannot be parsed."""


class BookkeepingError(ValueError):
    """Raised when a record carries a bookkeeping field that does not map to its fixed type."""


def _canonical_default(value: Any) -> Any:
    # Values json cannot encode natively; these are later typed or dropped
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _canonical_number(value: JsonNumber | Decimal) -> Any:
    literal = str(value)
    if INTEGER_LITERAL.fullmatch(literal):
        return int(literal)
    try:
        return parse_float(literal)
    except NumberParseError:
        # Stored as a string column, so it hashes like one
        return literal


def _canonical(value: Any, path: str) -> Any:
    """
    Copy of a record with number literals as numbers.

    Raises:
        StructuralError: If a mapping has a non-string key
    """
    if isinstance(value, Mapping):
        canonical = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise StructuralError(path, f"keys must be strings, got {type(key).__name__} {key!r}")
            canonical[key] = _canonical(item, f"{path}.{key}" if path else key)
        return canonical
    if isinstance(value, (list, tuple)):
        return [_canonical(item, path) for item in value]
    if isinstance(value, (JsonNumber, Decimal)):
        return _canonical_number(value)
    return value


def content_hash(record: Any) -> int:
    """
    Stable hash of a record's content.

    Keys are sorted before serialization, so two records with the same content
    hash identically regardless of key insertion order. Number literals are
    serialized as numbers, so 42 and "42" hash differently.

    Args:
        record: Record content (mappings and scalars)

    Returns:
        Unsigned 64-bit integer (first 8 bytes of the MD5 digest)

    Raises:
        StructuralError: If a nested mapping has a non-string key
    """
    data_str = json.dumps(
        _canonical(record, ""),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_canonical_default,
    )
    digest = hashlib.md5(data_str.encode()).digest()
    return int.from_bytes(digest[:8], "big")


def ingestion_date(timestamp: str) -> str:
    """
    Calendar date of an ingestion timestamp.

    Args:
        timestamp: ISO-8601-like timestamp string

    Returns:
        Date formatted as YYYY-MM-DD

    Raises:
        TimestampError: If the timestamp cannot be parsed
    """
    is_date, _, parsed = to_datetime(timestamp)
    if not is_date:
        raise TimestampError(f"Unparseable ingestion timestamp: {timestamp!r}")
    return parsed.strftime("%Y-%m-%d")


def augment(
    record: MutableMapping[str, Any],
    record_id: Any,
    timestamp: str,
    config: LoaderConfig,
) -> tuple[MutableMapping[str, Any], int]:
    """
    Add the bookkeeping fields to a record, in place.

    The hash is computed before anything else is injected so that the id,
    date and timestamp never change the hash of identical content. Every
    field is only added when absent, which makes re-augmenting a record a
    no-op.

    Args:
        record: Record to augment
        record_id: Caller-supplied entity id (int or integer literal)
        timestamp: ISO-8601-like ingestion timestamp
        config: Loader settings naming the bookkeeping fields

    Returns:
        Tuple of (record, content hash)

    Raises:
        TimestampError: If the timestamp cannot be parsed
        StructuralError: If a nested mapping has a non-string key
        ValueError: If record_id is not an integer
    """
    day = ingestion_date(timestamp)
    if config.id_field not in record:
        record_id = int(record_id)

    if config.hash_field not in record:
        record[config.hash_field] = content_hash(record)

    if config.id_field not in record:
        record[config.id_field] = record_id

    if config.date_field not in record:
        record[config.date_field] = day

    if config.timestamp_field not in record:
        record[config.timestamp_field] = timestamp

    return record, record[config.hash_field]
