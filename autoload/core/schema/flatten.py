"""
Record flattening.

Collapses a nested mapping into a sorted list of columns whose names are the
nested key paths joined by a separator.
"""

from collections.abc import Mapping
from typing import Any

from autoload.core.models import Column

# Composite values that have no column representation
SEQUENCE_TYPES = (list, tuple, set, frozenset, bytes, bytearray)


class StructuralError(Exception):
    """Raised when a record holds a value that cannot be flattened into columns."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path or '<record>'}: {message}")


def flatten(record: Any, separator: str = "_") -> list[Column]:
    """
    Flatten a nested record into columns sorted by name.

    Top-level keys are kept as-is; nested keys are prefixed with their
    parent path and the separator. Mappings are expanded, every other
    value becomes a leaf column.

    Args:
        record: Nested mapping of string keys to mappings or scalars
        separator: String joining nested keys

    Returns:
        Columns sorted ascending by name

    Raises:
        StructuralError: If the record is not a mapping, holds a list-like
            value, has a non-string key, or two paths flatten to the same name
    """
    if not isinstance(record, Mapping):
        raise StructuralError("", f"record must be a mapping, got {type(record).__name__}")

    flat: dict[str, Any] = {}
    _flatten_into(flat, record, "", separator)

    return [Column(name=name, value=flat[name]) for name in sorted(flat)]


def _flatten_into(flat: dict[str, Any], nested: Mapping, prefix: str, separator: str) -> None:
    for key, value in nested.items():
        if not isinstance(key, str):
            raise StructuralError(prefix, f"keys must be strings, got {type(key).__name__} {key!r}")

        name = f"{prefix}{separator}{key}" if prefix else key

        if isinstance(value, Mapping):
            _flatten_into(flat, value, name, separator)
            continue

        if isinstance(value, SEQUENCE_TYPES):
            raise StructuralError(
                name, f"{type(value).__name__} values are not supported, only mappings and scalars"
            )

        if name in flat:
            raise StructuralError(name, "more than one field flattens to this column name")

        flat[name] = value
