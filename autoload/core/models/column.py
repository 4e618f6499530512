"""
Column models produced by flattening and type mapping.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ColumnType(str, Enum):
    """Destination column types a flattened value can be mapped to."""

    UINT8 = "uint8"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT64 = "float64"
    STRING = "string"
    DATE = "date"
    DATETIME = "datetime"


class ScalarKind(str, Enum):
    """Runtime classification of a flattened leaf value."""

    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    DATETIME = "datetime"
    UNSUPPORTED = "unsupported"


class Column(BaseModel):
    """
    A flattened (name, value) pair.

    Attributes:
        name: Nested key path joined by the flatten separator
        value: Leaf value exactly as found in the record
    """

    name: str
    value: Any = None


class TypedColumn(BaseModel):
    """
    A column after type mapping, ready for DDL and insert.

    Attributes:
        name: Column name
        type: Inferred destination type
        value: Normalized value to bind in the insert statement
    """

    name: str
    type: ColumnType
    value: Any = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "customer_address_city",
                "type": "string",
                "value": "Berlin",
            }
        }
