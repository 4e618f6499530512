"""
Core data models for the autoload pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .column import Column, ColumnType, ScalarKind, TypedColumn
from .json_number import JsonNumber
from .load_result import LoadResult
from .loader_config import LoaderConfig

__all__ = [
    "Column",
    "ColumnType",
    "ScalarKind",
    "TypedColumn",
    "JsonNumber",
    "LoadResult",
    "LoaderConfig",
]
