"""
Batch record readers.
"""

from .json_reader import JSONReader, loads

__all__ = [
    "JSONReader",
    "loads",
]
