"""
Record flattening, type inference and schema evolution planning.
"""

from .evolution import SchemaChanges, is_widening, plan_changes
from .flatten import StructuralError, flatten
from .inference import TypeMapper, classify, to_datetime

__all__ = [
    "StructuralError",
    "flatten",
    "TypeMapper",
    "classify",
    "to_datetime",
    "SchemaChanges",
    "is_widening",
    "plan_changes",
]
