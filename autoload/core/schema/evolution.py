"""
Schema evolution planning.

Compares the columns inferred for a record with the live table definition
and decides which columns to add and which to widen.
"""

from pydantic import BaseModel, Field

from autoload.core.models import ColumnType, TypedColumn

# Allowed in-place type changes (live type -> inferred type)
WIDENING_TRANSITIONS = {
    (ColumnType.INT64, ColumnType.FLOAT64),
}


class SchemaChanges(BaseModel):
    """
    Statements needed to align a live table with a record.

    Attributes:
        added: Columns missing from the live table, in column order
        widened: Columns whose live type must be widened, in column order
    """

    added: list[TypedColumn] = Field(default_factory=list)
    widened: list[TypedColumn] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.widened


def is_widening(live_type: ColumnType | None, inferred_type: ColumnType) -> bool:
    """
    Check whether a live column type should be widened.

    Only integer to floating-point is widened. Narrowing, string to numeric,
    numeric to string and float to integer are left as they are, so string
    columns never migrate.

    Args:
        live_type: Type currently declared by the store (None if unrecognised)
        inferred_type: Type inferred for this record

    Returns:
        True if the live column must be modified to the inferred type
    """
    return (live_type, inferred_type) in WIDENING_TRANSITIONS


def plan_changes(
    columns: list[TypedColumn],
    live_types: dict[str, ColumnType | None],
) -> SchemaChanges:
    """
    Diff inferred columns against the live schema.

    Args:
        columns: Typed columns inferred for the record, in column order
        live_types: Live column name -> recognised column type (None when
            the store declares a type this package does not produce)

    Returns:
        SchemaChanges; empty when the table is already aligned
    """
    changes = SchemaChanges()

    for column in columns:
        if column.name not in live_types:
            changes.added.append(column)
        elif is_widening(live_types[column.name], column.type):
            changes.widened.append(column)

    return changes
