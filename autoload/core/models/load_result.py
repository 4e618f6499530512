"""
LoadResult model describing the outcome of loading a single record.
"""

from typing import Literal

from pydantic import BaseModel, Field


class LoadResult(BaseModel):
    """
    Outcome of one pipeline run for a single record.

    Attributes:
        table: Destination table
        record_id: Entity id of the record
        content_hash: Content hash used for deduplication
        status: "inserted" or "duplicate"
        columns: Column names written, in insert order
        dropped_fields: Flattened fields excluded because of unsupported value types
        statements: Schema statements executed for this record
    """

    table: str
    record_id: int | str
    content_hash: int | str
    status: Literal["inserted", "duplicate"]
    columns: list[str] = Field(default_factory=list)
    dropped_fields: list[str] = Field(default_factory=list)
    statements: list[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "table": "harvest",
                "record_id": 1,
                "content_hash": 9271843520873001231,
                "status": "inserted",
                "columns": ["_date", "_hash", "_id", "_timestamp", "name"],
                "dropped_fields": ["notes"],
                "statements": ["CREATE TABLE IF NOT EXISTS ..."],
            }
        }
