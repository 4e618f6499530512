"""
LoaderConfig model holding the reserved column names and flatten settings.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class LoaderConfig(BaseModel):
    """
    Settings consumed by the load pipeline at construction.

    Expected YAML format:
    ```yaml
    loader:
      id_field: _id
      date_field: _date
      timestamp_field: _timestamp
      hash_field: _hash
      latest_view: "{table}_latest"
      separator: "_"
    ```

    Attributes:
        id_field: Column holding the caller-supplied entity id
        date_field: Column holding the ingestion date (partition key)
        timestamp_field: Column holding the raw ingestion timestamp
        hash_field: Column holding the content hash
        latest_view: Optional view name template, "{table}" is replaced
            by the table name. No view is created when unset.
        separator: String joining nested keys into column names
    """

    id_field: str = Field("_id", min_length=1)
    date_field: str = Field("_date", min_length=1)
    timestamp_field: str = Field("_timestamp", min_length=1)
    hash_field: str = Field("_hash", min_length=1)
    latest_view: str | None = None
    separator: str = Field("_", min_length=1)

    @model_validator(mode="after")
    def check_reserved_names_distinct(self):
        """Validate that the four bookkeeping columns do not collide."""
        names = list(self.reserved_fields)
        if len(set(names)) != len(names):
            raise ValueError(f"Reserved field names must be distinct, got {names}")
        return self

    @field_validator('latest_view')
    @classmethod
    def check_view_template(cls, v):
        """Validate that the view template references the table name."""
        if v is not None and "{table}" not in v:
            raise ValueError(f"latest_view template must contain '{{table}}', got '{v}'")
        return v

    @property
    def reserved_fields(self) -> tuple[str, str, str, str]:
        """Bookkeeping column names: (id, date, timestamp, hash)."""
        return (self.id_field, self.date_field, self.timestamp_field, self.hash_field)

    def view_name(self, table: str) -> str | None:
        """Name of the latest view for a table, or None if not configured."""
        if self.latest_view is None:
            return None
        return self.latest_view.format(table=table)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "LoaderConfig":
        """
        Load loader settings from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Validated LoaderConfig

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the YAML is missing the 'loader' section or holds invalid values
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Loader configuration file not found: {config_path}")

        with open(path) as f:
            config = yaml.safe_load(f)

        if not config or "loader" not in config:
            raise ValueError("Configuration file must contain 'loader' section")

        section = config["loader"] or {}
        if not isinstance(section, dict):
            raise ValueError("'loader' section must be a mapping")

        try:
            return cls(**section)
        except ValidationError as e:
            raise ValueError(f"Invalid loader configuration in {config_path}: {e}") from e

    class Config:
        json_schema_extra = {
            "example": {
                "id_field": "_id",
                "date_field": "_date",
                "timestamp_field": "_timestamp",
                "hash_field": "_hash",
                "latest_view": "{table}_latest",
                "separator": "_",
            }
        }
