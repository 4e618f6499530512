"""
JSON reader that keeps numbers as their literal text.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from autoload.core.models import JsonNumber

JSON_LINES_SUFFIXES = {".jsonl", ".ndjson"}


def loads(text: str) -> Any:
    """
    Decode a JSON document with numbers preserved as JsonNumber.

    Args:
        text: JSON text

    Returns:
        Decoded value
    """
    return json.loads(text, parse_int=JsonNumber, parse_float=JsonNumber, parse_constant=JsonNumber)


class JSONReader:
    """
    Reads records from JSON files.

    Supports a single JSON object, a JSON array of objects, or JSON lines
    (one object per line, selected by a .jsonl/.ndjson suffix or
    file_format="jsonl").
    """

    def read(self, file_path: str | Path, file_format: str | None = None) -> Iterator[Any]:
        """
        Iterate over the records in a file.

        Args:
            file_path: Path to the file
            file_format: "json" or "jsonl" (inferred from the suffix if None)

        Yields:
            Decoded records, in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the format is unsupported or the JSON is invalid
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {file_path}")

        if file_format is None:
            file_format = "jsonl" if path.suffix.lower() in JSON_LINES_SUFFIXES else "json"

        if file_format.lower() == "jsonl":
            yield from self._read_lines(path)
        elif file_format.lower() == "json":
            with open(path) as f:
                document = loads(f.read())
            if isinstance(document, list):
                yield from document
            else:
                yield document
        else:
            raise ValueError(f"Unsupported file format: {file_format}")

    def _read_lines(self, path: Path) -> Iterator[Any]:
        with open(path) as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"{path}:{line_number}: invalid JSON: {e}") from e
