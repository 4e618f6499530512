"""Unit tests for the JSON reader."""

import pytest

from autoload.batch.readers import JSONReader, loads
from autoload.core.models import JsonNumber


def test_loads_preserves_number_literals():
    record = loads('{"a": 1, "b": 1.0, "c": {"d": -2e5}, "e": "1"}')

    assert record["a"] == JsonNumber("1")
    assert isinstance(record["a"], JsonNumber)
    assert record["b"] == "1.0"
    assert record["c"]["d"] == "-2e5"
    # Strings stay plain strings
    assert type(record["e"]) is str


def test_read_json_object(tmp_path):
    path = tmp_path / "one.json"
    path.write_text('{"id": 1}')

    assert list(JSONReader().read(path)) == [{"id": "1"}]


def test_read_json_array(tmp_path):
    path = tmp_path / "many.json"
    path.write_text('[{"id": 1}, {"id": 2}]')

    assert [r["id"] for r in JSONReader().read(path)] == ["1", "2"]


def test_read_json_lines_by_suffix(tmp_path):
    path = tmp_path / "events.ndjson"
    path.write_text('{"id": 1}\n\n{"id": 2}\n')

    assert len(list(JSONReader().read(path))) == 2


def test_read_json_lines_by_format(tmp_path):
    path = tmp_path / "events.txt"
    path.write_text('{"id": 1}\n{"id": 2}\n')

    assert len(list(JSONReader().read(path, file_format="jsonl"))) == 2


def test_invalid_line_reports_position(tmp_path):
    path = tmp_path / "events.jsonl"
    path.write_text('{"id": 1}\n{broken\n')

    with pytest.raises(ValueError, match=":2: invalid JSON"):
        list(JSONReader().read(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(JSONReader().read(tmp_path / "absent.json"))


def test_unsupported_format(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("id\n1\n")

    with pytest.raises(ValueError, match="Unsupported file format"):
        list(JSONReader().read(path, file_format="csv"))
