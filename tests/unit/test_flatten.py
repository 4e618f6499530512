"""
Unit tests for record flattening.

Includes property-based testing with hypothesis for determinism and ordering.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from autoload.core.schema import StructuralError, flatten

scalars = st.one_of(
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=False),
    st.text(max_size=10),
    st.none(),
)
# Keys without the separator, so compound names are unique
keys = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=5)
records = st.dictionaries(
    keys,
    st.recursive(scalars, lambda children: st.dictionaries(keys, children, max_size=4), max_leaves=20),
    max_size=6,
)


class TestFlatten:
    """Tests for flatten()"""

    def test_top_level_keys_kept_as_is(self):
        columns = flatten({"name": "Alice", "age": 30})

        assert [(c.name, c.value) for c in columns] == [("age", 30), ("name", "Alice")]

    def test_nested_keys_joined_with_separator(self):
        record = {"user": {"address": {"city": "Berlin", "zip": "10115"}, "name": "Bob"}}

        columns = flatten(record)

        assert [c.name for c in columns] == ["user_address_city", "user_address_zip", "user_name"]

    def test_custom_separator(self):
        columns = flatten({"a": {"b": {"c": 1}}}, separator=".")

        assert [c.name for c in columns] == ["a.b.c"]

    def test_output_sorted_regardless_of_insertion_order(self):
        first = flatten({"b": 1, "a": {"z": 2, "y": 3}, "c": 4})
        second = flatten({"c": 4, "a": {"y": 3, "z": 2}, "b": 1})

        assert first == second
        assert [c.name for c in first] == ["a_y", "a_z", "b", "c"]

    def test_empty_nested_map_produces_no_columns(self):
        assert flatten({"meta": {}}) == []

    def test_none_is_kept_as_leaf(self):
        columns = flatten({"missing": None})

        assert columns[0].name == "missing"
        assert columns[0].value is None

    def test_deep_nesting(self):
        record = current = {}
        for _ in range(50):
            current["k"] = {}
            current = current["k"]
        current["leaf"] = True

        columns = flatten(record)

        assert len(columns) == 1
        assert columns[0].name == "_".join(["k"] * 50 + ["leaf"])

    def test_list_value_rejected(self):
        with pytest.raises(StructuralError) as exc_info:
            flatten({"tags": ["a", "b"]})

        assert exc_info.value.path == "tags"

    def test_nested_list_rejected(self):
        with pytest.raises(StructuralError) as exc_info:
            flatten({"order": {"items": [{"sku": 1}]}})

        assert exc_info.value.path == "order_items"

    @pytest.mark.parametrize("value", [(1, 2), {1, 2}, frozenset([1]), b"raw", bytearray(b"x")])
    def test_other_sequences_rejected(self, value):
        with pytest.raises(StructuralError):
            flatten({"value": value})

    @pytest.mark.parametrize("record", [["a"], "text", 42, None])
    def test_non_mapping_record_rejected(self, record):
        with pytest.raises(StructuralError):
            flatten(record)

    def test_non_string_key_rejected(self):
        with pytest.raises(StructuralError):
            flatten({"outer": {1: "one"}})

    def test_colliding_names_rejected(self):
        with pytest.raises(StructuralError) as exc_info:
            flatten({"a_b": 1, "a": {"b": 2}})

        assert exc_info.value.path == "a_b"

    @given(records)
    def test_flatten_is_deterministic(self, record):
        assert flatten(record) == flatten(record)

    @given(records)
    def test_flatten_output_sorted(self, record):
        names = [c.name for c in flatten(record)]

        assert names == sorted(names)
        assert len(names) == len(set(names))
