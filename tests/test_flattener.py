"""Tests for the JSON flattener."""

import pytest
from concurrent.futures import ThreadPoolExecutor
from json_tabulator.config import TabulatorConfig
from json_tabulator.flattener import JSONFlattener
from json_tabulator.types import DataStructure, MalformedPathError


class TestJSONFlattener:
    """Tests for JSONFlattener class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.flattener = JSONFlattener()

    def test_flatten_nested_objects(self):
        """Test that nested objects become dotted paths."""
        record, headers = self.flattener.flatten({
            "name": "x",
            "user": {"id": 1, "address": {"city": "Oslo"}}
        })

        assert record == {"name": "x", "user.id": 1, "user.address.city": "Oslo"}
        assert headers == ["name", "user.id", "user.address.city"]

    def test_flatten_small_array(self):
        """Test that small arrays are expanded element by element."""
        record, _ = self.flattener.flatten({"tags": ["a", "b"], "orders": [{"id": 1}, {"id": 2}]})

        assert record == {
            "tags[0]": "a",
            "tags[1]": "b",
            "orders[0].id": 1,
            "orders[1].id": 2,
        }

    def test_flatten_array_at_threshold_is_expanded(self):
        """Test that an array of exactly the threshold size is kept whole."""
        record, _ = self.flattener.flatten({"values": list(range(10))})

        assert "values_Count" not in record
        assert [record[f"values[{i}]"] for i in range(10)] == list(range(10))

    def test_flatten_large_array(self):
        """Test that large arrays are summarized by a count and a sample."""
        record, _ = self.flattener.flatten({"field": list(range(15))})

        assert record == {
            "field_Count": 15,
            "field[0]": 0,
            "field[1]": 1,
            "field[2]": 2,
        }
        assert "field[3]" not in record

    def test_flatten_large_array_of_objects(self):
        """Test sampling of large arrays of objects."""
        orders = [{"id": i, "total": i * 10} for i in range(12)]
        record, _ = self.flattener.flatten({"orders": orders})

        assert record["orders_Count"] == 12
        assert record["orders[2].total"] == 20
        assert "orders[3].id" not in record

    def test_flatten_uses_configured_thresholds(self):
        """Test that array limits come from the configuration."""
        flattener = JSONFlattener(TabulatorConfig(small_array_threshold=2, array_sample_size=1))
        record, _ = flattener.flatten({"a": [1, 2, 3], "b": [4, 5]})

        assert record == {"a_Count": 3, "a[0]": 1, "b[0]": 4, "b[1]": 5}

    def test_flatten_keeps_nulls(self):
        """Test that null values keep their column."""
        record, headers = self.flattener.flatten({"a": None, "b": [None, 1]})

        assert record == {"a": None, "b[0]": None, "b[1]": 1}
        assert headers == ["a", "b[0]", "b[1]"]

    def test_flatten_empty_containers(self):
        """Test that empty objects and arrays are kept as values."""
        record, _ = self.flattener.flatten({"settings": {}, "tags": [], "list": [{}]})

        assert record == {"settings": {}, "tags": [], "list[0]": {}}

    def test_flatten_nested_arrays_are_embedded(self):
        """Test that arrays inside arrays are stored whole."""
        source = {"matrix": [[1, 2], [3]]}
        record, _ = self.flattener.flatten(source)

        assert record == {"matrix[0]": [1, 2], "matrix[1]": [3]}

        source["matrix"][0].append(99)
        assert record["matrix[0]"] == [1, 2]

    def test_flatten_rejects_reserved_property_names(self):
        """Test that names with path characters are rejected."""
        with pytest.raises(MalformedPathError) as exc_info:
            self.flattener.flatten({"user": {"e.mail": "x"}})

        assert exc_info.value.segment == "e.mail"

    def test_flatten_rejects_property_colliding_with_count_column(self):
        """Test that a property named like a count column is not overwritten."""
        with pytest.raises(MalformedPathError) as exc_info:
            self.flattener.flatten({"a_Count": 5, "a": list(range(15))})

        assert exc_info.value.path == "a_Count"

    def test_flatten_rejects_count_column_before_colliding_property(self):
        """Test the collision when the array precedes the property."""
        with pytest.raises(MalformedPathError) as exc_info:
            self.flattener.flatten({"user": {"tags": list(range(15)), "tags_Count": 5}})

        assert exc_info.value.path == "user.tags_Count"
        assert exc_info.value.segment == "tags_Count"

    def test_flatten_count_named_property_without_large_array(self):
        """Test that a count-like name is kept when no array is summarized."""
        record, _ = self.flattener.flatten({"a_Count": 5, "a": [1, 2]})

        assert record == {"a_Count": 5, "a[0]": 1, "a[1]": 2}

    def test_flatten_scalar_requires_base_path(self):
        """Test flattening of non-object roots."""
        with pytest.raises(ValueError):
            self.flattener.flatten(5)

        record, headers = self.flattener.flatten(5, base_path="value")
        assert record == {"value": 5}
        assert headers == ["value"]

    def test_flatten_with_base_path(self):
        """Test that a base path prefixes every key."""
        record, _ = self.flattener.flatten({"id": 1, "tags": ["x"]}, base_path="root")

        assert record == {"root.id": 1, "root.tags[0]": "x"}

    def test_flatten_empty_object(self):
        """Test that an empty root record has no columns."""
        record, headers = self.flattener.flatten({})

        assert record == {}
        assert headers == []

    def test_flatten_shared_headers(self):
        """Test that later records only append the columns they introduce."""
        headers = []
        self.flattener.flatten({"a": 1, "b": 2}, headers=headers)
        _, headers = self.flattener.flatten({"c": 3, "a": 4}, headers=headers)

        assert headers == ["a", "b", "c"]

    def test_flatten_batch_headers(self):
        """Test that batch headers are the ordered union of record keys."""
        result = self.flattener.flatten_batch([
            {"a": 1, "b": 2},
            {"b": 3, "c": 4},
            {"d": {"e": 5}},
        ])

        assert len(result.records) == 3
        assert result.headers == ["a", "b", "c", "d.e"]
        assert result.errors == []

    def test_flatten_batch_is_deterministic(self, nested_record):
        """Test that repeated runs produce identical output."""
        records = [nested_record, {"other": 1}, nested_record]

        first = self.flattener.flatten_batch(records)
        second = self.flattener.flatten_batch(records)

        assert first.headers == second.headers
        assert first.records == second.records

    def test_flatten_batch_with_executor(self):
        """Test that parallel flattening matches sequential flattening."""
        records = [{"id": i, f"field_{i % 4}": {"v": i}} for i in range(40)]

        sequential = self.flattener.flatten_batch(records)
        with ThreadPoolExecutor(max_workers=4) as executor:
            parallel = self.flattener.flatten_batch(records, executor=executor)

        assert parallel.records == sequential.records
        assert parallel.headers == sequential.headers

    def test_flatten_batch_raises_by_default(self):
        """Test that an invalid record aborts the batch."""
        with pytest.raises(MalformedPathError):
            self.flattener.flatten_batch([{"a": 1}, {"b.c": 2}])

    def test_flatten_batch_skip_invalid(self):
        """Test that invalid records can be skipped and reported."""
        result = self.flattener.flatten_batch([{"a": 1}, {"b.c": 2}, {"d": 3}], skip_invalid=True)

        assert result.records == [{"a": 1}, {"d": 3}]
        assert result.headers == ["a", "d"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Record 1:")

    def test_flatten_batch_non_object_records(self):
        """Test that scalar and list records become empty rows."""
        result = self.flattener.flatten_batch([{"a": 1}, 5, [1, 2], None])

        assert result.records == [{"a": 1}, {}, {}, {}]
        assert result.headers == ["a"]
        assert result.errors == []

    def test_extract_records_from_list(self):
        """Test that a root list is the record list."""
        records, structure = self.flattener.extract_records([{"a": 1}, {"a": 2}])

        assert records == [{"a": 1}, {"a": 2}]
        assert structure == DataStructure.RECORD_LIST

    def test_extract_records_from_container(self):
        """Test that known container keys are unwrapped."""
        document = {"meta": {"page": 1}, "Items": [{"a": 1}]}
        records, structure = self.flattener.extract_records(document)

        assert records == [{"a": 1}]
        assert structure == DataStructure.CONTAINER

    def test_extract_records_container_key_order(self):
        """Test that container keys are checked in configuration order."""
        document = {"Data": [{"b": 2}], "Documents": [{"a": 1}]}
        records, _ = self.flattener.extract_records(document)

        assert records == [{"a": 1}]

    def test_extract_records_single_object(self):
        """Test that any other object is a single record."""
        document = {"Items": "not a list", "a": 1}
        records, structure = self.flattener.extract_records(document)

        assert records == [document]
        assert structure == DataStructure.SINGLE_OBJECT

    def test_extract_records_unsupported_root(self):
        """Test that scalar documents are rejected."""
        with pytest.raises(ValueError):
            self.flattener.extract_records("text")

    def test_merge_headers(self):
        """Test header merging keeps first-seen order."""
        headers = ["a"]
        JSONFlattener.merge_headers(headers, {"b": 1, "a": 2, "c": 3})

        assert headers == ["a", "b", "c"]
