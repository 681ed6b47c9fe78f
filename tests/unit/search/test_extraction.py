"""Unit tests for field value extraction."""

from types import SimpleNamespace

import pytest

from fuzzydex.search.extraction import get_value, is_primitive, to_text


@pytest.mark.unit
class TestGetValue:
    def test_top_level_string(self):
        assert get_value({"title": "Dune"}, ["title"]) == "Dune"

    def test_nested_path(self):
        assert get_value({"author": {"name": "Frank"}}, "author.name") == "Frank"

    def test_missing_path(self):
        assert get_value({"title": "Dune"}, ["author", "name"]) is None

    def test_none_value(self):
        assert get_value({"title": None}, ["title"]) is None

    def test_numbers_and_booleans_are_stringified(self):
        assert get_value({"year": 1965}, ["year"]) == "1965"
        assert get_value({"price": 9.5}, ["price"]) == "9.5"
        assert get_value({"available": True}, ["available"]) == "true"
        assert get_value({"available": False}, ["available"]) == "false"

    def test_array_of_strings(self):
        assert get_value({"tags": ["scifi", "classic"]}, ["tags"]) == ["scifi", "classic"]

    def test_array_with_numbers(self):
        assert get_value({"ids": [1, "two", 3]}, ["ids"]) == ["1", "two", "3"]

    def test_array_of_objects(self):
        record = {"authors": [{"name": "Terry"}, {"name": "Neil"}]}
        assert get_value(record, "authors.name") == ["Terry", "Neil"]

    def test_array_of_objects_missing_field(self):
        record = {"authors": [{"name": "Terry"}, {"alias": "N"}]}
        assert get_value(record, "authors.name") == ["Terry"]

    def test_array_crossed_but_empty(self):
        assert get_value({"authors": [{"alias": "N"}]}, "authors.name") == []

    def test_nested_arrays_flatten_in_order(self):
        assert get_value({"tags": [["a", "b"], "c"]}, ["tags"]) == ["a", "b", "c"]

    def test_object_leaf_is_dropped(self):
        assert get_value({"author": {"name": "Frank"}}, ["author"]) is None

    def test_attribute_access(self):
        record = SimpleNamespace(author=SimpleNamespace(name="Ursula"))
        assert get_value(record, ["author", "name"]) == "Ursula"

    def test_cannot_descend_into_primitive(self):
        assert get_value({"title": "Dune"}, ["title", "length"]) is None

    def test_deep_nesting_does_not_recurse(self):
        record: dict = {"v": "bottom"}
        path = ["v"]
        for _ in range(5000):
            record = {"n": record}
            path.insert(0, "n")
        assert get_value(record, path) == "bottom"


@pytest.mark.unit
class TestPrimitives:
    @pytest.mark.parametrize("value", ["a", 1, 1.5, True])
    def test_is_primitive(self, value):
        assert is_primitive(value)

    @pytest.mark.parametrize("value", [None, [], {}, object()])
    def test_is_not_primitive(self, value):
        assert not is_primitive(value)

    def test_to_text(self):
        assert to_text("x") == "x"
        assert to_text(3) == "3"
        assert to_text(True) == "true"
