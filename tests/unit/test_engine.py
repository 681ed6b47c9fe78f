"""Unit tests for the SearchEngine facade."""

from pydantic import ValidationError
import pytest

import fuzzydex
from fuzzydex.config import SearchOptions
from fuzzydex.engine import SearchEngine
from fuzzydex.errors import ExtendedSearchUnavailableError, IncorrectIndexTypeError, InvalidQueryError
from fuzzydex.search.index import FuseIndex, create_index, parse_index


def _refs(results):
    return [result.ref_index for result in results]


@pytest.mark.unit
class TestStringCollections:
    def test_shorter_fields_rank_first(self):
        engine = SearchEngine(["hello world", "help", "held"], {"include_score": True})
        results = engine.search("hel")

        assert _refs(results) == [1, 2, 0]
        assert [result.item for result in results] == ["help", "held", "hello world"]
        assert results[0].score == pytest.approx(0.001)
        assert results[2].score == pytest.approx(0.001**0.707)

    def test_ignore_field_norm(self):
        engine = SearchEngine(["hello world", "help", "held"], {"ignore_field_norm": True})
        assert _refs(engine.search("hel")) == [0, 1, 2]

    def test_score_and_matches_excluded_by_default(self):
        [result] = SearchEngine(["apple"]).search("apple")
        assert result.score is None
        assert result.matches is None

    def test_include_matches(self):
        engine = SearchEngine(["apple"], {"include_matches": True})
        [result] = engine.search("apple")
        [match] = result.matches
        assert match.indices == [(0, 4)]
        assert match.value == "apple"
        assert match.key is None

    def test_no_match(self):
        assert SearchEngine(["apple", "banana"]).search("xyz") == []

    def test_limit(self):
        engine = SearchEngine(["hello world", "help", "held"])
        assert _refs(engine.search("hel", limit=2)) == [1, 2]
        assert engine.search("hel", limit=0) == []

    def test_unsorted(self):
        engine = SearchEngine(["hello world", "help", "held"], {"should_sort": False})
        assert _refs(engine.search("hel")) == [0, 1, 2]

    def test_custom_sort_key(self):
        engine = SearchEngine(["hello world", "help", "held"], {"sort_fn": lambda hit: -hit.ref_index})
        assert _refs(engine.search("hel")) == [2, 1, 0]

    def test_threshold(self):
        assert SearchEngine(["xabcd"]).search("abcd")
        assert SearchEngine(["xabcd"], {"threshold": 0.0}).search("abcd") == []

    def test_normalize(self):
        def normalize(text):
            return text.replace("0", "o")

        assert SearchEngine(["f00d"], {"threshold": 0.0}).search("food") == []
        [result] = SearchEngine(["f00d"], {"threshold": 0.0, "normalize": normalize}).search("food")
        assert result.item == "f00d"

    def test_empty_collection(self):
        assert SearchEngine([]).search("anything") == []

    def test_extended_search(self):
        engine = SearchEngine(["corego", "corerb", "corepy", "corejs"], {"use_extended_search": True})
        assert _refs(engine.search("^core go$ | rb$ | py$")) == [0, 1, 2]


@pytest.mark.unit
class TestObjectCollections:
    def test_weighted_keys(self, report_records, report_keys):
        engine = SearchEngine(report_records, {"keys": report_keys, "include_score": True})
        [result] = engine.search("report")

        assert result.ref_index == 0
        assert result.item == report_records[0]
        assert result.score == pytest.approx(0.1 ** ((2 / 3) * 0.707))

    def test_nested_keys(self, books):
        engine = SearchEngine(books, {"keys": ["title", "author.name"]})
        results = engine.search("woodhouse")
        assert set(_refs(results[:2])) == {3, 4}

    def test_array_match_reports_element_index(self):
        engine = SearchEngine([{"tags": ["alpha", "beta"]}], {"keys": ["tags"], "include_matches": True})
        [result] = engine.search("beta")
        [match] = result.matches
        assert match.key == "tags"
        assert match.value == "beta"
        assert match.indices == [(0, 3)]
        assert match.ref_index == 1

    def test_matches_report_original_key_spec(self):
        docs = [{"author": {"name": "Ada"}}]
        engine = SearchEngine(docs, {"keys": [{"name": ["author", "name"], "weight": 2}], "include_matches": True})
        [result] = engine.search("ada")
        assert result.matches[0].key == ["author", "name"]

    def test_no_keys_means_no_matches(self, books):
        assert SearchEngine(books).search("woodhouse") == []

    def test_custom_get_fn(self):
        docs = [{"meta": "Dune"}, {"meta": "Emma"}]
        engine = SearchEngine(docs, {"keys": ["anything"], "get_fn": lambda doc, path: doc["meta"]})
        assert _refs(engine.search("emma")) == [1]

    def test_prebuilt_index_weights_are_normalized(self, report_records, report_keys):
        index = create_index(report_keys, report_records)
        engine = SearchEngine(report_records, {"keys": report_keys, "include_score": True}, index)
        [result] = engine.search("report")
        assert result.score == pytest.approx(0.1 ** ((2 / 3) * 0.707))


@pytest.mark.unit
class TestLogicalQueries:
    def test_and_requires_both_leaves(self, report_records, report_keys):
        engine = SearchEngine(report_records, {"keys": report_keys})
        assert _refs(engine.search({"$and": [{"title": "report"}, {"tags": "finance"}]})) == [0]
        assert engine.search({"$and": [{"title": "report"}, {"tags": "year"}]}) == []

    def test_implicit_and(self, report_records, report_keys):
        engine = SearchEngine(report_records, {"keys": report_keys})
        assert _refs(engine.search({"title": "summary", "tags": "year"})) == [1]

    def test_or(self, report_records, report_keys):
        engine = SearchEngine(report_records, {"keys": report_keys})
        assert _refs(engine.search({"$or": [{"title": "report"}, {"tags": "year"}]})) == [1, 0]

    def test_path_leaf(self, books):
        engine = SearchEngine(books, {"keys": ["title", "author.name"]})
        results = engine.search({"$path": ["author", "name"], "$val": "scalzi"})
        assert results[0].ref_index == 0

    def test_extended_leaves(self):
        docs = [{"lang": "python"}, {"lang": "ruby"}, {"lang": "go"}]
        engine = SearchEngine(docs, {"keys": ["lang"], "use_extended_search": True})
        assert _refs(engine.search({"$or": [{"lang": "=go"}, {"lang": "^py"}]})) == [0, 2]

    @pytest.mark.parametrize("query", [{"$and": [{}]}, {"$or": ["a"]}])
    def test_malformed_node(self, report_records, report_keys, query):
        engine = SearchEngine(report_records, {"keys": report_keys})
        with pytest.raises(InvalidQueryError):
            engine.search(query)

    def test_invalid_leaf(self, report_records, report_keys):
        engine = SearchEngine(report_records, {"keys": report_keys})
        with pytest.raises(InvalidQueryError):
            engine.search({"title": 3})

    def test_logical_query_over_strings_matches_nothing(self):
        assert SearchEngine(["report"]).search({"title": "report"}) == []


@pytest.mark.unit
class TestCollectionManagement:
    def test_add(self):
        engine = SearchEngine(["apple"])
        engine.add("banana")
        assert engine.docs == ["apple", "banana"]
        assert _refs(engine.search("banana")) == [1]

    def test_add_none_is_ignored(self):
        engine = SearchEngine(["apple"])
        engine.add(None)
        assert engine.docs == ["apple"]
        assert engine.get_index().size() == 1

    def test_add_to_empty_collection(self):
        engine = SearchEngine([], {"keys": ["title"]})
        engine.add({"title": "Dune"})
        assert _refs(engine.search("dune")) == [0]

    def test_add_then_remove_restores_results(self, books):
        engine = SearchEngine(books, {"keys": ["title", "author.name"], "include_score": True})
        before = engine.search("the")

        engine.add({"title": "The Theory", "author": {"name": "Thea"}})
        engine.remove_at(len(engine.docs) - 1)

        assert engine.search("the") == before
        assert [record.position for record in engine.get_index().records] == list(range(len(books)))

    def test_remove_at(self):
        engine = SearchEngine(["apple", "banana", "cherry"])
        engine.remove_at(0)
        assert engine.docs == ["banana", "cherry"]
        [result] = engine.search("cherry")
        assert result.ref_index == 1
        assert result.item == "cherry"

    @pytest.mark.parametrize("position", [-1, 3, 10])
    def test_remove_at_out_of_range_leaves_engine_untouched(self, position):
        engine = SearchEngine(["apple", "banana", "cherry"])

        with pytest.raises(IndexError, match="out of range"):
            engine.remove_at(position)

        assert engine.docs == ["apple", "banana", "cherry"]
        assert [record.position for record in engine.get_index().records] == [0, 1, 2]
        [result] = engine.search("apple")
        assert (result.ref_index, result.item) == (0, "apple")

    def test_remove_at_with_blank_records(self):
        engine = SearchEngine(["apple", "   ", "cherry"])
        engine.remove_at(1)
        [result] = engine.search("cherry")
        assert result.ref_index == 1
        assert result.item == "cherry"

    def test_remove_with_predicate(self):
        engine = SearchEngine(["apple", "banana", "blueberry", "cherry"])
        removed = engine.remove(lambda doc, idx: doc.startswith("b"))

        assert removed == ["banana", "blueberry"]
        assert engine.docs == ["apple", "cherry"]
        assert [(r.position, r.value) for r in engine.get_index().records] == [(0, "apple"), (1, "cherry")]

    def test_remove_default_predicate_keeps_everything(self):
        engine = SearchEngine(["apple"])
        assert engine.remove() == []
        assert engine.docs == ["apple"]

    def test_set_collection(self):
        engine = SearchEngine(["apple"])
        engine.set_collection(["x-ray", "yak"])
        assert _refs(engine.search("yak")) == [1]

    def test_docs_are_copied(self):
        docs = ["apple"]
        engine = SearchEngine(docs)
        engine.add("banana")
        assert docs == ["apple"]


@pytest.mark.unit
class TestIndexReuse:
    def test_snapshot_round_trip_gives_identical_results(self, books):
        options = SearchOptions(keys=["title", "author.name", "author.tags"], include_score=True, include_matches=True)
        engine = SearchEngine(books, options)
        rebuilt = SearchEngine(books, options, parse_index(engine.get_index().to_structure()))

        for query in ["woodhouse", "the", "comedy", "html"]:
            assert rebuilt.search(query) == engine.search(query)

    def test_get_index(self):
        engine = SearchEngine(["apple"])
        assert isinstance(engine.get_index(), FuseIndex)

    def test_rejects_foreign_index(self):
        with pytest.raises(IncorrectIndexTypeError, match="Incorrect 'index' type"):
            SearchEngine(["apple"], index={"keys": [], "records": []})


@pytest.mark.unit
class TestConstruction:
    def test_extended_search_requires_a_factory(self):
        with pytest.raises(ExtendedSearchUnavailableError, match="Extended search is not available"):
            SearchEngine(["a"], {"use_extended_search": True}, searcher_factories=())

    def test_unknown_option(self):
        with pytest.raises(ValidationError):
            SearchEngine(["a"], {"bogus": True})

    def test_accepts_options_model(self):
        engine = SearchEngine(["a"], SearchOptions(threshold=0.2))
        assert engine.options.threshold == 0.2

    def test_version(self):
        assert SearchEngine.version == fuzzydex.__version__
