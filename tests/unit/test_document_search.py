"""Unit tests for title search over a document store."""

import pytest

from fuzzydex.document_search import fuzzy_search_titles, phonetic_or_fuzzy_search
from fuzzydex.phonetic import PhoneticNormalizer


class FakeStore:
    """In-memory document store keyed by title."""

    def __init__(self, documents):
        self.documents = documents
        self.requested = []

    def get_fields(self, title):
        self.requested.append(title)
        return self.documents.get(title)


def transliterate(text):
    pinyin = {"中": "zhong", "文": "wen", "档": "dang"}
    return "".join(pinyin.get(char, char) for char in text)


@pytest.mark.unit
class TestExactKeywordPass:
    def test_all_keywords_must_match(self):
        titles = ["Getting Started Guide", "API Reference", "API Changelog"]
        assert fuzzy_search_titles("api ref", titles) == ["API Reference"]

    def test_keyword_order_is_irrelevant(self):
        assert fuzzy_search_titles("reference api", ["API Reference"]) == ["API Reference"]

    def test_keeps_title_order_and_case(self):
        titles = ["User Guide", "FAQ", "Admin Guide"]
        assert fuzzy_search_titles("GUIDE", titles) == ["User Guide", "Admin Guide"]

    def test_exact_matches_are_not_excluded(self):
        assert fuzzy_search_titles("reference", ["Draft Reference"], exclude=["Draft"]) == ["Draft Reference"]


@pytest.mark.unit
class TestFuzzyFallback:
    def test_misspelled_query(self):
        assert fuzzy_search_titles("refrence", ["Getting Started Guide", "API Reference"]) == ["API Reference"]

    def test_no_match(self):
        assert fuzzy_search_titles("zzzzzz", ["API Reference"]) == []

    def test_exclude_drops_every_matching_title(self):
        titles = ["Draft Reference", "API Reference", "Old Draft Reference"]
        assert fuzzy_search_titles("refrence", titles, exclude=["Draft"]) == ["API Reference"]

    def test_fields_read_from_store(self):
        store = FakeStore(
            {
                "Alpha": {"title": "Alpha", "tags": ["intro"], "text": "hello"},
                "Beta": {"title": "Beta", "tags": ["kubernetes", "ops"], "text": ""},
            }
        )
        assert fuzzy_search_titles("kubernets", ["Alpha", "Beta"], store=store) == ["Beta"]
        assert "Beta" in store.requested

    def test_missing_store_entry_is_skipped(self):
        store = FakeStore({"Kubernetes Guide": {"title": "Kubernetes Guide"}})
        assert fuzzy_search_titles("kubernets", ["Kubernetes Guide", "Ghost"], store=store) == ["Kubernetes Guide"]

    def test_restrict_fields(self):
        store = FakeStore({"Runbook": {"title": "Runbook", "tags": ["kubernetes"], "text": ""}})
        assert fuzzy_search_titles("kubernets", ["Runbook"], fields="title", store=store) == []
        assert fuzzy_search_titles("kubernets", ["Runbook"], fields=["tags"], store=store) == ["Runbook"]

    def test_exclude_field_inverts_fields(self):
        store = FakeStore({"Kubernetes Guide": {"title": "Kubernetes Guide", "tags": [], "text": ""}})
        titles = ["Kubernetes Guide"]
        assert fuzzy_search_titles("kubernets", titles, fields=["title"], store=store) == titles
        assert fuzzy_search_titles("kubernets", titles, fields=["title"], exclude_field=True, store=store) == []


@pytest.mark.unit
class TestPhoneticFallback:
    def test_latin_query_finds_chinese_title(self):
        titles = ["中文文档", "English"]
        normalizer = PhoneticNormalizer(transliterate)
        assert fuzzy_search_titles("zhongwen", titles, normalizer=normalizer) == ["中文文档"]

    def test_without_normalizer(self):
        assert fuzzy_search_titles("zhongwen", ["中文文档", "English"]) == []

    def test_text_field_is_not_normalized(self):
        store = FakeStore({"Notes": {"title": "Notes", "tags": [], "text": "中文"}})
        normalizer = PhoneticNormalizer(transliterate)
        assert fuzzy_search_titles("zhongwen", ["Notes"], fields=["text"], store=store, normalizer=normalizer) == []
        assert fuzzy_search_titles("zhongwen", ["Notes"], fields=["tags", "text"], store=store) == []


@pytest.mark.unit
class TestPhoneticOrFuzzySearch:
    def test_results_carry_score_and_matches(self):
        items = [{"title": "API Reference"}, {"title": "Guide"}]
        [result] = phonetic_or_fuzzy_search(items, "reference", ["title"])
        assert result.ref_index == 0
        assert result.score is not None
        assert result.matches

    def test_threshold(self):
        items = [{"title": "API Reference"}]
        assert phonetic_or_fuzzy_search(items, "refrence", ["title"], threshold=0.0) == []

    def test_best_match_comes_first(self):
        items = [{"title": "The Reference Manual"}, {"title": "Refrence"}]
        results = phonetic_or_fuzzy_search(items, "refrence", ["title"])

        assert [result.ref_index for result in results] == [1, 0]
        assert results[0].score < results[1].score
