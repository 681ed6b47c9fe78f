"""Search engine facade.

``SearchEngine`` owns a collection of records and the ``FuseIndex`` built
over it. A query is routed by shape:

- a string over a collection of strings matches every indexed string,
- a string over a collection of objects matches every key of every record,
- a mapping is compiled into a logical ``$and``/``$or`` tree.

Matching records are scored (weighted product of their field matches),
sorted, truncated and formatted into ``SearchResult`` models.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
from typing import Any

from fuzzydex.config import SearchOptions
from fuzzydex.errors import ExtendedSearchUnavailableError, IncorrectIndexTypeError
from fuzzydex.search.extraction import GetFn, get_value
from fuzzydex.search.index import FuseIndex, create_index
from fuzzydex.search.keys import Key, KeyStore
from fuzzydex.search.logical import LogicalLeaf, compile_logical_query, evaluate
from fuzzydex.search.models import FieldEntry, FieldMatch, SearchHit, SearchResult
from fuzzydex.search.scoring import compute_scores, default_sort_key, format_results
from fuzzydex.search.searchers import (
    DEFAULT_SEARCHER_FACTORIES,
    Searcher,
    SearcherFactory,
    create_searcher,
    supports_extended_search,
)


VERSION = "1.0.0"

logger = logging.getLogger(__name__)


class SearchEngine:
    """Fuzzy search over an in-memory collection of strings or objects."""

    version = VERSION

    def __init__(
        self,
        docs: Iterable[Any],
        options: SearchOptions | Mapping[str, Any] | None = None,
        index: FuseIndex | None = None,
        *,
        searcher_factories: Iterable[SearcherFactory] = DEFAULT_SEARCHER_FACTORIES,
    ) -> None:
        """Build an engine over ``docs``.

        Args:
            docs: Records to search, either strings or objects.
            options: ``SearchOptions`` or a mapping of option names.
            index: Pre-built index; built from ``docs`` when omitted.
            searcher_factories: Ordered searcher factories tried before Bitap.

        Raises:
            ExtendedSearchUnavailableError: Extended search requested but no
                factory provides it.
            IncorrectIndexTypeError: ``index`` is not a ``FuseIndex``.
        """
        self.options = SearchOptions.coerce(options)
        self._factories = tuple(searcher_factories)

        if self.options.use_extended_search and not supports_extended_search(self._factories):
            raise ExtendedSearchUnavailableError()

        self._key_store = KeyStore(self.options.keys)
        self._get_fn: GetFn = self.options.get_fn or get_value
        self.docs: list[Any] = []
        self._index = FuseIndex(get_fn=self._get_fn, normalize=self.options.normalize)
        self.set_collection(docs, index)

    def set_collection(self, docs: Iterable[Any], index: FuseIndex | None = None) -> None:
        """Replace the collection and its index."""
        self.docs = list(docs)

        if index is not None and not isinstance(index, FuseIndex):
            raise IncorrectIndexTypeError()

        self._index = index or create_index(
            self.options.keys, self.docs, get_fn=self._get_fn, normalize=self.options.normalize
        )
        logger.debug("Collection set: %d records, %d indexed", len(self.docs), self._index.size())

    def add(self, doc: Any) -> None:
        if doc is None:
            return

        self.docs.append(doc)
        self._index.add(doc, len(self.docs) - 1)

    def remove(self, predicate: Callable[[Any, int], bool] = lambda doc, idx: False) -> list[Any]:
        """Remove every record for which ``predicate(doc, position)`` is true.

        Returns the removed records in collection order.
        """
        removed: list[Any] = []
        i = 0
        while i < len(self.docs):
            doc = self.docs[i]
            if predicate(doc, i):
                self.remove_at(i)
                removed.append(doc)
            else:
                i += 1
        return removed

    def remove_at(self, idx: int) -> None:
        """Remove the record at position ``idx``.

        Raises:
            IndexError: ``idx`` is not a position in the collection. Negative
                positions are rejected rather than counted from the end.
        """
        if not 0 <= idx < len(self.docs):
            raise IndexError(f"Record position {idx} out of range for {len(self.docs)} records")

        del self.docs[idx]
        self._index.remove_at(idx)
        logger.debug("Removed record at position %d", idx)

    def get_index(self) -> FuseIndex:
        return self._index

    def search(self, query: str | Mapping[str, Any], *, limit: int = -1) -> list[SearchResult]:
        """Return the records matching ``query``, best first.

        Args:
            query: A pattern string, or a logical query mapping.
            limit: Maximum number of results; ``-1`` keeps them all.
        """
        options = self.options

        if isinstance(query, str):
            if self.docs and isinstance(self.docs[0], str):
                hits = self._search_string_list(query)
            else:
                hits = self._search_object_list(query)
        else:
            hits = self._search_logical(query)

        compute_scores(hits, ignore_field_norm=options.ignore_field_norm)

        if options.should_sort:
            hits.sort(key=options.sort_fn or default_sort_key)

        if limit > -1:
            hits = hits[:limit]

        logger.debug("Search matched %d records", len(hits))
        return format_results(
            hits,
            self.docs,
            include_matches=options.include_matches,
            include_score=options.include_score,
        )

    def _search_string_list(self, query: str) -> list[SearchHit]:
        searcher = create_searcher(query, self.options, self._factories)
        hits: list[SearchHit] = []

        for record in self._index.records:
            text = record.value
            if text is None:
                continue

            result = searcher.search_in(text)
            if result.is_match:
                match = FieldMatch(score=result.score, value=text, norm=record.norm, indices=result.indices)
                hits.append(SearchHit(ref_index=record.position, item=text, matches=[match]))

        return hits

    def _search_object_list(self, query: str) -> list[SearchHit]:
        searcher = create_searcher(query, self.options, self._factories)
        hits: list[SearchHit] = []

        for record in self._index.records:
            if record.fields is None:
                continue

            matches: list[FieldMatch] = []
            for key_index, key in enumerate(self._index.keys):
                # Weights come from the key store so they are always normalized.
                weighted_key = self._key_store.get(key.id) or key
                matches.extend(self._find_matches(weighted_key, record.fields.get(key_index), searcher))

            if matches:
                hits.append(SearchHit(ref_index=record.position, item=record.fields, matches=matches))

        return hits

    def _search_logical(self, query: Mapping[str, Any]) -> list[SearchHit]:
        expression = compile_logical_query(query, self.options, factories=self._factories)
        hits: list[SearchHit] = []

        for record in self._index.records:
            fields = record.fields
            if fields is None:
                continue

            def match_leaf(leaf: LogicalLeaf, fields: Mapping[int, FieldEntry] = fields) -> list[FieldMatch]:
                value = self._index.get_value_for_item_at_key_id(fields, leaf.key_id)
                return self._find_matches(self._key_store.get(leaf.key_id), value, leaf.searcher)

            matches = evaluate(expression, match_leaf)
            if matches:
                hits.append(SearchHit(ref_index=record.position, item=fields, matches=matches))

        return hits

    @staticmethod
    def _find_matches(key: Key | None, value: FieldEntry | None, searcher: Searcher | None) -> list[FieldMatch]:
        if value is None or searcher is None:
            return []

        entries: Sequence[Any] = value if isinstance(value, list) else (value,)
        matches: list[FieldMatch] = []
        for entry in entries:
            result = searcher.search_in(entry.value)
            if result.is_match:
                matches.append(
                    FieldMatch(
                        score=result.score,
                        value=entry.value,
                        norm=entry.norm,
                        indices=result.indices,
                        key=key,
                        nested_index=entry.nested_index,
                    )
                )
        return matches
