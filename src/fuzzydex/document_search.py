"""Title search for a host document store.

``fuzzy_search_titles`` first keeps the titles that contain every keyword of
the query (case-insensitive, any order). Only when none does, it falls back
to a fuzzy search over the document fields, optionally matching Chinese
values through a ``PhoneticNormalizer``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
from typing import Any, Protocol

from fuzzydex.config import SearchOptions
from fuzzydex.engine import SearchEngine
from fuzzydex.phonetic import contains_chinese
from fuzzydex.search.extraction import is_primitive, to_text
from fuzzydex.search.models import SearchResult


logger = logging.getLogger(__name__)

DEFAULT_FIELDS: tuple[str, ...] = ("title", "tags", "text")

# Fields whose values are too long to transliterate on every search.
_RAW_FIELDS = frozenset({"text"})


class DocumentStore(Protocol):
    """Read access to the fields of a document by title."""

    def get_fields(self, title: str) -> Mapping[str, Any] | None:  # pragma: no cover - interface definition
        ...


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(to_text(item) for item in value if is_primitive(item))
    return to_text(value)


def phonetic_or_fuzzy_search(
    items: Sequence[Mapping[str, Any]],
    query: str,
    keys: Iterable[Any] = (),
    *,
    threshold: float = 0.3,
    distance: int = 60,
    min_match_char_length: int = 1,
    store: DocumentStore | None = None,
    normalizer: Callable[[str], str] | None = None,
) -> list[SearchResult]:
    """Fuzzy search ``items`` on ``keys``, best first.

    With a ``store`` each item only needs a ``title``; field values are read
    from the store. The ``text`` field and Chinese queries are matched as is,
    everything else goes through ``normalizer`` when one is given.
    """
    query_is_chinese = contains_chinese(query)

    def get_fn(obj: Any, path: Sequence[str]) -> str | None:
        if not path:
            return ""
        field_name = path[0]

        if store is not None:
            fields = store.get_fields(obj["title"])
            if fields is None:
                return ""
            value = _field_text(fields.get(field_name))
            if field_name in _RAW_FIELDS or query_is_chinese:
                return value
        else:
            raw = obj.get(field_name) if isinstance(obj, Mapping) else getattr(obj, field_name, None)
            if raw is None:
                return None
            value = _field_text(raw)

        return normalizer(value) if normalizer is not None else value

    options = SearchOptions(
        keys=list(keys),
        get_fn=get_fn,
        ignore_location=False,
        include_score=True,
        include_matches=True,
        should_sort=True,
        min_match_char_length=min_match_char_length,
        threshold=threshold,
        distance=distance,
    )
    return SearchEngine(items, options).search(query)


def _resolve_fields(fields: str | Iterable[str] | None, exclude_field: bool) -> list[str]:
    if fields is None:
        requested: list[str] = []
    elif isinstance(fields, str):
        requested = [fields]
    else:
        requested = [name for name in fields if name]

    if exclude_field:
        return [name for name in DEFAULT_FIELDS if name not in requested]
    return requested or list(DEFAULT_FIELDS)


def fuzzy_search_titles(
    search_text: str,
    titles: Iterable[str],
    fields: str | Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    exclude_field: bool = False,
    store: DocumentStore | None = None,
    normalizer: Callable[[str], str] | None = None,
) -> list[str]:
    """Return the titles matching ``search_text``.

    Args:
        search_text: Space separated keywords.
        titles: Candidate document titles.
        fields: Fields searched by the fuzzy fallback; defaults to
            title, tags and text.
        exclude: Substrings; fuzzy results containing any of them are dropped.
        exclude_field: Treat ``fields`` as the fields *not* to search.
        store: Source of field values other than the title.
        normalizer: Optional phonetic normalizer for the fuzzy fallback.

    Returns:
        Matching titles in their original spelling.
    """
    originals = list(titles)
    lowered = [title.lower() for title in originals]

    keywords = [keyword for keyword in search_text.lower().split(" ") if keyword]
    exact = [original for original, title in zip(originals, lowered) if all(k in title for k in keywords)]
    if exact:
        logger.debug("Exact keyword match: %d titles", len(exact))
        return exact

    search_fields = _resolve_fields(fields, exclude_field)
    items = [{"title": title} for title in originals]
    results = phonetic_or_fuzzy_search(items, search_text, search_fields, store=store, normalizer=normalizer)
    matched = [result.item["title"] for result in results]

    if exclude:
        excluded = [needle for needle in exclude if needle]
        matched = [title for title in matched if not any(needle in title for needle in excluded)]

    logger.debug("Fuzzy fallback: %d titles for %r", len(matched), search_text)
    return matched
