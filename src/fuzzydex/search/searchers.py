"""Searcher selection.

A searcher turns one pattern into a ``search_in(text)`` callable. Engines
are built with an ordered tuple of searcher factories; the first factory
whose ``condition`` accepts the pattern wins and ``BitapSearch`` is the
fallback.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from fuzzydex.config import SearchOptions
from fuzzydex.search.bitap import BitapSearch
from fuzzydex.search.extended import ExtendedSearch
from fuzzydex.search.models import MatchResult


class Searcher(Protocol):
    """Protocol implemented by compiled searchers."""

    def search_in(self, text: str) -> MatchResult:  # pragma: no cover - interface definition
        ...


class SearcherFactory(Protocol):
    """Protocol implemented by searcher factories (usually searcher classes)."""

    def condition(self, pattern: str, options: SearchOptions) -> bool:  # pragma: no cover - interface definition
        ...

    def __call__(self, pattern: str, options: SearchOptions) -> Searcher:  # pragma: no cover - interface definition
        ...


DEFAULT_SEARCHER_FACTORIES: tuple[SearcherFactory, ...] = (ExtendedSearch,)


def create_searcher(
    pattern: str,
    options: SearchOptions,
    factories: Iterable[SearcherFactory] = DEFAULT_SEARCHER_FACTORIES,
) -> Searcher:
    for factory in factories:
        if factory.condition(pattern, options):
            return factory(pattern, options)
    return BitapSearch(pattern, options)


def supports_extended_search(factories: Iterable[SearcherFactory]) -> bool:
    return any(getattr(factory, "extended_syntax", False) for factory in factories)
