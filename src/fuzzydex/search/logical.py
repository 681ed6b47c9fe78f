"""Logical (tree-shaped) queries.

A logical query combines per-key patterns with ``$and`` / ``$or``::

    {"$and": [{"title": "report"}, {"$or": [{"tags": "finance"}, {"$path": "author.name", "$val": "ada"}]}]}

A flat mapping with several keys is an implicit ``$and`` of its entries.
``compile_logical_query`` binds every leaf to a searcher once, so evaluating
the tree against many records never recompiles patterns.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fuzzydex.config import SearchOptions
from fuzzydex.errors import InvalidQueryError
from fuzzydex.search.keys import create_key_id
from fuzzydex.search.models import FieldMatch
from fuzzydex.search.searchers import DEFAULT_SEARCHER_FACTORIES, Searcher, SearcherFactory, create_searcher


AND = "$and"
OR = "$or"
PATH = "$path"
PATTERN = "$val"


@dataclass(slots=True)
class LogicalLeaf:
    key_id: str
    pattern: str
    searcher: Searcher | None = None


@dataclass(slots=True)
class LogicalNode:
    operator: str
    children: list[LogicalLeaf | LogicalNode] = field(default_factory=list)


LogicalExpression = LogicalLeaf | LogicalNode


def is_expression(query: Mapping[str, Any]) -> bool:
    return AND in query or OR in query


def is_path(query: Mapping[str, Any]) -> bool:
    return bool(query.get(PATH))


def is_leaf(query: Any) -> bool:
    return isinstance(query, Mapping) and not is_expression(query)


def convert_to_explicit(query: Mapping[str, Any]) -> dict[str, Any]:
    return {AND: [{key: value} for key, value in query.items()]}


def compile_logical_query(
    query: Mapping[str, Any],
    options: SearchOptions | None = None,
    *,
    factories: Iterable[SearcherFactory] = DEFAULT_SEARCHER_FACTORIES,
    auto: bool = True,
) -> LogicalExpression:
    """Parse ``query`` into an expression tree.

    When ``auto`` is true every leaf gets a searcher from ``factories``.

    Raises:
        InvalidQueryError: A leaf pattern is not a string, or a node is not a
            non-empty mapping.
    """
    options = options or SearchOptions()
    factories = tuple(factories)

    def next_node(node_query: Mapping[str, Any]) -> LogicalExpression:
        if not isinstance(node_query, Mapping) or not node_query:
            raise InvalidQueryError(f"Invalid logical query node: {node_query!r}")

        keys = list(node_query.keys())
        query_is_path = is_path(node_query)

        if not query_is_path and len(keys) > 1 and not is_expression(node_query):
            return next_node(convert_to_explicit(node_query))

        if is_leaf(node_query):
            key = node_query[PATH] if query_is_path else keys[0]
            pattern = node_query.get(PATTERN) if query_is_path else node_query[key]

            if not isinstance(pattern, str):
                raise InvalidQueryError.for_key(key)

            leaf = LogicalLeaf(key_id=create_key_id(key), pattern=pattern)
            if auto:
                leaf.searcher = create_searcher(pattern, options, factories)
            return leaf

        node = LogicalNode(operator=keys[0])
        for key in keys:
            value = node_query[key]
            if isinstance(value, list):
                node.children.extend(next_node(item) for item in value)
        return node

    if not isinstance(query, Mapping):
        raise InvalidQueryError(f"Logical query must be a mapping, got {type(query).__name__}")

    if is_path(query):
        query = {AND: [query]}
    elif not is_expression(query):
        query = convert_to_explicit(query)

    return next_node(query)


def evaluate(node: LogicalExpression, match_leaf: Callable[[LogicalLeaf], list[FieldMatch]]) -> list[FieldMatch]:
    """Evaluate ``node`` depth-first for one record.

    ``match_leaf`` returns the matches of a single leaf against the record.
    AND nodes short-circuit on the first failing child; OR nodes stop at the
    first child that matches.
    """
    if isinstance(node, LogicalLeaf):
        return match_leaf(node)

    matches: list[FieldMatch] = []

    if node.operator == AND:
        for child in node.children:
            child_matches = evaluate(child, match_leaf)
            if not child_matches:
                return []
            matches.extend(child_matches)
        return matches

    if node.operator == OR:
        for child in node.children:
            child_matches = evaluate(child, match_leaf)
            if child_matches:
                matches.extend(child_matches)
                break
        return matches

    return matches
