"""Score aggregation and result formatting."""

from __future__ import annotations

from collections.abc import Sequence
import sys
from typing import Any

from fuzzydex.search.models import ResultMatch, SearchHit, SearchResult


# Stand-in for a perfect (0) score on a weighted key, so the product keeps
# the other keys' contribution instead of collapsing to 0.
EPSILON = sys.float_info.epsilon


def compute_scores(hits: Sequence[SearchHit], *, ignore_field_norm: bool = False) -> None:
    """Fill in ``hit.score`` as the weighted product of its match scores.

    Each match contributes ``score ** (weight * norm)``. String-list matches
    carry no key and count with weight 1.
    """
    for hit in hits:
        total_score = 1.0
        for match in hit.matches:
            weight = match.key.weight if match.key is not None else None
            score = EPSILON if match.score == 0 and weight else match.score
            norm = 1.0 if ignore_field_norm else match.norm
            total_score *= score ** ((weight or 1) * norm)
        hit.score = total_score


def default_sort_key(hit: SearchHit) -> tuple[float, int]:
    return hit.score, hit.ref_index


def _format_matches(hit: SearchHit) -> list[ResultMatch]:
    formatted: list[ResultMatch] = []
    for match in hit.matches:
        if not match.indices:
            continue

        nested_index = match.nested_index
        formatted.append(
            ResultMatch(
                indices=list(match.indices),
                value=match.value,
                key=match.key.src if match.key is not None else None,
                ref_index=nested_index if nested_index is not None and nested_index > -1 else None,
            )
        )
    return formatted


def format_results(
    hits: Sequence[SearchHit],
    docs: Sequence[Any],
    *,
    include_matches: bool = False,
    include_score: bool = False,
) -> list[SearchResult]:
    results: list[SearchResult] = []
    for hit in hits:
        results.append(
            SearchResult(
                item=docs[hit.ref_index],
                ref_index=hit.ref_index,
                matches=_format_matches(hit) if include_matches else None,
                score=hit.score if include_score else None,
            )
        )
    return results
