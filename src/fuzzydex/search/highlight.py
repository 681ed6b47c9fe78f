"""Highlighting of matched character ranges.

Search results carry inclusive ``(start, end)`` ranges. These helpers merge
them and wrap the matched text in markers:

- ``plain``: ``[[match]]``
- ``html``: ``<mark>match</mark>``
"""

from __future__ import annotations

from collections.abc import Iterable

from fuzzydex.search.models import Range


_MARKERS = {
    "plain": ("[[", "]]"),
    "html": ("<mark>", "</mark>"),
}


def merge_ranges(indices: Iterable[Range]) -> list[Range]:
    """Sort ranges and merge the ones that overlap or touch."""
    merged: list[Range] = []
    for start, end in sorted((int(start), int(end)) for start, end in indices):
        if end < start:
            continue
        if merged and start <= merged[-1][1] + 1:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def _clip(indices: Iterable[Range], length: int) -> list[Range]:
    return [(max(0, start), min(length - 1, end)) for start, end in merge_ranges(indices) if start < length and end >= 0]


def highlight_ranges(text: str, indices: Iterable[Range], style: str = "plain") -> str:
    """Wrap every matched range of ``text`` in the markers of ``style``.

    Raises:
        ValueError: ``style`` is neither ``plain`` nor ``html``.
    """
    if style not in _MARKERS:
        raise ValueError(f"Unknown highlight style {style!r}; expected one of {sorted(_MARKERS)}")

    opening, closing = _MARKERS[style]
    parts: list[str] = []
    cursor = 0
    for start, end in _clip(indices, len(text)):
        parts.append(text[cursor:start])
        parts.append(f"{opening}{text[start : end + 1]}{closing}")
        cursor = end + 1
    parts.append(text[cursor:])
    return "".join(parts)


def build_match_snippet(text: str, indices: Iterable[Range], max_chars: int = 300, style: str = "plain") -> str:
    """Cut a window of at most ``max_chars`` around the first matched range.

    The window is centred on the first range and trimmed to word boundaries
    when it does not start or end with the text. Ranges inside the window
    are highlighted. Without ranges the beginning of the text is returned.
    """
    if not text:
        return ""

    ranges = _clip(indices, len(text))
    if not ranges:
        return text[:max_chars].strip()

    start, end = 0, len(text)
    if len(text) > max_chars:
        first_start, first_end = ranges[0]
        center = (first_start + first_end) // 2
        start = max(0, center - max_chars // 2)
        end = min(len(text), start + max_chars)
        start = max(0, end - max_chars)

        # Trim partial words at the edges, never cutting into the first match.
        if start > 0:
            space = text.find(" ", start, first_start)
            if space != -1:
                start = space + 1
        if end < len(text):
            space = text.rfind(" ", first_end + 1, end)
            if space != -1:
                end = space

    visible = [
        (max(range_start, start) - start, min(range_end, end - 1) - start)
        for range_start, range_end in ranges
        if range_start < end and range_end >= start
    ]
    return highlight_ranges(text[start:end], visible, style).strip()
