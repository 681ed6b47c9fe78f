"""Bit-parallel approximate string matching (Bitap).

The matcher follows the classic Bitap/shift-or scheme with Wu-Manber error
levels: for every allowed number of errors it keeps one bit vector per text
position, where bit ``k`` tells whether the last ``k + 1`` pattern characters
align with the text ending at that position. Patterns are limited to the
machine word size (32 characters); ``BitapSearch`` splits longer patterns
into chunks and averages their scores.

Scores live in ``[0, 1]`` where 0 is a perfect match. They combine the
fraction of erroneous characters with the distance from the expected
location::

    errors / len(pattern) + abs(expected - current) / distance
"""

from __future__ import annotations

from fuzzydex.config import SearchOptions
from fuzzydex.errors import MAX_PATTERN_BITS, PatternTooLongError
from fuzzydex.search.models import NO_MATCH, MatchResult, Range


# Scores are floored so that "found" is distinguishable from "absent" (0).
MIN_SCORE = 0.001


def compute_score(
    pattern: str,
    *,
    errors: int = 0,
    current_location: int = 0,
    expected_location: int = 0,
    distance: int = 100,
    ignore_location: bool = False,
) -> float:
    accuracy = errors / len(pattern)

    if ignore_location:
        return accuracy

    proximity = abs(expected_location - current_location)

    if not distance:
        # Only an exact location hit is acceptable without a distance.
        return 1.0 if proximity else accuracy

    return accuracy + proximity / distance


def convert_mask_to_indices(match_mask: list[int], min_match_char_length: int = 1) -> list[Range]:
    """Collapse a per-character match mask into inclusive ranges."""
    indices: list[Range] = []
    start = -1

    for i, matched in enumerate(match_mask):
        if matched and start == -1:
            start = i
        elif not matched and start != -1:
            end = i - 1
            if end - start + 1 >= min_match_char_length:
                indices.append((start, end))
            start = -1

    if match_mask and match_mask[-1] and len(match_mask) - start >= min_match_char_length:
        indices.append((start, len(match_mask) - 1))

    return indices


def create_pattern_alphabet(pattern: str) -> dict[str, int]:
    """Map each pattern character to the bitmask of its positions."""
    mask: dict[str, int] = {}
    length = len(pattern)
    for i, char in enumerate(pattern):
        mask[char] = mask.get(char, 0) | (1 << (length - i - 1))
    return mask


def bitap_search(
    text: str,
    pattern: str,
    pattern_alphabet: dict[str, int],
    *,
    location: int = 0,
    distance: int = 100,
    threshold: float = 0.6,
    find_all_matches: bool = False,
    min_match_char_length: int = 1,
    include_matches: bool = False,
    ignore_location: bool = False,
) -> MatchResult:
    """Search ``text`` for a single pattern chunk of at most 32 characters."""
    if len(pattern) > MAX_PATTERN_BITS:
        raise PatternTooLongError(MAX_PATTERN_BITS)

    pattern_len = len(pattern)
    text_len = len(text)
    expected_location = max(0, min(location, text_len))
    score_kwargs = {"expected_location": expected_location, "distance": distance, "ignore_location": ignore_location}

    # Highest score beyond which we give up.
    current_threshold = threshold
    best_location = expected_location

    compute_matches = min_match_char_length > 1 or include_matches
    match_mask = [0] * text_len if compute_matches else []

    # Exact occurrences tighten the threshold before the fuzzy pass.
    index = text.find(pattern, best_location)
    while index > -1:
        score = compute_score(pattern, current_location=index, **score_kwargs)
        current_threshold = min(score, current_threshold)
        best_location = index + pattern_len

        if compute_matches:
            for offset in range(pattern_len):
                match_mask[index + offset] = 1

        index = text.find(pattern, best_location)

    best_location = -1
    last_bit_arr: list[int] = []
    final_score = 1.0
    bin_max = pattern_len + text_len
    mask = 1 << (pattern_len - 1)

    for errors in range(pattern_len):
        # Binary search for how far from the expected location we can stray
        # at this error level and still beat the current threshold.
        bin_min = 0
        bin_mid = bin_max
        while bin_min < bin_mid:
            score = compute_score(
                pattern, errors=errors, current_location=expected_location + bin_mid, **score_kwargs
            )
            if score <= current_threshold:
                bin_min = bin_mid
            else:
                bin_max = bin_mid
            bin_mid = (bin_max - bin_min) // 2 + bin_min

        bin_max = bin_mid

        start = max(1, expected_location - bin_mid + 1)
        finish = text_len if find_all_matches else min(expected_location + bin_mid, text_len) + pattern_len

        bit_arr = [0] * (finish + 2)
        bit_arr[finish + 1] = (1 << errors) - 1

        j = finish
        while j >= start:
            current_location = j - 1
            char_match = pattern_alphabet.get(text[current_location], 0) if current_location < text_len else 0

            if compute_matches and current_location < text_len:
                match_mask[current_location] = 1 if char_match else 0

            # First pass: exact match
            bit_arr[j] = ((bit_arr[j + 1] << 1) | 1) & char_match

            # Subsequent passes: fuzzy match
            if errors:
                last_next = last_bit_arr[j + 1] if j + 1 < len(last_bit_arr) else 0
                last_here = last_bit_arr[j] if j < len(last_bit_arr) else 0
                bit_arr[j] |= (((last_next | last_here) << 1) | 1) | last_next

            if bit_arr[j] & mask:
                final_score = compute_score(
                    pattern, errors=errors, current_location=current_location, **score_kwargs
                )

                if final_score <= current_threshold:
                    current_threshold = final_score
                    best_location = current_location

                    # Already passed the expected location, downhill from here on.
                    if best_location <= expected_location:
                        break

                    # Don't stray further from the expected location than this match.
                    start = max(1, 2 * expected_location - best_location)

            j -= 1

        # No hope for a better match at greater error levels.
        score = compute_score(pattern, errors=errors + 1, current_location=expected_location, **score_kwargs)
        if score > current_threshold:
            break

        last_bit_arr = bit_arr

    is_match = best_location >= 0
    indices: tuple[Range, ...] = ()

    if compute_matches:
        found = convert_mask_to_indices(match_mask, min_match_char_length)
        if not found:
            is_match = False
        elif include_matches:
            indices = tuple(found)

    return MatchResult(is_match=is_match, score=max(MIN_SCORE, final_score), indices=indices)


class _Chunk:
    __slots__ = ("alphabet", "pattern", "start_index")

    def __init__(self, pattern: str, start_index: int) -> None:
        self.pattern = pattern
        self.alphabet = create_pattern_alphabet(pattern)
        self.start_index = start_index


class BitapSearch:
    """Fuzzy searcher for a pattern of any length."""

    def __init__(self, pattern: str, options: SearchOptions | None = None) -> None:
        self.options = options or SearchOptions()
        self.pattern = pattern if self.options.is_case_sensitive else pattern.lower()
        self.chunks: list[_Chunk] = []

        length = len(self.pattern)
        if not length:
            return

        if length <= MAX_PATTERN_BITS:
            self.chunks.append(_Chunk(self.pattern, 0))
            return

        remainder = length % MAX_PATTERN_BITS
        end = length - remainder
        for start_index in range(0, end, MAX_PATTERN_BITS):
            self.chunks.append(_Chunk(self.pattern[start_index : start_index + MAX_PATTERN_BITS], start_index))

        if remainder:
            # The trailing chunk is right-aligned so it is always full width.
            start_index = length - MAX_PATTERN_BITS
            self.chunks.append(_Chunk(self.pattern[start_index:], start_index))

    def search_in(self, text: str) -> MatchResult:
        options = self.options
        if not options.is_case_sensitive:
            text = text.lower()

        if self.pattern == text:
            indices: tuple[Range, ...] = ((0, len(text) - 1),) if options.include_matches else ()
            return MatchResult(is_match=True, score=0.0, indices=indices)

        if not self.chunks:
            return NO_MATCH

        all_indices: list[Range] = []
        total_score = 0.0
        has_matches = False

        for chunk in self.chunks:
            result = bitap_search(
                text,
                chunk.pattern,
                chunk.alphabet,
                location=options.location + chunk.start_index,
                distance=options.distance,
                threshold=options.threshold,
                find_all_matches=options.find_all_matches,
                min_match_char_length=options.min_match_char_length,
                include_matches=options.include_matches,
                ignore_location=options.ignore_location,
            )
            if result.is_match:
                has_matches = True
                all_indices.extend(result.indices)
            total_score += result.score

        if not has_matches:
            return MatchResult(is_match=False, score=1.0)

        return MatchResult(
            is_match=True,
            score=total_score / len(self.chunks),
            indices=tuple(all_indices) if options.include_matches else (),
        )
