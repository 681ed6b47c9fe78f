"""Extended search: a compact, unix-like query syntax.

Whitespace separates AND-ed terms and a single pipe separates OR groups:

| Token       | Match type                 | Description                            |
| ----------- | -------------------------- | -------------------------------------- |
| `jscript`   | fuzzy-match                | Items that fuzzy match `jscript`       |
| `=scheme`   | exact-match                | Items that are `scheme`                |
| `'python`   | include-match              | Items that include `python`            |
| `!ruby`     | inverse-exact-match        | Items that do not include `ruby`       |
| `^java`     | prefix-exact-match         | Items that start with `java`           |
| `!^earlang` | inverse-prefix-exact-match | Items that do not start with `earlang` |
| `.js$`      | suffix-exact-match         | Items that end with `.js`              |
| `!.go$`     | inverse-suffix-exact-match | Items that do not end with `.go`       |

``^core go$ | rb$ | py$`` matches entries that start with ``core`` and end
with either ``go``, ``rb`` or ``py``. Double quotes keep a term containing
spaces together: ``="hello world"``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import re
from typing import ClassVar

from fuzzydex.config import SearchOptions
from fuzzydex.search.bitap import BitapSearch
from fuzzydex.search.models import MatchResult, Range


class BaseMatch(ABC):
    """A single token matcher."""

    type: ClassVar[str]
    multi_regex: ClassVar[re.Pattern[str]]
    single_regex: ClassVar[re.Pattern[str]]

    def __init__(self, pattern: str, options: SearchOptions | None = None) -> None:
        self.pattern = pattern

    @classmethod
    def is_multi_match(cls, token: str) -> str | None:
        return _get_match(token, cls.multi_regex)

    @classmethod
    def is_single_match(cls, token: str) -> str | None:
        return _get_match(token, cls.single_regex)

    @abstractmethod
    def search(self, text: str) -> MatchResult:
        """Match ``text`` against this token."""


def _get_match(token: str, regex: re.Pattern[str]) -> str | None:
    match = regex.fullmatch(token)
    if match is None:
        return None
    # An empty capture counts as no match so the next matcher gets a chance.
    return match.group(1) or None


def _result(is_match: bool, indices: tuple[Range, ...]) -> MatchResult:
    return MatchResult(is_match=is_match, score=0.0 if is_match else 1.0, indices=indices)


class ExactMatch(BaseMatch):
    """Token: =scheme"""

    type = "exact"
    multi_regex = re.compile(r'="(.*)"')
    single_regex = re.compile(r"=(.*)")

    def search(self, text: str) -> MatchResult:
        return _result(text == self.pattern, ((0, len(self.pattern) - 1),))


class InverseExactMatch(BaseMatch):
    """Token: !fire"""

    type = "inverse-exact"
    multi_regex = re.compile(r'!"(.*)"')
    single_regex = re.compile(r"!(.*)")

    def search(self, text: str) -> MatchResult:
        return _result(self.pattern not in text, ((0, len(text) - 1),))


class PrefixExactMatch(BaseMatch):
    """Token: ^file"""

    type = "prefix-exact"
    multi_regex = re.compile(r'\^"(.*)"')
    single_regex = re.compile(r"\^(.*)")

    def search(self, text: str) -> MatchResult:
        return _result(text.startswith(self.pattern), ((0, len(self.pattern) - 1),))


class InversePrefixExactMatch(BaseMatch):
    """Token: !^fire"""

    type = "inverse-prefix-exact"
    multi_regex = re.compile(r'!\^"(.*)"')
    single_regex = re.compile(r"!\^(.*)")

    def search(self, text: str) -> MatchResult:
        return _result(not text.startswith(self.pattern), ((0, len(text) - 1),))


class SuffixExactMatch(BaseMatch):
    """Token: .file$"""

    type = "suffix-exact"
    multi_regex = re.compile(r'"(.*)"\$')
    single_regex = re.compile(r"(.*)\$")

    def search(self, text: str) -> MatchResult:
        return _result(
            text.endswith(self.pattern),
            ((len(text) - len(self.pattern), len(text) - 1),),
        )


class InverseSuffixExactMatch(BaseMatch):
    """Token: !.file$"""

    type = "inverse-suffix-exact"
    multi_regex = re.compile(r'!"(.*)"\$')
    single_regex = re.compile(r"!(.*)\$")

    def search(self, text: str) -> MatchResult:
        return _result(not text.endswith(self.pattern), ((0, len(text) - 1),))


class IncludeMatch(BaseMatch):
    """Token: 'file"""

    type = "include"
    multi_regex = re.compile(r"'\"(.*)\"")
    single_regex = re.compile(r"'(.*)")

    def search(self, text: str) -> MatchResult:
        indices: list[Range] = []
        pattern_len = len(self.pattern)

        index = text.find(self.pattern)
        while index > -1:
            location = index + pattern_len
            indices.append((index, location - 1))
            index = text.find(self.pattern, location)

        return _result(bool(indices), tuple(indices))


class FuzzyMatch(BaseMatch):
    """Token: jscript"""

    type = "fuzzy"
    multi_regex = re.compile(r'"(.*)"')
    single_regex = re.compile(r"(.*)")

    def __init__(self, pattern: str, options: SearchOptions | None = None) -> None:
        super().__init__(pattern, options)
        self._bitap_search = BitapSearch(pattern, options)

    def search(self, text: str) -> MatchResult:
        return self._bitap_search.search_in(text)


# Order is important: recognizers are tried first to last and several of
# them accept the same token text.
SEARCHERS: tuple[type[BaseMatch], ...] = (
    ExactMatch,
    IncludeMatch,
    PrefixExactMatch,
    InversePrefixExactMatch,
    InverseSuffixExactMatch,
    SuffixExactMatch,
    InverseExactMatch,
    FuzzyMatch,
)

# Split on spaces that are not inside double quotes.
SPACE_RE = re.compile(r' +(?=(?:[^"]*"[^"]*")*[^"]*$)')
OR_TOKEN = "|"


def _create_matcher(token: str, options: SearchOptions) -> BaseMatch | None:
    for searcher in SEARCHERS:
        pattern = searcher.is_multi_match(token)
        if pattern:
            return searcher(pattern, options)

    for searcher in SEARCHERS:
        pattern = searcher.is_single_match(token)
        if pattern:
            return searcher(pattern, options)

    return None


def parse_query(pattern: str, options: SearchOptions | None = None) -> list[list[BaseMatch]]:
    """Return the query as OR groups of AND-ed matchers.

    ``"^core go$ | rb$ | py$ xy$"`` parses to
    ``[[prefix(core), suffix(go)], [suffix(rb)], [suffix(py), suffix(xy)]]``.
    """
    options = options or SearchOptions()
    groups: list[list[BaseMatch]] = []

    for item in pattern.split(OR_TOKEN):
        tokens = [token for token in SPACE_RE.split(item.strip()) if token and token.strip()]
        matchers = [matcher for matcher in (_create_matcher(token, options) for token in tokens) if matcher]
        groups.append(matchers)

    return groups


class ExtendedSearch:
    """Searcher for the extended query syntax."""

    extended_syntax = True

    def __init__(self, pattern: str, options: SearchOptions | None = None) -> None:
        self.options = options or SearchOptions()
        self.pattern = pattern if self.options.is_case_sensitive else pattern.lower()
        self.query = parse_query(self.pattern, self.options)

    @staticmethod
    def condition(pattern: str, options: SearchOptions) -> bool:
        return options.use_extended_search

    def search_in(self, text: str) -> MatchResult:
        if not self.query:
            return MatchResult(is_match=False, score=1.0)

        include_matches = self.options.include_matches
        text = text if self.options.is_case_sensitive else text.lower()

        for matchers in self.query:
            all_indices: list[Range] = []
            total_score = 0.0
            num_matches = 0

            for matcher in matchers:
                result = matcher.search(text)
                if not result.is_match:
                    num_matches = 0
                    break

                num_matches += 1
                total_score += result.score
                if include_matches:
                    all_indices.extend(result.indices)

            # OR condition, so the first fully matching group wins.
            if num_matches:
                return MatchResult(
                    is_match=True,
                    score=total_score / num_matches,
                    indices=tuple(all_indices) if include_matches else (),
                )

        return MatchResult(is_match=False, score=1.0)
