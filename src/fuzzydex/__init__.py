"""fuzzydex: in-memory fuzzy search over strings and structured records."""

from fuzzydex.config import SearchOptions, Settings
from fuzzydex.engine import VERSION, SearchEngine
from fuzzydex.errors import (
    ExtendedSearchUnavailableError,
    FuzzydexError,
    IncorrectIndexTypeError,
    InvalidKeyError,
    InvalidQueryError,
    PatternTooLongError,
)
from fuzzydex.search.extended import ExtendedSearch
from fuzzydex.search.index import FuseIndex, create_index, parse_index
from fuzzydex.search.models import ResultMatch, SearchResult


__version__ = VERSION

__all__ = [
    "ExtendedSearch",
    "ExtendedSearchUnavailableError",
    "FuseIndex",
    "FuzzydexError",
    "IncorrectIndexTypeError",
    "InvalidKeyError",
    "InvalidQueryError",
    "PatternTooLongError",
    "ResultMatch",
    "SearchEngine",
    "SearchOptions",
    "SearchResult",
    "Settings",
    "__version__",
    "create_index",
    "parse_index",
]
