"""Error types raised by the search engine.

Every error is raised synchronously by the call that detects the problem
(engine construction, query compilation or search) and is never retried
internally. Each one also subclasses the closest builtin so callers that
only know about ``ValueError``/``TypeError`` keep working.
"""

from __future__ import annotations


MAX_PATTERN_BITS = 32


class FuzzydexError(Exception):
    """Base class for all fuzzydex errors."""


class InvalidKeyError(FuzzydexError, ValueError):
    """Raised when a key specification is malformed."""

    @classmethod
    def missing_property(cls, name: str) -> InvalidKeyError:
        return cls(f"Missing {name} property in key")

    @classmethod
    def invalid_weight(cls, key: object) -> InvalidKeyError:
        return cls(f"Property 'weight' in key '{key}' must be a positive number")


class InvalidQueryError(FuzzydexError, ValueError):
    """Raised when a logical query leaf does not carry a string pattern."""

    @classmethod
    def for_key(cls, key: object) -> InvalidQueryError:
        return cls(f"Invalid value for key {key}")


class PatternTooLongError(FuzzydexError, ValueError):
    """Raised when a bitap chunk exceeds the machine word size."""

    def __init__(self, max_bits: int = MAX_PATTERN_BITS) -> None:
        super().__init__(f"Pattern length exceeds max of {max_bits}.")
        self.max_bits = max_bits


class IncorrectIndexTypeError(FuzzydexError, TypeError):
    """Raised when a pre-built index is not a ``FuseIndex``."""

    def __init__(self) -> None:
        super().__init__("Incorrect 'index' type")


class ExtendedSearchUnavailableError(FuzzydexError, RuntimeError):
    """Raised when extended search is requested but no factory provides it."""

    def __init__(self) -> None:
        super().__init__("Extended search is not available")
