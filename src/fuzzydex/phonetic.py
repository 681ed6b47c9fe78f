"""Phonetic pre-normalization for Chinese text.

Fuzzy matching a Latin query against Han characters never succeeds, so
values containing Chinese are expanded to ``"<transliteration> <original>"``
before indexing. The transliteration itself (for example a pinyin converter)
is supplied by the caller.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import re


logger = logging.getLogger(__name__)

# Equivalent of \p{Han}.
HAN_REGEX = re.compile(
    r"[\u2E80-\u2E99\u2E9B-\u2EF3\u2F00-\u2FD5\u3005\u3007\u3021-\u3029\u3038-\u303B"
    r"\u3400-\u4DB5\u4E00-\u9FD5\uF900-\uFA6D\uFA70-\uFAD9]"
)


def contains_chinese(text: str | None) -> bool:
    """Return True if ``text`` contains at least one Han character."""
    if not text:
        return False
    return HAN_REGEX.search(text) is not None


class PhoneticNormalizer:
    """Normalizer that prefixes Chinese text with its transliteration."""

    def __init__(self, transliterate: Callable[[str], str]) -> None:
        self._transliterate = transliterate

    def __call__(self, text: str) -> str:
        if not contains_chinese(text):
            return text

        phonetic = self._transliterate(text)
        logger.debug("Transliterated %d characters", len(text))
        return f"{phonetic} {text}"
