"""Centralized configuration for fuzzydex using Pydantic.

``SearchOptions`` holds the per-engine options; ``Settings`` reads process
wide defaults from ``FUZZYDEX_*`` environment variables (or a ``.env`` file)
and is used by the command line entry point to seed ``SearchOptions``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_THRESHOLD = 0.6
DEFAULT_DISTANCE = 100
DEFAULT_LOCATION = 0
DEFAULT_MIN_MATCH_CHAR_LENGTH = 1

_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}


class SearchOptions(BaseModel):
    """Options recognized by ``SearchEngine`` and the matchers it builds."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    # Basic options
    keys: list[Any] = Field(default_factory=list, description="Key specs: paths or {'name', 'weight'} mappings")
    is_case_sensitive: bool = Field(default=False, description="Compare pattern and text case-sensitively")
    include_score: bool = Field(default=False, description="Include the relevance score in results")
    include_matches: bool = Field(default=False, description="Include matched character ranges in results")
    should_sort: bool = Field(default=True, description="Sort results by score")
    sort_fn: Callable[..., Any] | None = Field(
        default=None, description="Sort key applied to hits; defaults to (score, ref_index)"
    )

    # Match options
    find_all_matches: bool = Field(default=False, description="Keep scanning after a perfect match is found")
    min_match_char_length: int = Field(
        default=DEFAULT_MIN_MATCH_CHAR_LENGTH, ge=1, description="Minimum matched run length"
    )

    # Fuzzy options
    location: int = Field(default=DEFAULT_LOCATION, ge=0, description="Expected position of the pattern")
    threshold: float = Field(
        default=DEFAULT_THRESHOLD, ge=0.0, le=1.0, description="0.0 requires a perfect match, 1.0 matches anything"
    )
    distance: int = Field(default=DEFAULT_DISTANCE, ge=0, description="How far from location a match may stray")

    # Advanced options
    use_extended_search: bool = Field(default=False, description="Enable the extended query grammar")
    get_fn: Callable[..., Any] | None = Field(default=None, description="Custom field extractor (record, path)")
    normalize: Callable[[str], str] | None = Field(
        default=None, description="Normalizer applied to every extracted field value"
    )
    ignore_location: bool = Field(default=False, description="Ignore location and distance when scoring")
    ignore_field_norm: bool = Field(default=False, description="Ignore the field-length norm when ranking")

    @classmethod
    def coerce(cls, options: SearchOptions | Mapping[str, Any] | None) -> SearchOptions:
        """Accept an options instance, a plain mapping or ``None``."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(dict(options))


class Settings(BaseSettings):
    """Environment defaults loaded from ``FUZZYDEX_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="FUZZYDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0.0, le=1.0, description="Default match threshold")
    distance: int = Field(default=DEFAULT_DISTANCE, ge=0, description="Default match distance")
    location: int = Field(default=DEFAULT_LOCATION, ge=0, description="Default expected location")
    min_match_char_length: int = Field(default=DEFAULT_MIN_MATCH_CHAR_LENGTH, ge=1)
    ignore_location: bool = Field(default=False, description="Ignore location by default")
    ignore_field_norm: bool = Field(default=False, description="Ignore field-length norm by default")
    is_case_sensitive: bool = Field(default=False, description="Case-sensitive matching by default")

    # Logging
    log_level: str = Field(default="warning", description="Root logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level {value!r}; allowed levels are {sorted(_LOG_LEVELS)}")
        return normalized

    def search_options(self, **overrides: Any) -> SearchOptions:
        """Build ``SearchOptions`` seeded from these settings."""
        data: dict[str, Any] = {
            "threshold": self.threshold,
            "distance": self.distance,
            "location": self.location,
            "min_match_char_length": self.min_match_char_length,
            "ignore_location": self.ignore_location,
            "ignore_field_norm": self.ignore_field_norm,
            "is_case_sensitive": self.is_case_sensitive,
        }
        data.update(overrides)
        return SearchOptions.model_validate(data)
