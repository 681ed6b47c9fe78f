"""Search data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict

from fuzzydex.search.keys import Key


Range = tuple[int, int]


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Outcome of matching one pattern against one text.

    ``indices`` holds inclusive ``(start, end)`` character ranges and is only
    populated when matches were requested.
    """

    is_match: bool
    score: float
    indices: tuple[Range, ...] = ()


NO_MATCH = MatchResult(is_match=False, score=1.0)


@dataclass(slots=True)
class IndexedValue:
    """A single indexed string with its field-length norm.

    ``nested_index`` is the element position inside its source array, or
    ``None`` for scalar fields.
    """

    value: str
    norm: float
    nested_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"v": self.value, "n": self.norm}
        if self.nested_index is not None:
            data["i"] = self.nested_index
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexedValue:
        nested_index = data.get("i")
        return cls(
            value=str(data["v"]),
            norm=float(data["n"]),
            nested_index=int(nested_index) if nested_index is not None else None,
        )


FieldEntry = IndexedValue | list[IndexedValue]


@dataclass(slots=True)
class IndexRecord:
    """Precomputed representation of one source record.

    String collections fill ``value``/``norm``; object collections fill
    ``fields``, keyed by key index.
    """

    position: int
    value: str | None = None
    norm: float = 1.0
    fields: dict[int, FieldEntry] | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.fields is None:
            return {"v": self.value, "i": self.position, "n": self.norm}
        encoded: dict[str, Any] = {}
        for key_index, entry in self.fields.items():
            if isinstance(entry, list):
                encoded[str(key_index)] = [sub.to_dict() for sub in entry]
            else:
                encoded[str(key_index)] = entry.to_dict()
        return {"i": self.position, "$": encoded}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IndexRecord:
        position = int(data["i"])
        if "$" not in data:
            return cls(position=position, value=data.get("v"), norm=float(data.get("n", 1.0)))

        fields: dict[int, FieldEntry] = {}
        for key_index, entry in data["$"].items():
            if isinstance(entry, list):
                fields[int(key_index)] = [IndexedValue.from_dict(sub) for sub in entry]
            else:
                fields[int(key_index)] = IndexedValue.from_dict(entry)
        return cls(position=position, fields=fields)


@dataclass(slots=True)
class FieldMatch:
    """A matched field value inside a hit."""

    score: float
    value: str
    norm: float
    indices: tuple[Range, ...] = ()
    key: Key | None = None
    nested_index: int | None = None


@dataclass(slots=True)
class SearchHit:
    """Unformatted search hit; ``score`` is filled in after aggregation."""

    ref_index: int
    item: Any
    matches: list[FieldMatch] = field(default_factory=list)
    score: float = 1.0


class ResultMatch(BaseModel):
    """Matched ranges of a field value in a formatted result."""

    model_config = ConfigDict(frozen=True)

    indices: list[Range]
    value: str
    key: Any = None
    ref_index: int | None = None


class SearchResult(BaseModel):
    """Formatted search result returned by ``SearchEngine.search``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    item: Any
    ref_index: int
    matches: list[ResultMatch] | None = None
    score: float | None = None
