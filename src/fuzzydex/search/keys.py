"""Weighted key descriptors for structured-record search.

A key spec is either a bare path (``"author.name"`` or ``["author", "name"]``)
or a mapping with ``name`` and an optional positive ``weight``. ``KeyStore``
normalizes the weights so that they always sum to 1.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from fuzzydex.errors import InvalidKeyError


@dataclass(frozen=True, slots=True)
class Key:
    """A single weighted field path."""

    path: tuple[str, ...]
    id: str
    weight: float = 1.0
    src: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": list(self.path),
            "id": self.id,
            "weight": self.weight,
            "src": list(self.src) if isinstance(self.src, tuple) else self.src,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Key:
        path = tuple(str(segment) for segment in data["path"])
        return cls(
            path=path,
            id=data.get("id") or ".".join(path),
            weight=float(data.get("weight", 1.0)),
            src=data.get("src", data.get("id")),
        )


def create_key_path(key: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(key, str):
        return tuple(key.split("."))
    return tuple(str(segment) for segment in key)


def create_key_id(key: str | Sequence[str]) -> str:
    if isinstance(key, str):
        return key
    return ".".join(str(segment) for segment in key)


def _is_path_spec(spec: Any) -> bool:
    return isinstance(spec, str) or (isinstance(spec, Sequence) and not isinstance(spec, (bytes, bytearray)))


def create_key(spec: Any) -> Key:
    """Build a ``Key`` from a user supplied spec (weights are not normalized)."""
    if isinstance(spec, Key):
        return spec

    if _is_path_spec(spec):
        return Key(path=create_key_path(spec), id=create_key_id(spec), weight=1.0, src=spec)

    if not isinstance(spec, Mapping) or "name" not in spec:
        raise InvalidKeyError.missing_property("name")

    name = spec["name"]
    weight = spec.get("weight", 1)
    if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
        raise InvalidKeyError.invalid_weight(name)

    return Key(path=create_key_path(name), id=create_key_id(name), weight=float(weight), src=name)


class KeyStore:
    """Ordered collection of keys with weights normalized to sum to 1."""

    def __init__(self, specs: Iterable[Any] = ()) -> None:
        raw_keys = [create_key(spec) for spec in specs]
        total_weight = sum(key.weight for key in raw_keys)

        self._keys: list[Key] = [replace(key, weight=key.weight / total_weight) for key in raw_keys]
        self._key_map: dict[str, Key] = {key.id: key for key in self._keys}

    def get(self, key_id: str) -> Key | None:
        return self._key_map.get(key_id)

    def keys(self) -> list[Key]:
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def to_list(self) -> list[dict[str, Any]]:
        return [key.to_dict() for key in self._keys]
