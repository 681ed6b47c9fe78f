"""In-memory index of searchable field values.

``FuseIndex`` precomputes, for every source record, the string values that
will be matched and their field-length norm. String collections produce one
value per record; object collections produce one entry per key, either a
single value or the flattened list of values found inside arrays.

The index is built once and then maintained incrementally with ``add`` and
``remove_at``. ``to_structure`` / ``parse_index`` round-trip it through a
plain ``{"keys": [...], "records": [...]}`` snapshot.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
import math
import re
from typing import Any

from fuzzydex.errors import IncorrectIndexTypeError
from fuzzydex.search.extraction import GetFn, get_value, is_primitive, to_text
from fuzzydex.search.keys import Key, create_key
from fuzzydex.search.models import FieldEntry, IndexedValue, IndexRecord


logger = logging.getLogger(__name__)

_SPACE = re.compile(r"[^ ]+")


def is_blank(value: str) -> bool:
    return not value.strip()


class FieldNorm:
    """Field-length norm: the shorter the field, the higher the weight.

    ``1 / sqrt(token count)`` rounded to ``mantissa`` decimals and cached per
    token count.
    """

    def __init__(self, mantissa: int = 3) -> None:
        self._factor = 10**mantissa
        self._cache: dict[int, float] = {}

    def get(self, value: str) -> float:
        num_tokens = len(_SPACE.findall(value))
        cached = self._cache.get(num_tokens)
        if cached is not None:
            return cached

        norm = 1 / math.sqrt(num_tokens)
        # Round half up, unlike the builtin round().
        rounded = math.floor(norm * self._factor + 0.5) / self._factor
        self._cache[num_tokens] = rounded
        return rounded

    def clear(self) -> None:
        self._cache.clear()


class FuseIndex:
    """Precomputed per-record field values for a collection."""

    def __init__(self, *, get_fn: GetFn | None = None, normalize: Callable[[str], str] | None = None) -> None:
        self.norm = FieldNorm(3)
        self.get_fn: GetFn = get_fn or get_value
        self.normalize = normalize
        self.is_created = False
        self.docs: Sequence[Any] = []
        self.records: list[IndexRecord] = []
        self.keys: list[Key] = []
        self._keys_map: dict[str, int] = {}

    def set_sources(self, docs: Sequence[Any] = ()) -> None:
        self.docs = docs

    def set_index_records(self, records: Iterable[IndexRecord] = ()) -> None:
        self.records = list(records)

    def set_keys(self, keys: Iterable[Key] = ()) -> None:
        self.keys = list(keys)
        self._keys_map = {key.id: key_index for key_index, key in enumerate(self.keys)}

    def create(self) -> None:
        if self.is_created or not self.docs:
            return

        self.is_created = True

        # The first record decides the mode for the whole collection.
        if isinstance(self.docs[0], str):
            for position, doc in enumerate(self.docs):
                self._add_string(doc, position)
        else:
            for position, doc in enumerate(self.docs):
                self._add_object(doc, position)

        self.norm.clear()
        logger.debug("Built index over %d records (%d keys)", len(self.records), len(self.keys))

    def add(self, doc: Any, position: int | None = None) -> None:
        """Append ``doc`` at ``position`` (defaults to the end of the index)."""
        if position is None:
            position = self.size()

        if isinstance(doc, str):
            self._add_string(doc, position)
        else:
            self._add_object(doc, position)

    def remove_at(self, position: int) -> None:
        """Remove the record at ``position`` and shift later positions down by one."""
        if position < 0:
            raise IndexError(f"Record position must not be negative, got {position}")

        self.records = [record for record in self.records if record.position != position]
        for record in self.records:
            if record.position > position:
                record.position -= 1

    def get_value_for_item_at_key_id(self, fields: Mapping[int, FieldEntry], key_id: str) -> FieldEntry | None:
        key_index = self._keys_map.get(key_id)
        if key_index is None:
            return None
        return fields.get(key_index)

    def size(self) -> int:
        return len(self.records)

    def _prepare(self, value: Any) -> str | None:
        """Stringify and normalize a leaf value; ``None`` when it is not indexable."""
        if not is_primitive(value):
            return None
        text = to_text(value)
        if self.normalize is not None:
            text = self.normalize(text)
        return None if is_blank(text) else text

    def _add_string(self, doc: Any, position: int) -> None:
        text = self._prepare(doc)
        if text is None:
            return

        self.records.append(IndexRecord(position=position, value=text, norm=self.norm.get(text)))

    def _add_object(self, doc: Any, position: int) -> None:
        record = IndexRecord(position=position, fields={})

        for key_index, key in enumerate(self.keys):
            value = self.get_fn(doc, key.path)
            if value is None:
                continue

            if isinstance(value, (list, tuple)):
                record.fields[key_index] = self._flatten(value)
                continue

            text = self._prepare(value)
            if text is not None:
                record.fields[key_index] = IndexedValue(value=text, norm=self.norm.get(text))

        self.records.append(record)

    def _flatten(self, values: Sequence[Any]) -> list[IndexedValue]:
        sub_records: list[IndexedValue] = []
        stack: list[tuple[int, Any]] = [(-1, values)]

        while stack:
            nested_index, value = stack.pop()
            if value is None:
                continue

            if isinstance(value, (list, tuple)):
                # Reversed so elements pop off the stack in array order.
                stack.extend((k, item) for k, item in reversed(list(enumerate(value))))
                continue

            text = self._prepare(value)
            if text is not None:
                sub_records.append(IndexedValue(value=text, norm=self.norm.get(text), nested_index=nested_index))

        return sub_records

    def to_structure(self) -> dict[str, Any]:
        return {
            "keys": [key.to_dict() for key in self.keys],
            "records": [record.to_dict() for record in self.records],
        }


def create_index(
    keys: Iterable[Any],
    docs: Sequence[Any],
    *,
    get_fn: GetFn | None = None,
    normalize: Callable[[str], str] | None = None,
) -> FuseIndex:
    """Build an index over ``docs`` for the given key specs."""
    index = FuseIndex(get_fn=get_fn, normalize=normalize)
    index.set_keys(create_key(key) for key in keys)
    index.set_sources(docs)
    index.create()
    return index


def parse_index(
    data: Mapping[str, Any],
    *,
    get_fn: GetFn | None = None,
    normalize: Callable[[str], str] | None = None,
) -> FuseIndex:
    """Rebuild an index from a ``to_structure`` snapshot without re-extracting values.

    ``get_fn`` and ``normalize`` only apply to records added afterwards; the
    snapshot already holds extracted values.

    Raises:
        IncorrectIndexTypeError: ``data`` does not look like a snapshot.
    """
    if not isinstance(data, Mapping) or "keys" not in data or "records" not in data:
        raise IncorrectIndexTypeError()

    keys = [
        Key.from_dict(key) if isinstance(key, Mapping) and "path" in key else create_key(key)
        for key in data["keys"]
    ]
    records = [
        record if isinstance(record, IndexRecord) else IndexRecord.from_dict(record) for record in data["records"]
    ]

    index = FuseIndex(get_fn=get_fn, normalize=normalize)
    index.set_keys(keys)
    index.set_index_records(records)
    index.is_created = True
    return index
