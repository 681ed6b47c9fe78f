"""On-disk snapshots of a ``FuseIndex``.

Snapshots hold the ``to_structure`` payload serialized as minified JSON with
orjson. Writes go through a temporary sibling file that replaces the target,
so a crash never leaves a half-written snapshot behind.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any

import orjson

from fuzzydex.errors import FuzzydexError, IncorrectIndexTypeError
from fuzzydex.search.extraction import GetFn
from fuzzydex.search.index import FuseIndex, parse_index


logger = logging.getLogger(__name__)


class SnapshotError(FuzzydexError, ValueError):
    """Raised when a snapshot file is missing or cannot be decoded."""


class IndexSnapshotStore:
    """Persist and restore an index at a fixed path."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, index: FuseIndex) -> Path:
        if not isinstance(index, FuseIndex):
            raise IncorrectIndexTypeError()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._atomic_write_json(self.path, index.to_structure())
        logger.debug("Saved index snapshot with %d records to %s", index.size(), self.path)
        return self.path

    def load(self, get_fn: GetFn | None = None) -> FuseIndex:
        if not self.exists():
            raise SnapshotError(f"Snapshot not found: {self.path}")

        try:
            payload: Any = orjson.loads(self.path.read_bytes())
        except orjson.JSONDecodeError as exc:
            raise SnapshotError(f"Snapshot {self.path} is not valid JSON: {exc}") from exc

        if not isinstance(payload, Mapping):
            raise SnapshotError(f"Snapshot {self.path} must contain a JSON object")

        try:
            index = parse_index(payload, get_fn=get_fn)
        except (IncorrectIndexTypeError, KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Snapshot {self.path} has an invalid layout: {exc}") from exc

        logger.debug("Loaded index snapshot with %d records from %s", index.size(), self.path)
        return index

    @staticmethod
    def _atomic_write_json(path: Path, payload: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp") if path.suffix else path.with_name(path.name + ".tmp")
        tmp_path.write_bytes(orjson.dumps(payload))
        tmp_path.replace(path)
