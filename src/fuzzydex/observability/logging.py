"""Structured logging for fuzzydex.

Every record becomes one JSON line. Values passed through ``extra=`` are
kept as top-level fields so that, for example,
``logger.info("indexed", extra={"records": 12})`` can be filtered on
``records`` downstream. Search patterns and record values are user data:
long values are shortened and credential-like fields are masked.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
import logging
from pathlib import Path
import sys
from typing import IO, Any

import orjson


_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _resolve_level(name: str, default: int = logging.INFO) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    REDACT_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    MAX_MESSAGE_LEN = 2000
    MAX_FIELD_LEN = 500

    def __init__(self, *, redact_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redact_keys = frozenset(key.lower() for key in redact_keys) if redact_keys else self.REDACT_KEYS

    def format(self, record: logging.LogRecord) -> str:
        entry = self._base_fields(record)
        entry.update(self._extra_fields(record))
        return orjson.dumps(entry, default=_to_json).decode("utf-8")

    def _base_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _shorten(record.getMessage(), self.MAX_MESSAGE_LEN),
        }

        # fuzzydex.search.index -> index
        _, dot, component = record.name.rpartition(".")
        if dot:
            entry["component"] = component

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return entry

    def _extra_fields(self, record: logging.LogRecord) -> Mapping[str, Any]:
        extras: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            if key.lower() in self.redact_keys:
                extras[key] = "[REDACTED]"
            elif isinstance(value, str):
                extras[key] = _shorten(value, self.MAX_FIELD_LEN)
            else:
                extras[key] = value
        return extras


def _shorten(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _to_json(value: Any) -> Any:
    """orjson fallback for values it cannot serialize natively."""
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value) if isinstance(value, BaseException) else repr(value)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: Mapping[str, str] | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Install a single handler on the root logger.

    Args:
        level: Root level name; unknown names fall back to INFO.
        json_output: Use ``JsonFormatter``; otherwise a plain text line.
        logger_levels: Per-logger level overrides, e.g. ``{"fuzzydex.search": "debug"}``.
        stream: Output stream, stdout by default.

    Returns:
        The installed handler.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))

    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_resolve_level(logger_level))

    return handler
