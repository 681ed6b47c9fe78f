"""Field value extraction for structured records.

``get_value`` walks a record along a key path. Mappings and plain objects
are descended one segment at a time; every list or tuple met on the way
forks the walk into each of its elements. Primitive leaves are stringified.

The walk uses an explicit stack so deeply nested records never hit the
recursion limit.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any


FieldValue = str | list[str] | None
GetFn = Callable[[Any, Sequence[str]], Any]


def is_primitive(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _lookup(obj: Any, segment: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(segment)
    if _is_sequence(obj) or is_primitive(obj):
        return None
    return getattr(obj, segment, None)


def get_value(obj: Any, path: str | Sequence[str]) -> FieldValue:
    """Return the string value(s) found at ``path`` inside ``obj``.

    Returns a list when any sequence was crossed (even if it ends up empty),
    a single string otherwise, or ``None`` when nothing was found.
    """
    segments = path.split(".") if isinstance(path, str) else list(path)
    values: list[str] = []
    crossed_sequence = False

    stack: list[tuple[Any, int]] = [(obj, 0)]
    while stack:
        current, index = stack.pop()
        if current is None:
            continue

        if index >= len(segments):
            if is_primitive(current):
                values.append(to_text(current))
            elif _is_sequence(current):
                stack.extend((item, index) for item in reversed(current))
            continue

        value = _lookup(current, segments[index])
        if value is None:
            continue

        if index == len(segments) - 1 and is_primitive(value):
            values.append(to_text(value))
        elif _is_sequence(value):
            crossed_sequence = True
            # Reversed so elements pop off the stack in array order.
            stack.extend((item, index + 1) for item in reversed(value))
        else:
            stack.append((value, index + 1))

    if crossed_sequence:
        return values
    return values[0] if values else None
