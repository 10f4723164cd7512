"""Typing, serialisation, ordering and shape checks for JSON values.

JSON values are plain Python objects: None, bool, int, float, str, lists
(or tuples) of values, and dicts with string keys.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from typing import Any


class JsonType(enum.IntEnum):
    """The kinds of JSON value, in the order used to sort mixed values."""

    NUL = 0
    NUMBER = 1
    BOOL = 2
    STRING = 3
    ARRAY = 4
    OBJECT = 5


class JsonShapeError(ValueError):
    """Raised when a value does not have the expected object shape."""


def type_of(value: Any) -> JsonType:
    """The JSON type of ``value``; TypeError for anything that is not JSON."""
    if value is None:
        return JsonType.NUL
    if isinstance(value, bool):
        return JsonType.BOOL
    if isinstance(value, (int, float)):
        return JsonType.NUMBER
    if isinstance(value, str):
        return JsonType.STRING
    if isinstance(value, (list, tuple)):
        return JsonType.ARRAY
    if isinstance(value, dict):
        return JsonType.OBJECT
    raise TypeError(f"not a JSON value: {type(value).__name__}")


_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _escape_char(ch: str) -> str:
    escaped = _ESCAPES.get(ch)
    if escaped is not None:
        return escaped
    if ord(ch) <= 0x1F:
        return f"\\u{ord(ch):04x}"
    return ch


def _dump_string(value: str) -> str:
    return '"' + "".join(_escape_char(ch) for ch in value) + '"'


def _key_bytes(key: str) -> bytes:
    return key.encode("utf-8", "surrogatepass")


def _sorted_items(obj: Mapping[str, Any]) -> list[tuple[str, Any]]:
    for key in obj:
        if not isinstance(key, str):
            raise TypeError(f"JSON object keys must be strings, got {type(key).__name__}")
    return sorted(obj.items(), key=lambda kv: _key_bytes(kv[0]))


def _dump_parts(value: Any, out: list[str]) -> None:
    kind = type_of(value)
    if kind is JsonType.NUL:
        out.append("null")
    elif kind is JsonType.BOOL:
        out.append("true" if value else "false")
    elif kind is JsonType.NUMBER:
        if isinstance(value, int):
            out.append(str(value))
        elif math.isfinite(value):
            out.append(format(value, ".17g"))
        else:
            out.append("null")
    elif kind is JsonType.STRING:
        out.append(_dump_string(value))
    elif kind is JsonType.ARRAY:
        out.append("[")
        for n, item in enumerate(value):
            if n:
                out.append(", ")
            _dump_parts(item, out)
        out.append("]")
    else:
        out.append("{")
        for n, (key, item) in enumerate(_sorted_items(value)):
            if n:
                out.append(", ")
            out.append(_dump_string(key))
            out.append(": ")
            _dump_parts(item, out)
        out.append("}")


def dump(value: Any) -> str:
    """Serialise ``value`` to JSON text.

    Object keys come out in byte order, separators are ", " and ": ",
    floats use 17 significant digits and non-finite numbers become null.
    """
    out: list[str] = []
    _dump_parts(value, out)
    return "".join(out)


def sort_key(value: Any) -> tuple:
    """A key that orders JSON values: first by type, then by content.

    Two values are equal as JSON exactly when their keys are equal.
    """
    kind = type_of(value)
    if kind is JsonType.NUL:
        return (kind.value,)
    if kind is JsonType.BOOL:
        return (kind.value, bool(value))
    if kind is JsonType.NUMBER:
        return (kind.value, value)
    if kind is JsonType.STRING:
        return (kind.value, _key_bytes(value))
    if kind is JsonType.ARRAY:
        return (kind.value, tuple(sort_key(item) for item in value))
    return (
        kind.value,
        tuple((_key_bytes(k), sort_key(v)) for k, v in _sorted_items(value)),
    )


def check_shape(
    value: Any, shape: Mapping[str, JsonType] | Iterable[tuple[str, JsonType]]
) -> None:
    """Check that ``value`` is an object whose fields have the given types.

    A missing field counts as null. Raises JsonShapeError on a mismatch.
    """
    if type_of(value) is not JsonType.OBJECT:
        raise JsonShapeError("expected JSON object, got " + dump(value))
    items = shape.items() if isinstance(shape, Mapping) else shape
    for key, expected in items:
        if type_of(value.get(key)) is not expected:
            raise JsonShapeError(f"bad type for {key} in {dump(value)}")