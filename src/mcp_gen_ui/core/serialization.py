"""orjson encoding that accepts any JSON-like value.

orjson rejects integers outside the 64-bit range even with ``default=str``.
Such values are legal JSON, so on rejection the payload is re-encoded with
oversized integers replaced by their decimal strings.
"""

from __future__ import annotations

import orjson

_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


def _coerce(value: object) -> object:
    match value:
        case bool():
            return value
        case int() if not _INT_MIN <= value <= _INT_MAX:
            return str(value)
        case dict():
            return {k: _coerce(v) for k, v in value.items()}
        case list() | tuple():
            return [_coerce(v) for v in value]
        case _:
            return value


def to_json(value: object, *, option: int = 0) -> bytes:
    """Encode ``value`` with orjson, stringifying what it cannot represent."""
    try:
        return orjson.dumps(value, option=option, default=str)
    except TypeError:
        pass
    try:
        return orjson.dumps(_coerce(value), option=option, default=str)
    except TypeError:
        # Nesting past orjson's recursion limit
        return orjson.dumps(str(value), option=option)
