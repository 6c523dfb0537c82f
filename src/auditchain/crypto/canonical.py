"""Deterministic JSON serialization for hash preimages.

A hash is only reproducible if the bytes fed to it are. canonical_json
produces the same compact JSON text that JavaScript's JSON.stringify
produces for the same value, so chains written by a browser client and by
this package hash identically:

- Mapping keys keep insertion order. Field order is part of the hash
  contract, so it is never sorted. The one exception is JavaScript's own:
  array-index keys ("0", "2", "10", up to 2**32 - 2, no leading zeros)
  come first in ascending numeric order, then the other keys.
- Ints outside the IEEE-754 safe range (|n| > 2**53 - 1) are written as
  the double a JavaScript Number would round them to, so
  2**64 becomes "18446744073709552000".
- Floats follow the ECMAScript Number-to-String rules rather than
  Python's repr: 1.0 becomes "1", 1e-07 becomes "1e-7", and repr's switch
  to exponent notation at 1e16 moves to 1e21.
- Non-ASCII text is emitted verbatim and hashed as UTF-8. Lone surrogates
  are escaped as \\udXXX.

Values with no JSON form (NaN, infinities, sets, arbitrary objects,
non-string keys) raise SerializationError instead of being coerced.
"""
from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from auditchain.domain.types import format_timestamp
from auditchain.errors import SerializationError

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")
_ARRAY_INDEX = re.compile(r"(?:0|[1-9][0-9]*)\Z")
_MAX_ARRAY_INDEX = 2**32 - 2
_MAX_SAFE_INT = 2**53 - 1


def _array_index(key: str) -> int | None:
    if _ARRAY_INDEX.match(key) and int(key) <= _MAX_ARRAY_INDEX:
        return int(key)
    return None


def _ordered_items(value: Mapping) -> list[tuple[Any, Any]]:
    """Items in JavaScript property order: array indices first, ascending."""
    indexed: list[tuple[int, tuple[Any, Any]]] = []
    named: list[tuple[Any, Any]] = []
    for key, item in value.items():
        if not isinstance(key, str):
            raise SerializationError(
                f"Mapping keys must be str, got {type(key).__name__}"
            )
        position = _array_index(key)
        if position is None:
            named.append((key, item))
        else:
            indexed.append((position, (key, item)))
    indexed.sort(key=lambda pair: pair[0])
    return [pair for _, pair in indexed] + named


def _js_int(value: int) -> str:
    if -_MAX_SAFE_INT <= value <= _MAX_SAFE_INT:
        return str(value)
    try:
        return js_number(float(value))
    except OverflowError as exc:
        raise SerializationError("Integer too large for a JSON number") from exc


def _escape_surrogate(match: re.Match[str]) -> str:
    return f"\\u{ord(match.group()):04x}"


def js_number(value: float) -> str:
    """Format a float exactly as ECMAScript Number::toString does."""
    if not math.isfinite(value):
        raise SerializationError(f"{value!r} has no JSON representation")
    if value == 0:
        return "0"  # covers -0.0
    sign = "-" if value < 0 else ""

    # repr gives the shortest round-tripping digits; only the layout differs.
    mantissa, _, exp = repr(abs(value)).partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    all_digits = int_part + frac_part
    stripped = all_digits.lstrip("0")
    # value == 0.<digits> * 10**n
    n = len(int_part) + (int(exp) if exp else 0) - (len(all_digits) - len(stripped))
    digits = stripped.rstrip("0")
    k = len(digits)

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * (-n) + digits
    e = n - 1
    exponent = ("+" if e >= 0 else "-") + str(abs(e))
    if k == 1:
        return sign + digits + "e" + exponent
    return sign + digits[0] + "." + digits[1:] + "e" + exponent


def _string(value: str) -> str:
    return _LONE_SURROGATE.sub(
        _escape_surrogate, json.dumps(value, ensure_ascii=False)
    )


def _encode(value: Any, out: list[str]) -> None:
    # bool before int: bool is an int subclass.
    if value is None:
        out.append("null")
    elif value is True:
        out.append("true")
    elif value is False:
        out.append("false")
    elif isinstance(value, Enum):
        _encode(value.value, out)
    elif isinstance(value, str):
        out.append(_string(value))
    elif isinstance(value, int):
        out.append(_js_int(value))
    elif isinstance(value, float):
        out.append(js_number(value))
    elif isinstance(value, Mapping):
        out.append("{")
        first = True
        for key, item in _ordered_items(value):
            if not first:
                out.append(",")
            first = False
            out.append(_string(key))
            out.append(":")
            _encode(item, out)
        out.append("}")
    elif isinstance(value, (list, tuple)):
        out.append("[")
        for i, item in enumerate(value):
            if i:
                out.append(",")
            _encode(item, out)
        out.append("]")
    elif isinstance(value, datetime):
        out.append(_string(format_timestamp(value)))
    elif callable(getattr(value, "to_dict", None)):
        _encode(value.to_dict(), out)
    else:
        raise SerializationError(
            f"Cannot serialize value of type {type(value).__name__}"
        )


def canonical_json(value: Any) -> str:
    """Serialize value to compact, deterministic JSON text."""
    out: list[str] = []
    try:
        _encode(value, out)
    except RecursionError as exc:
        raise SerializationError("Value is nested too deeply or cyclic") from exc
    return "".join(out)


def to_json_value(value: Any) -> Any:
    """Convert value to plain JSON-compatible Python data.

    Used when writing export documents: the result round-trips through
    json.loads back to data that canonicalizes to the same text.
    """
    return json.loads(canonical_json(value))
