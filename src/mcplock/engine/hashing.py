"""
Canonical content hashing.

Canonical JSON: sorted object keys, no whitespace, array order preserved.
The same structure always produces the same hash regardless of the order
its object keys were written in.
"""

from __future__ import annotations

import hashlib
import json
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from mcplock.constants import HASH_ALGORITHM

# Integral floats below this magnitude are emitted without a fractional part
_MAX_PLAIN_INTEGER = 1e21


def hash_value(value: Any) -> str:
    """
    Hash a JSON-shaped value deterministically.

    Args:
        value: Any JSON-shaped value (dict, list, str, number, bool, None).

    Returns:
        "sha256:<hex digest>" of the canonical serialization.

    Example:
        >>> hash_value({"a": 1, "b": 2}) == hash_value({"b": 2, "a": 1})
        True
    """
    canonical = canonicalize(value)
    digest = hashlib.new(HASH_ALGORITHM, canonical.encode("utf-8")).hexdigest()
    return f"{HASH_ALGORITHM}:{digest}"


def canonicalize(value: Any) -> str:
    """
    Serialize a value to canonical JSON text.

    Walks the value with an explicit stack, so nesting depth is bounded by
    memory rather than by the interpreter's recursion limit.
    """
    out: list[str] = []
    stack: list[Any] = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, _Text):
            out.append(item)
        elif isinstance(item, (list, tuple)):
            stack.append(_Text("]"))
            for index in range(len(item) - 1, -1, -1):
                stack.append(item[index])
                if index:
                    stack.append(_Text(","))
            stack.append(_Text("["))
        elif isinstance(item, Mapping):
            stack.append(_Text("}"))
            keys = sorted(item, key=str)
            for index in range(len(keys) - 1, -1, -1):
                key = keys[index]
                stack.append(item[key])
                stack.append(_Text(_quote(str(key)) + ":"))
                if index:
                    stack.append(_Text(","))
            stack.append(_Text("{"))
        else:
            out.append(_scalar(item))
    return "".join(out)


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time string comparison for hash equality checks.

    Unequal lengths are rejected immediately; otherwise every character is
    compared so the running time does not reveal where the strings differ.
    """
    if len(a) != len(b):
        return False
    mismatch = 0
    for x, y in zip(a, b):
        mismatch |= ord(x) ^ ord(y)
    return mismatch == 0


class _Text(str):
    """Output that is already serialized, queued on the canonicalize stack."""


def _scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    return str(value)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _format_float(number: float) -> str:
    """Format a float the way ECMAScript's Number.prototype.toString does."""
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < _MAX_PLAIN_INTEGER:
        return str(int(number))

    # repr gives the shortest round-tripping digits; only the layout differs
    sign, digit_tuple, exponent = Decimal(repr(number)).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    point = exponent + len(digits)

    if len(digits) <= point <= 21:
        body = digits + "0" * (point - len(digits))
    elif 0 < point <= 21:
        body = digits[:point] + "." + digits[point:]
    elif -6 < point <= 0:
        body = "0." + "0" * -point + digits
    else:
        power = point - 1
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        body = f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"
    return "-" + body if sign else body
