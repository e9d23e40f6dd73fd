"""String-to-value parsers, one per FieldKind.

Each parser takes the resolved raw string and returns the typed value, or
raises ValueError whose message is the failure reason. The binder attaches
the field name and raw value.
"""

from __future__ import annotations

import functools
import math
import re
import struct
from datetime import timedelta
from typing import Any, Callable

from envbind.models.field import INT_BITS, FieldKind

_INT_RE = re.compile(r"[+-]?[0-9]+")
# Longer digit strings are out of range for any supported width.
_MAX_INT_DIGITS = 20
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?)|nan",
    re.IGNORECASE,
)
# One "<decimal><unit>" segment of a duration. Every group is optional so the
# match always succeeds; emptiness is checked by the caller.
_DURATION_SEGMENT_RE = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")

_TRUE_LITERALS = frozenset({"1", "t", "true"})
_FALSE_LITERALS = frozenset({"0", "f", "false"})

_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_DURATION_UNITS: dict[str, int] = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,  # micro sign
    "μs": _MICROSECOND,  # greek small letter mu
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

# Durations are bounded like a signed 64-bit nanosecond count.
_MAX_DURATION_NS = (1 << 63) - 1
# Digits past this cannot change a nanosecond count; longer whole parts overflow.
_MAX_DURATION_DIGITS = 20


def parse_string(value: str) -> str:
    return value


def parse_int(value: str, bits: int = 64) -> int:
    """Parse a base-10 integer that must fit a signed ``bits``-wide range."""
    if not _INT_RE.fullmatch(value):
        raise ValueError("invalid integer format")
    digits = value.lstrip("+-").lstrip("0")
    if len(digits) > _MAX_INT_DIGITS:
        raise ValueError(f"value out of range for int{bits}")
    result = -int(digits or "0") if value[0] == "-" else int(digits or "0")
    limit = 1 << (bits - 1)
    if not -limit <= result < limit:
        raise ValueError(f"value out of range for int{bits}")
    return result


def parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_LITERALS:
        return True
    if lowered in _FALSE_LITERALS:
        return False
    raise ValueError("invalid boolean format")


def parse_float(value: str, bits: int = 64) -> float:
    """Parse a decimal float, rounding to single precision when ``bits`` is 32."""
    if not _FLOAT_RE.fullmatch(value):
        raise ValueError("invalid float format")
    result = float(value)
    if math.isinf(result) and "inf" not in value.lower():
        raise ValueError(f"value out of range for float{bits}")
    if bits == 32:
        try:
            (result,) = struct.unpack("<f", struct.pack("<f", result))
        except OverflowError:
            raise ValueError("value out of range for float32") from None
    return result


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"1.5h"`` or ``"2h45m"``.

    Accepted units are ns, us (or µs), ms, s, m and h. A bare ``"0"`` needs no
    unit. Precision below one microsecond is truncated toward zero.
    """
    text = value
    negative = False
    if text and text[0] in "+-":
        negative = text[0] == "-"
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("invalid duration format")

    total_ns = 0
    pos = 0
    while pos < len(text):
        match = _DURATION_SEGMENT_RE.match(text, pos)
        whole, frac, unit = match.group(1), match.group(2) or "", match.group(3)
        if not whole and not frac:
            raise ValueError("invalid duration format")
        if not unit:
            raise ValueError("invalid duration format: missing unit")
        scale = _DURATION_UNITS.get(unit)
        if scale is None:
            raise ValueError(f"invalid duration format: unknown unit {unit!r}")
        whole = whole.lstrip("0")
        if len(whole) > _MAX_DURATION_DIGITS:
            raise ValueError("invalid duration format: value out of range")
        frac = frac[:_MAX_DURATION_DIGITS]
        total_ns += int(whole or "0") * scale
        if frac:
            total_ns += int(frac) * scale // 10 ** len(frac)
        if total_ns > _MAX_DURATION_NS + 1:
            raise ValueError("invalid duration format: value out of range")
        pos = match.end()

    if not negative and total_ns > _MAX_DURATION_NS:
        raise ValueError("invalid duration format: value out of range")
    delta = timedelta(microseconds=total_ns // _MICROSECOND)
    return -delta if negative else delta


PARSERS: dict[FieldKind, Callable[[str], Any]] = {
    FieldKind.STRING: parse_string,
    FieldKind.BOOL: parse_bool,
    FieldKind.FLOAT32: functools.partial(parse_float, bits=32),
    FieldKind.FLOAT64: functools.partial(parse_float, bits=64),
    FieldKind.DURATION: parse_duration,
    **{kind: functools.partial(parse_int, bits=bits) for kind, bits in INT_BITS.items()},
}

_unparsed = set(FieldKind) - set(PARSERS)
if _unparsed:
    raise RuntimeError(f"no parser registered for field kinds: {sorted(k.value for k in _unparsed)}")


def coerce(kind: FieldKind, value: str) -> Any:
    """Convert ``value`` to the Python type for ``kind``."""
    return PARSERS[kind](value)
