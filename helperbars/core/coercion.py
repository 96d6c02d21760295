# helperbars/core/coercion.py
"""
Numeric coercion for helper arguments.

Template data arrives as native ints and floats, numeric-looking strings, or
JSON numbers whose text was kept verbatim (``JSONNumber``). Every helper that
does arithmetic or comparison converts through the functions here; the
``OnInvalid`` policy decides whether a bad operand becomes zero or an error.
"""
import json
import math
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Set, Union

from helperbars.exceptions import CoercionError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)", re.IGNORECASE)
_JSON_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


class JSONNumber(str):
    """A JSON number kept as its source text until a helper asks for a value."""

    @property
    def float64(self) -> float:
        return float(self)

    @property
    def int64(self) -> int:
        return _parse_int64(str(self))


NumericLike = Union[int, float, str, JSONNumber, Decimal]


class OnInvalid(Enum):
    # what a conversion does with an operand it cannot read.
    ZERO = "zero"
    RAISE = "raise"


def format_float(value: float, min_exponent: int = -4, max_exponent: int = 21, exponent_digits: int = 2) -> str:
    """Shortest text that reads back as ``value``: ``10``, ``2.5``, ``1e+21``.

    Plain notation is used while the decimal exponent lies in
    ``[min_exponent, max_exponent)``, scientific notation outside it.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    shortest = Decimal(repr(float(value))).normalize()
    sign, digits, exponent = shortest.as_tuple()
    point = len(digits) - 1 + exponent
    if shortest.is_zero() or min_exponent <= point < max_exponent:
        return format(shortest, "f")
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(d) for d in digits[1:])
    exponent_sign = "-" if point < 0 else "+"
    return f"{'-' if sign else ''}{mantissa}e{exponent_sign}{abs(point):0{exponent_digits}d}"


class Float64(float):
    """A float result of a helper; prints as ``10`` rather than ``10.0``."""

    def __str__(self) -> str:
        return format_float(self)


def loads_with_numbers(text: Union[str, bytes]) -> Any:
    """json.loads that keeps every number as a JSONNumber."""
    return json.loads(text, parse_float=JSONNumber, parse_int=JSONNumber)


def _encode_json(value: Any, default: Optional[Callable[[Any], Any]], seen: Set[int]) -> str:
    if isinstance(value, JSONNumber):
        if not _JSON_NUMBER_RE.fullmatch(value):
            raise ValueError(f"invalid JSON number literal {str(value)!r}")
        return str(value)
    if value is None or isinstance(value, (str, bool, int)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"unsupported float value {value!r}")
        return format_float(value, min_exponent=-6, exponent_digits=1)
    if isinstance(value, (Mapping, list, tuple)):
        if id(value) in seen:
            raise ValueError("circular reference detected")
        seen.add(id(value))
        try:
            if isinstance(value, Mapping):
                members = []
                for key, item in value.items():
                    if not isinstance(key, str):
                        if key is not None and not isinstance(key, (int, float, bool)):
                            raise TypeError(f"keys must be str, int, float, bool or None, not {type(key).__name__}")
                        key = json.dumps(key)
                    members.append(json.dumps(key, ensure_ascii=False) + ":" + _encode_json(item, default, seen))
                return "{" + ",".join(members) + "}"
            return "[" + ",".join(_encode_json(item, default, seen) for item in value) + "]"
        finally:
            seen.discard(id(value))
    if default is None:
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
    return _encode_json(default(value), default, seen)


def dumps_with_numbers(value: Any, default: Optional[Callable[[Any], Any]] = None) -> str:
    """Compact JSON text in which every JSONNumber is written as its source text.

    Floats use their shortest form and NaN or infinities raise ValueError.
    ``default`` converts objects JSON has no form for, as in ``json.dumps``.
    """
    return _encode_json(value, default, set())


def _parse_int64(text: str, label: str = "value") -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise CoercionError(f'parsing "{text}" in {label}: invalid syntax')
    value = int(text)
    if not INT64_MIN <= value <= INT64_MAX:
        raise CoercionError(f'parsing "{text}" in {label}: value out of range')
    return value


def _is_plain_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def to_float(value: Any, on_invalid: OnInvalid = OnInvalid.RAISE, label: str = "value") -> float:
    """Convert a NumericLike to float.

    Args:
        value: int, float, numeric string, JSONNumber or Decimal.
        on_invalid: ZERO returns 0.0 for unreadable input, RAISE raises CoercionError.
        label: names the operand in error messages.
    """
    try:
        if _is_plain_int(value):
            return float(value)
        if isinstance(value, float):
            return value
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, str):  # includes JSONNumber
            # float() also takes padding, digit separators and non-ASCII digits.
            if not _FLOAT_RE.fullmatch(value):
                raise CoercionError(f'parsing "{value}" in {label}: invalid syntax')
            return float(value)
        raise CoercionError(f"unsupported type {type(value).__name__} found in {label}")
    except CoercionError:
        if on_invalid is OnInvalid.ZERO:
            return 0.0
        raise


def to_int64(value: Any, on_invalid: OnInvalid = OnInvalid.RAISE, label: str = "value") -> int:
    """Convert a NumericLike to a signed 64-bit integer.

    Floats truncate toward zero. Strings and JSON numbers must be plain
    integer literals.
    """
    try:
        if _is_plain_int(value):
            if not INT64_MIN <= value <= INT64_MAX:
                raise CoercionError(f"{value} overflows int64 in {label}")
            return value
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                raise CoercionError(f"cannot convert {value} to int64 in {label}")
            return int(value)
        if isinstance(value, Decimal):
            if value != value.to_integral_value():
                raise CoercionError(f'parsing "{value}" in {label}: invalid syntax')
            return _parse_int64(str(int(value)), label)
        if isinstance(value, str):
            return _parse_int64(str(value), label)
        raise CoercionError(f"unable to convert type {type(value).__name__} to int64 in {label}")
    except (CoercionError, InvalidOperation):
        if on_invalid is OnInvalid.ZERO:
            return 0
        raise


def to_string(value: Any) -> str:
    """Render a NumericLike as text; floats use two decimal places."""
    if _is_plain_int(value):
        return str(value)
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, JSONNumber):
        return str(value)
    if isinstance(value, (str, Decimal)):
        return str(value)
    raise CoercionError(f"unable to convert type {type(value).__name__} to string")
