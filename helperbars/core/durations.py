# helperbars/core/durations.py
"""
Approximate durations with nanosecond resolution and no upper bound.

Accepts compact expressions ("1h30m", "250ms") and spelled-out ones
("1 day", "2 weeks and 3 hours"). Months and years are approximations
(30 and 365 days). Bare numbers are nanoseconds.
"""
import functools
import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Union

from helperbars.core.coercion import JSONNumber
from helperbars.exceptions import CoercionError

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
YEAR = 365 * DAY

_UNITS: Dict[str, int] = {}
for _names, _size in (
    (("ns", "nanosecond", "nanoseconds"), NANOSECOND),
    (("us", "µs", "μs", "microsecond", "microseconds"), MICROSECOND),
    (("ms", "millisecond", "milliseconds"), MILLISECOND),
    (("s", "sec", "secs", "second", "seconds"), SECOND),
    (("m", "min", "mins", "minute", "minutes"), MINUTE),
    (("h", "hr", "hrs", "hour", "hours"), HOUR),
    (("d", "day", "days"), DAY),
    (("w", "wk", "wks", "week", "weeks"), WEEK),
    (("mo", "mon", "month", "months"), MONTH),
    (("y", "yr", "yrs", "year", "years"), YEAR),
):
    for _name in _names:
        _UNITS[_name] = _size

_TERM_RE = re.compile(r"\s*(?:,\s*|and\s+)?(\d+(?:\.\d*)?|\.\d+)\s*([a-zµμ]+)", re.ASCII)
_NUMBER_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def _trimmed_fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10 ** precision)
    if frac == 0:
        return str(whole)
    return f"{whole}.{str(frac).rjust(precision, '0').rstrip('0')}"


def format_duration(nanoseconds: int) -> str:
    """Format like "1h0m0s", "1m30s", "1.5s", "250ms"."""
    if nanoseconds == 0:
        return "0s"
    magnitude = abs(nanoseconds)
    if magnitude < SECOND:
        if magnitude < MICROSECOND:
            text = f"{magnitude}ns"
        elif magnitude < MILLISECOND:
            text = _trimmed_fraction(magnitude, 3) + "µs"
        else:
            text = _trimmed_fraction(magnitude, 6) + "ms"
    else:
        hours, rem = divmod(magnitude, HOUR)
        minutes, rem = divmod(rem, MINUTE)
        text = _trimmed_fraction(rem, 9) + "s"
        if hours:
            text = f"{hours}h{minutes}m{text}"
        elif minutes:
            text = f"{minutes}m{text}"
    return "-" + text if nanoseconds < 0 else text


@functools.total_ordering
class ApproxDuration:
    """A signed span of time in whole nanoseconds."""

    __slots__ = ("_ns",)

    def __init__(self, nanoseconds: int = 0):
        self._ns = int(nanoseconds)

    @property
    def nanoseconds(self) -> int:
        return self._ns

    @property
    def int64(self) -> int:
        return self._ns

    @property
    def seconds(self) -> float:
        return self._ns / SECOND

    @property
    def minutes(self) -> float:
        return self._ns / MINUTE

    @property
    def hours(self) -> float:
        return self._ns / HOUR

    @property
    def pretty(self) -> str:
        return format_duration(self._ns)

    def to_timedelta(self) -> timedelta:
        return timedelta(microseconds=self._ns // MICROSECOND)

    def __int__(self) -> int:
        return self._ns

    def __float__(self) -> float:
        return float(self._ns)

    def __bool__(self) -> bool:
        return self._ns != 0

    def __str__(self) -> str:
        return self.pretty

    def __repr__(self) -> str:
        return f"ApproxDuration({self.pretty!r})"

    def __hash__(self) -> int:
        return hash(self._ns)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ApproxDuration):
            return self._ns == other._ns
        return NotImplemented

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, ApproxDuration):
            return self._ns < other._ns
        return NotImplemented

    def __add__(self, other: Any) -> "ApproxDuration":
        if isinstance(other, ApproxDuration):
            return ApproxDuration(self._ns + other._ns)
        if isinstance(other, int) and not isinstance(other, bool):
            return ApproxDuration(self._ns + other)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other: Any) -> "ApproxDuration":
        if isinstance(other, ApproxDuration):
            return ApproxDuration(self._ns - other._ns)
        if isinstance(other, int) and not isinstance(other, bool):
            return ApproxDuration(self._ns - other)
        return NotImplemented

    def __mul__(self, factor: Any) -> "ApproxDuration":
        if isinstance(factor, (int, float)) and not isinstance(factor, bool):
            return ApproxDuration(int(self._ns * factor))
        return NotImplemented

    __rmul__ = __mul__

    def __neg__(self) -> "ApproxDuration":
        return ApproxDuration(-self._ns)

    def __abs__(self) -> "ApproxDuration":
        return ApproxDuration(abs(self._ns))


def parse_duration(text: str) -> ApproxDuration:
    """Parse a duration expression such as "1h", "90s" or "1 day and 2 hours"."""
    s = text.strip().lower()
    if not s:
        raise CoercionError(f'invalid duration "{text}"')
    sign = 1
    if s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if _NUMBER_RE.fullmatch(s):
        return ApproxDuration(sign * int(Decimal(s)))

    total = Decimal(0)
    pos = 0
    while pos < len(s):
        match = _TERM_RE.match(s, pos)
        if not match:
            raise CoercionError(f'invalid duration "{text}"')
        unit = _UNITS.get(match.group(2))
        if unit is None:
            raise CoercionError(f'unknown unit "{match.group(2)}" in duration "{text}"')
        total += Decimal(match.group(1)) * unit
        pos = match.end()
    return ApproxDuration(sign * int(total))


def to_approx_duration(value: Union[ApproxDuration, timedelta, int, float, str, Decimal]) -> ApproxDuration:
    """Convert a number (nanoseconds), a timedelta, or an expression string."""
    if isinstance(value, ApproxDuration):
        return value
    if isinstance(value, timedelta):
        return ApproxDuration((value // timedelta(microseconds=1)) * MICROSECOND)
    if isinstance(value, bool):
        raise CoercionError("unable to convert bool to duration")
    if isinstance(value, (int, float, Decimal)):
        try:
            return ApproxDuration(int(value))
        except (ValueError, OverflowError, InvalidOperation) as e:
            raise CoercionError(f"invalid duration {value}") from e
    if isinstance(value, JSONNumber):
        return ApproxDuration(int(Decimal(str(value))))
    if isinstance(value, str):
        return parse_duration(value)
    raise CoercionError(f"unable to convert type {type(value).__name__} to duration")
