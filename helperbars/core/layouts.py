# helperbars/core/layouts.py
"""
Time layouts written as the reference date ``Mon Jan 2 15:04:05 MST 2006``.

A layout such as ``"2006-01-02"`` or ``"Mon Jan 2 2006"`` spells each field by
how the reference moment would look. Layouts containing ``%`` are treated as
strftime/strptime patterns instead.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from helperbars.exceptions import CoercionError

LONG_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
SHORT_MONTHS = [m[:3] for m in LONG_MONTHS]
LONG_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
SHORT_DAYS = [d[:3] for d in LONG_DAYS]

LITERAL = "literal"
_ZERO_CHUNKS = {
    "1": "month_zero", "2": "day_zero", "3": "hour12_zero",
    "4": "minute_zero", "5": "second_zero", "6": "year_short",
}
_NUMERIC_ZONES = ("070000", "07:00:00", "0700", "07:00", "07")

# layouts tried, in order, by parse_any after ISO 8601
ANY_LAYOUTS = [
    "Mon, 02 Jan 2006 15:04:05 MST",
    "Mon, 02 Jan 2006 15:04:05 -0700",
    "Monday, 02-Jan-06 15:04:05 MST",
    "Mon Jan _2 15:04:05 2006",
    "Mon Jan _2 15:04:05 MST 2006",
    "Mon Jan 02 15:04:05 -0700 2006",
    "02 Jan 06 15:04 MST",
    "02 Jan 06 15:04 -0700",
    "2006-01-02 15:04:05.999999999 -0700 MST",
    "2006-01-02 15:04:05 -0700",
    "2006/01/02 15:04:05",
    "2006/01/02",
    "01/02/2006 15:04:05",
    "01/02/2006 15:04",
    "1/2/2006",
    "1/2/06",
    "January 2, 2006 15:04:05",
    "January 2, 2006",
    "Jan 2, 2006 15:04:05",
    "Jan 2, 2006",
    "2 January 2006",
    "2 Jan 2006",
    "20060102",
]


def _std_chunk(layout: str, i: int) -> Tuple[Optional[str], int]:
    """Identify the layout element starting at ``i``; (None, 0) for a literal char."""
    rest = layout[i:]
    c = rest[0]
    if c == "J":
        if rest.startswith("January"):
            return "month_long", 7
        if rest.startswith("Jan"):
            return "month_short", 3
    elif c == "M":
        if rest.startswith("Monday"):
            return "weekday_long", 6
        if rest.startswith("Mon"):
            return "weekday_short", 3
        if rest.startswith("MST"):
            return "zone_name", 3
    elif c == "0":
        if rest.startswith("002"):
            return "yday_zero", 3
        if len(rest) > 1 and rest[1] in _ZERO_CHUNKS:
            return _ZERO_CHUNKS[rest[1]], 2
    elif c == "1":
        if rest.startswith("15"):
            return "hour", 2
        return "month", 1
    elif c == "2":
        if rest.startswith("2006"):
            return "year", 4
        return "day", 1
    elif c == "_":
        if rest.startswith("_2"):
            if rest.startswith("_2006"):
                # literal underscore followed by a year
                return None, 0
            return "day_space", 2
        if rest.startswith("__2"):
            return "yday_space", 3
    elif c in "345":
        return {"3": "hour12", "4": "minute", "5": "second"}[c], 1
    elif c == "P" and rest.startswith("PM"):
        return "ampm_upper", 2
    elif c == "p" and rest.startswith("pm"):
        return "ampm_lower", 2
    elif c in "-Z":
        for zone in _NUMERIC_ZONES:
            if rest.startswith(zone, 1):
                return "zone_offset", 1 + len(zone)
    elif c in ".," and len(rest) > 1 and rest[1] in "09":
        digit = rest[1]
        j = 1
        while j < len(rest) and rest[j] == digit:
            j += 1
        if j == len(rest) or not rest[j].isdigit():
            return ("frac_fixed" if digit == "0" else "frac_trim"), j
    return None, 0


def tokenize(layout: str) -> List[Tuple[str, str]]:
    """Split a layout into (kind, text) chunks; literal runs have kind LITERAL."""
    chunks: List[Tuple[str, str]] = []
    literal: List[str] = []
    i = 0
    while i < len(layout):
        kind, width = _std_chunk(layout, i)
        if kind is None:
            literal.append(layout[i])
            i += 1
            continue
        if literal:
            chunks.append((LITERAL, "".join(literal)))
            literal = []
        chunks.append((kind, layout[i:i + width]))
        i += width
    if literal:
        chunks.append((LITERAL, "".join(literal)))
    return chunks


def _format_offset(dt: datetime, pattern: str) -> str:
    offset = dt.utcoffset() or timedelta(0)
    total = int(offset.total_seconds())
    if pattern.startswith("Z") and total == 0:
        return "Z"
    sign = "-" if total < 0 else "+"
    hh, rem = divmod(abs(total), 3600)
    mm, ss = divmod(rem, 60)
    zone = pattern[1:]
    if zone == "07":
        return f"{sign}{hh:02d}"
    if zone == "0700":
        return f"{sign}{hh:02d}{mm:02d}"
    if zone == "07:00":
        return f"{sign}{hh:02d}:{mm:02d}"
    if zone == "070000":
        return f"{sign}{hh:02d}{mm:02d}{ss:02d}"
    return f"{sign}{hh:02d}:{mm:02d}:{ss:02d}"


def _format_chunk(dt: datetime, kind: str, text: str, nanosecond: int) -> str:
    hour12 = dt.hour % 12 or 12
    if kind == LITERAL:
        return text
    if kind == "year":
        return f"{dt.year:04d}"
    if kind == "year_short":
        return f"{dt.year % 100:02d}"
    if kind == "month_long":
        return LONG_MONTHS[dt.month - 1]
    if kind == "month_short":
        return SHORT_MONTHS[dt.month - 1]
    if kind == "month":
        return str(dt.month)
    if kind == "month_zero":
        return f"{dt.month:02d}"
    if kind == "weekday_long":
        return LONG_DAYS[dt.weekday()]
    if kind == "weekday_short":
        return SHORT_DAYS[dt.weekday()]
    if kind == "day":
        return str(dt.day)
    if kind == "day_zero":
        return f"{dt.day:02d}"
    if kind == "day_space":
        return f"{dt.day:2d}"
    if kind == "yday_zero":
        return f"{dt.timetuple().tm_yday:03d}"
    if kind == "yday_space":
        return f"{dt.timetuple().tm_yday:3d}"
    if kind == "hour":
        return f"{dt.hour:02d}"
    if kind == "hour12":
        return str(hour12)
    if kind == "hour12_zero":
        return f"{hour12:02d}"
    if kind == "minute":
        return str(dt.minute)
    if kind == "minute_zero":
        return f"{dt.minute:02d}"
    if kind == "second":
        return str(dt.second)
    if kind == "second_zero":
        return f"{dt.second:02d}"
    if kind == "ampm_upper":
        return "PM" if dt.hour >= 12 else "AM"
    if kind == "ampm_lower":
        return "pm" if dt.hour >= 12 else "am"
    if kind == "zone_name":
        name = dt.tzname() if dt.tzinfo else "UTC"
        if name and name.isalpha():
            return name
        return _format_offset(dt, "-0700")
    if kind == "zone_offset":
        return _format_offset(dt, text)
    digits = f"{nanosecond:09d}"[:len(text) - 1]
    if kind == "frac_trim":
        digits = digits.rstrip("0")
        return text[0] + digits if digits else ""
    return text[0] + digits


def format_time(dt: datetime, layout: str, nanosecond: Optional[int] = None) -> str:
    """Render ``dt`` using a reference-date layout (or a strftime pattern).

    ``nanosecond`` overrides the sub-second part, which a datetime only holds
    to the microsecond.
    """
    if "%" in layout:
        return dt.strftime(layout)
    if nanosecond is None:
        nanosecond = dt.microsecond * 1000
    return "".join(_format_chunk(dt, kind, text, nanosecond) for kind, text in tokenize(layout))


def _alternatives(names: List[str]) -> str:
    return "(" + "|".join(names) + ")"


def _chunk_pattern(kind: str, text: str) -> str:
    if kind == LITERAL:
        return re.escape(text)
    if kind == "zone_offset":
        zone = text[1:]
        numeric = "[+-]" + re.escape(zone).replace("07", r"\d\d").replace("00", r"\d\d")
        return f"(Z|{numeric})" if text.startswith("Z") else f"({numeric})"
    if kind == "frac_fixed":
        return rf"([.,]\d{{{len(text) - 1}}})"
    if kind == "frac_trim":
        return r"((?:[.,]\d+)?)"
    return {
        "year": r"(\d{4})",
        "year_short": r"(\d{2})",
        "month_long": _alternatives(LONG_MONTHS),
        "month_short": _alternatives(SHORT_MONTHS),
        "month": r"(\d{1,2})",
        "month_zero": r"(\d{2})",
        "weekday_long": _alternatives(LONG_DAYS),
        "weekday_short": _alternatives(SHORT_DAYS),
        "day": r"(\d{1,2})",
        "day_zero": r"(\d{2})",
        "day_space": r"( \d|\d{2})",
        "yday_zero": r"(\d{3})",
        "yday_space": r"([ \d]{2}\d)",
        "hour": r"(\d{2})",
        "hour12": r"(\d{1,2})",
        "hour12_zero": r"(\d{2})",
        "minute": r"(\d{1,2})",
        "minute_zero": r"(\d{2})",
        "second": r"(\d{1,2})",
        "second_zero": r"(\d{2})",
        "ampm_upper": r"(AM|PM)",
        "ampm_lower": r"(am|pm)",
        "zone_name": r"([A-Za-z]{1,5}|[+-]\d{4})",
    }[kind]


def _parse_offset(value: str) -> timezone:
    if value == "Z":
        return timezone.utc
    sign = -1 if value[0] == "-" else 1
    digits = value[1:].replace(":", "")
    hh = int(digits[0:2])
    mm = int(digits[2:4] or 0)
    ss = int(digits[4:6] or 0)
    return timezone(sign * timedelta(hours=hh, minutes=mm, seconds=ss))


def parse_time(text: str, layout: str) -> datetime:
    """Parse ``text`` laid out as ``layout``; zone-less results are UTC."""
    if "%" in layout:
        try:
            parsed = datetime.strptime(text, layout)
        except ValueError as e:
            raise CoercionError(f'parsing time "{text}" as "{layout}": {e}') from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    chunks = [c for c in tokenize(layout)]
    pattern = "".join(_chunk_pattern(kind, chunk_text) for kind, chunk_text in chunks)
    match = re.fullmatch(pattern, text, re.ASCII)
    if not match:
        raise CoercionError(f'parsing time "{text}" as "{layout}": cannot parse')

    fields: Dict[str, int] = {"year": 1, "month": 1, "day": 1, "hour": 0, "minute": 0, "second": 0, "microsecond": 0}
    yday: Optional[int] = None
    meridiem: Optional[str] = None
    tz: timezone = timezone.utc
    values = iter(match.groups())
    for kind, _ in chunks:
        if kind == LITERAL:
            continue
        value = next(values)
        if kind == "year":
            fields["year"] = int(value)
        elif kind == "year_short":
            short = int(value)
            fields["year"] = short + (1900 if short >= 69 else 2000)
        elif kind == "month_long":
            fields["month"] = LONG_MONTHS.index(value) + 1
        elif kind == "month_short":
            fields["month"] = SHORT_MONTHS.index(value) + 1
        elif kind in ("month", "month_zero"):
            fields["month"] = int(value)
        elif kind in ("day", "day_zero", "day_space"):
            fields["day"] = int(value)
        elif kind in ("yday_zero", "yday_space"):
            yday = int(value)
        elif kind in ("hour", "hour12", "hour12_zero"):
            fields["hour"] = int(value)
        elif kind in ("minute", "minute_zero"):
            fields["minute"] = int(value)
        elif kind in ("second", "second_zero"):
            fields["second"] = int(value)
        elif kind in ("ampm_upper", "ampm_lower"):
            meridiem = value.upper()
        elif kind in ("frac_fixed", "frac_trim"):
            if value:
                fields["microsecond"] = int((value[1:] + "000000")[:6])
        elif kind == "zone_offset":
            tz = _parse_offset(value)
        elif kind == "zone_name" and value[0] in "+-":
            tz = _parse_offset(value)

    if meridiem == "PM" and fields["hour"] < 12:
        fields["hour"] += 12
    elif meridiem == "AM" and fields["hour"] == 12:
        fields["hour"] = 0
    try:
        if yday is not None:
            base = datetime(fields["year"], 1, 1, tzinfo=tz) + timedelta(days=yday - 1)
            fields["month"], fields["day"] = base.month, base.day
        return datetime(tzinfo=tz, **fields)
    except ValueError as e:
        raise CoercionError(f'parsing time "{text}" as "{layout}": {e}') from e


def parse_any(text: str) -> datetime:
    """Parse a timestamp in ISO 8601, epoch seconds, or any layout in ANY_LAYOUTS."""
    candidate = text.strip()
    if not candidate:
        raise CoercionError("could not parse empty time string")
    if candidate.isascii() and candidate.isdigit() and len(candidate) >= 9:
        return datetime.fromtimestamp(int(candidate), tz=timezone.utc)
    iso = candidate[:-1] + "+00:00" if candidate.endswith(("Z", "z")) else candidate
    try:
        parsed = datetime.fromisoformat(iso)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass
    for layout in ANY_LAYOUTS:
        try:
            return parse_time(candidate, layout)
        except CoercionError:
            continue
    raise CoercionError(f'could not find a layout for "{text}"')
