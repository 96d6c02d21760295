# helperbars/core/templating/helpers/timefmt.py
"""
Date and time helpers.

Layouts are reference-date layouts (see helperbars.core.layouts). The
``formatUnix`` family without a zone argument renders in the process's local
zone; prefer the ``TZ`` variants.
"""
import time
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from helperbars.core.coercion import JSONNumber, OnInvalid, to_int64
from helperbars.core.layouts import format_time as format_layout
from helperbars.core.layouts import parse_any, parse_time
from helperbars.exceptions import CoercionError, TypeMismatchError

NANOS_PER_SECOND = 1_000_000_000


def _load_zone(name: str) -> tzinfo:
    if name in ("", "UTC"):
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise CoercionError(f"unknown time zone {name}") from e


def _from_unix(seconds: int, nanoseconds: int = 0, tz: Optional[tzinfo] = None) -> datetime:
    moment = datetime.fromtimestamp(0, tz=timezone.utc) + timedelta(seconds=seconds, microseconds=nanoseconds // 1000)
    if tz is None:
        return moment.astimezone()
    return moment.astimezone(tz)


def _epoch_seconds(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeMismatchError("invalid type for epoch seconds: bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, (str, JSONNumber)):
        return to_int64(value, OnInvalid.RAISE, label="epoch seconds")
    raise TypeMismatchError(f"invalid type for epoch seconds: {type(value).__name__}")


def format_time(source_layout: str, target_layout: str, text: str) -> str:
    return format_layout(parse_time(text, source_layout), target_layout)


def format_unix(target_layout: str, value: Any) -> str:
    if isinstance(value, datetime):
        return format_layout(value, target_layout)
    return format_layout(_from_unix(_epoch_seconds(value)), target_layout)


def format_unix_tz(target_layout: str, zone: str, value: Any) -> str:
    tz = _load_zone(zone)
    if isinstance(value, datetime):
        return format_layout(value.astimezone(tz), target_layout)
    return format_layout(_from_unix(_epoch_seconds(value), tz=tz), target_layout)


def _format_full(target_layout: str, seconds: Any, nanoseconds: Any, tz: Optional[tzinfo]) -> str:
    # nanoseconds outside [0, 1e9) carry into the seconds.
    carry, nanos = divmod(to_int64(nanoseconds, label="nanoseconds"), NANOS_PER_SECOND)
    moment = _from_unix(to_int64(seconds, label="seconds") + carry, nanos, tz)
    return format_layout(moment, target_layout, nanosecond=nanos)


def format_unix_full(target_layout: str, seconds: Any, nanoseconds: Any) -> str:
    return _format_full(target_layout, seconds, nanoseconds, None)


def format_unix_full_tz(target_layout: str, zone: str, seconds: Any, nanoseconds: Any) -> str:
    return _format_full(target_layout, seconds, nanoseconds, _load_zone(zone))


def now(layout: str) -> str:
    return format_layout(datetime.now().astimezone(), layout)


def timestamp() -> int:
    return int(time.time())


def parse_time_any(text: str) -> datetime:
    return parse_any(text)


def maybe_parse_time(text: Any) -> Optional[datetime]:
    if not isinstance(text, str):
        return None
    try:
        return parse_any(text)
    except CoercionError:
        return None


def format_any_time(target_layout: str, text: str) -> str:
    return format_layout(parse_any(text), target_layout)


def maybe_format_any_time(target_layout: str, value: Any) -> Optional[str]:
    if not isinstance(value, str) or value == "":
        return None
    parsed = maybe_parse_time(value)
    if parsed is None:
        return None
    return format_layout(parsed, target_layout)


HELPERS: Dict[str, Callable[..., Any]] = {
    "formatTime": format_time,
    "formatUnix": format_unix,
    "formatUnixTZ": format_unix_tz,
    "formatUnixFull": format_unix_full,
    "formatUnixFullTZ": format_unix_full_tz,
    "now": now,
    "timestamp": timestamp,
    "parseTime": parse_time_any,
    "maybeParseTime": maybe_parse_time,
    "formatAnyTime": format_any_time,
    "maybeFormatAnyTime": maybe_format_any_time,
}
