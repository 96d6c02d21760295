# helperbars/core/templating/helpers/data.py
"""
Helpers over template data: mappings, sequences, JSON and environment values.
"""
import base64
import io
import json
import os
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests
import structlog

from helperbars.core.amount import Amount
from helperbars.core.coercion import JSONNumber, dumps_with_numbers
from helperbars.core.durations import ApproxDuration
from helperbars.core.templating.markup import safe_string
from helperbars.exceptions import CoercionError, TypeMismatchError

log = structlog.get_logger(__name__)

SORT_DIRECTIONS = ("asc", "desc")


def make_dict(*keys_and_values: Any) -> Dict[Any, Any]:
    """Pair up arguments as key, value; a trailing unpaired key is dropped."""
    result: Dict[Any, Any] = {}
    for i in range(1, len(keys_and_values), 2):
        result[keys_and_values[i - 1]] = keys_and_values[i]
    return result


def coalesce(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _as_list(value: Any) -> Optional[List[Any]]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def first(value: Any) -> Any:
    items = _as_list(value)
    if not items:
        return None
    return items[0]


def last(value: Any) -> Any:
    items = _as_list(value)
    if not items:
        return None
    return items[-1]


def _sort_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise TypeMismatchError(f"invalid value type in sortMap: {type(value).__name__}")
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.0f}"
    raise TypeMismatchError(f"invalid value type in sortMap: {type(value).__name__}")


def sort_map(items: List[Mapping[str, Any]], sort_key: str, direction: str) -> List[Mapping[str, Any]]:
    """Stable sort of mappings by the text form of one key."""
    if direction not in SORT_DIRECTIONS:
        raise TypeMismatchError("invalid sort direction for sortMap")
    keyed = [(_sort_text(item.get(sort_key)), item) for item in items]
    keyed.sort(key=lambda pair: pair[0], reverse=direction == "desc")
    return [item for _, item in keyed]


def nil_safe_index(map_like: Any, index: Any) -> Any:
    if isinstance(map_like, Mapping):
        return map_like.get(index)
    return None


def nil_safe_index_chain(map_like: Any, *indices: Any) -> Any:
    carry = map_like
    for index in indices:
        if not isinstance(carry, Mapping):
            return None
        carry = carry.get(index)
    return carry


def ternary(true_value: Any, false_value: Any, condition: Any) -> Any:
    return true_value if condition else false_value


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, ApproxDuration):
        return value.nanoseconds
    if isinstance(value, Amount):
        return value.to_string
    if isinstance(value, Decimal):
        return JSONNumber(str(value))
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@safe_string
def to_json(value: Any) -> str:
    """Compact JSON text; anything that cannot be serialized yields "".

    JSON numbers keep their source text, so ``1E5`` stays ``1E5``.
    """
    try:
        return dumps_with_numbers(value, default=_json_default)
    except (TypeError, ValueError) as e:
        log.debug("to_json_serialization_failed", value_type=type(value).__name__, error=str(e))
        return ""


def parse_json(data: Any) -> Any:
    """Decode JSON from bytes, text, a buffer, a readable stream or an HTTP response."""
    if isinstance(data, JSONNumber):
        raw: Any = str(data)
    elif isinstance(data, (bytes, bytearray, memoryview)):
        raw = bytes(data)
    elif isinstance(data, str):
        raw = data
    elif isinstance(data, io.BytesIO):
        raw = data.getvalue()
    elif isinstance(data, requests.Response):
        raw = data.content
    elif hasattr(data, "read") and callable(data.read):
        raw = data.read()
    else:
        raise TypeMismatchError(f"parseJSON cannot read {type(data).__name__}")
    try:
        return json.loads(raw)
    except ValueError as e:
        raise CoercionError(f"invalid JSON: {e}") from e


def env(key: str) -> str:
    return os.environ.get(key, "")


HELPERS: Dict[str, Callable[..., Any]] = {
    "dict": make_dict,
    "coalesce": coalesce,
    "first": first,
    "last": last,
    "sortMap": sort_map,
    "nilSafeIndex": nil_safe_index,
    "nilSafeIndexChain": nil_safe_index_chain,
    "ternary": ternary,
    "toJSON": to_json,
    "parseJSON": parse_json,
    "env": env,
}
