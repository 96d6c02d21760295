# helperbars/core/templating/helpers/numbers.py
"""
Arithmetic, comparison and numeric-cast helpers.

``multiply`` reads bad operands as zero while ``ge`` raises on them; callers
depend on both behaviors, so each helper passes its own OnInvalid policy.
"""
import ipaddress
import random
from typing import Any, Callable, Dict, Union

from helperbars.core.amount import to_amount
from helperbars.core.coercion import Float64, OnInvalid, to_float, to_int64
from helperbars.core.durations import ApproxDuration, to_approx_duration
from helperbars.exceptions import CoercionError

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def multiply(x: Any, y: Any) -> Float64:
    return Float64(to_float(x, OnInvalid.ZERO) * to_float(y, OnInvalid.ZERO))


def ge(x: Any, y: Any) -> bool:
    x_value = to_float(x, OnInvalid.RAISE, label='x-value of comparison "ge"')
    y_value = to_float(y, OnInvalid.RAISE, label='y-value of comparison "ge"')
    return x_value >= y_value


def add(a: Any, b: Any) -> int:
    return to_int64(a) + to_int64(b)


def cast_int(value: Any) -> int:
    # lenient: durations give nanoseconds, anything unreadable gives 0.
    if isinstance(value, ApproxDuration):
        return value.nanoseconds
    if isinstance(value, str):
        try:
            return int(to_float(value))
        except (CoercionError, OverflowError, ValueError):
            return 0
    return to_int64(value, OnInvalid.ZERO)


def cast_float(value: Any) -> Float64:
    if isinstance(value, ApproxDuration):
        return Float64(value.nanoseconds)
    return Float64(to_float(value, OnInvalid.ZERO))


def atoi(text: Any) -> int:
    return to_int64(text, OnInvalid.ZERO)


def random_float() -> Float64:
    return Float64(random.random())


def random_int(minimum: Any, maximum: Any) -> int:
    return random.randint(to_int64(minimum), to_int64(maximum))


def parse_cidr(cidr: str) -> IPNetwork:
    """Network address for a CIDR string, host bits masked off."""
    if "/" not in cidr:
        raise CoercionError(f"invalid CIDR address: {cidr}")
    try:
        return ipaddress.ip_network(cidr, strict=False)
    except ValueError as e:
        raise CoercionError(f"invalid CIDR address: {cidr}") from e


HELPERS: Dict[str, Callable[..., Any]] = {
    "multiply": multiply,
    "ge": ge,
    "add": add,
    "addInt64": add,
    "int": cast_int,
    "int64": cast_int,
    "float64": cast_float,
    "atoi": atoi,
    "randomFloat64": random_float,
    "randomInt": random_int,
    "toApproxBigDuration": to_approx_duration,
    "toAmount": to_amount,
    "parseCIDR": parse_cidr,
}
