# helperbars/core/amount.py
"""Fixed-point currency amounts for the toAmount helper."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from helperbars.core.coercion import to_string
from helperbars.exceptions import CoercionError

CENT = Decimal("0.01")


class Amount:
    """A currency amount held as a whole number of cents."""

    __slots__ = ("_cents",)

    def __init__(self, cents: int = 0):
        self._cents = int(cents)

    @classmethod
    def parse(cls, text: str) -> "Amount":
        """Parse decimal text; sub-cent digits round half up."""
        try:
            value = Decimal(text.strip())
        except InvalidOperation:
            raise CoercionError(f'invalid amount "{text}"') from None
        if not value.is_finite():
            raise CoercionError(f'invalid amount "{text}"')
        return cls(int((value.quantize(CENT, rounding=ROUND_HALF_UP) * 100)))

    @property
    def cents(self) -> int:
        return self._cents

    @property
    def value(self) -> Decimal:
        return Decimal(self._cents) / 100

    @property
    def to_string(self) -> str:
        return str(self.value.quantize(CENT))

    @property
    def dollars(self) -> str:
        sign = "-" if self._cents < 0 else ""
        return f"{sign}{abs(self._cents) // 100}"

    def __str__(self) -> str:
        return self.to_string

    def __repr__(self) -> str:
        return f"Amount({self.to_string})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Amount):
            return self._cents == other._cents
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._cents)


def to_amount(value: Any) -> Amount:
    # floats pass through two-decimal text first, so 23.45435 -> "23.45".
    return Amount.parse(to_string(value))
