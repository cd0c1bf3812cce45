# src/showback/domain/money.py
"""
Money - Exact Decimal Monetary Values

All charge arithmetic goes through this type instead of floats so that
costs never drift by fractions of a cent. Amounts are kept exact, so
per-unit prices below a cent survive; `rounded()` rounds half-even to
the currency's minor unit.

Files that USE this module:
- showback.domain.models (Rate components and Charge costs)
- showback.domain.rating (cost accumulation)
- showback.domain.pool (sums and resets)
- showback.adapters.formatting.formatter (display)

Files that this module USES:
- showback.domain.errors (CurrencyMismatchError)
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

from showback.domain.errors import CurrencyMismatchError

DEFAULT_CURRENCY = "USD"

# Minor-unit exponent per currency; anything not listed uses cents
_MINOR_UNITS = {
    "JPY": 0,
    "KRW": 0,
    "BHD": 3,
    "KWD": 3,
}

Amount = Union["Money", Decimal, int, float, str]


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr and avoids binary noise
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True, eq=False)
class Money:
    """
    Monetary value in a single currency.

    Attributes:
        amount: Exact Decimal amount in major units
        currency: ISO 4217 currency code
    """
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        object.__setattr__(self, "amount", _to_decimal(self.amount))

    def rounded(self) -> Money:
        """Amount rounded half-even to the currency's minor unit."""
        exponent = _MINOR_UNITS.get(self.currency, 2)
        quantum = Decimal(1).scaleb(-exponent)
        return Money(self.amount.quantize(quantum, rounding=ROUND_HALF_EVEN), self.currency)

    @classmethod
    def of(cls, value: Amount, currency: str = DEFAULT_CURRENCY) -> Money:
        """Build a Money from a number, a numeric string or another Money."""
        if isinstance(value, Money):
            return value
        return cls(_to_decimal(value), currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(Decimal(0), currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def _check_currency(self, other: Money) -> None:
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"Can't combine {self.currency} with {other.currency}"
            )

    def __add__(self, other):
        if isinstance(other, Money):
            self._check_currency(other)
            return Money(self.amount + other.amount, self.currency)
        if isinstance(other, (int, Decimal)):
            return Money(self.amount + other, self.currency)
        return NotImplemented

    __radd__ = __add__

    def __eq__(self, other) -> bool:
        if isinstance(other, Money):
            return self.amount == other.amount and self.currency == other.currency
        if isinstance(other, (int, Decimal)):
            return self.amount == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other) -> bool:
        if isinstance(other, Money):
            self._check_currency(other)
            return self.amount < other.amount
        if isinstance(other, (int, Decimal)):
            return self.amount < other
        return NotImplemented

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
