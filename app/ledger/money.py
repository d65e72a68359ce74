# app/ledger/money.py
"""
Exact two-decimal currency amounts.

A Money value is held as an integer count of minor units (cents), so
addition and subtraction never go through floating point. Values arriving
as Decimal, int or str are rounded half-up to two decimals once, at the
boundary.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering
from typing import Iterable, Union

from app.core.exceptions import ValidationError

CENT = Decimal("0.01")

# single amounts stay far enough below 2**63 cents that sums fit a BIGINT
MAX_CENTS = 10**15

MoneyLike = Union["Money", Decimal, int, str]


@total_ordering
class Money:
    __slots__ = ("_cents",)

    def __init__(self, cents: int = 0):
        if isinstance(cents, bool) or not isinstance(cents, int):
            raise TypeError("Money is built from integer cents; use Money.of() for amounts")
        self._cents = cents

    @classmethod
    def of(cls, value: MoneyLike) -> "Money":
        if isinstance(value, Money):
            return value
        if isinstance(value, float):
            # floats have already lost the exact amount
            raise TypeError("Money does not accept float; pass Decimal or str")
        try:
            amount = Decimal(value) if not isinstance(value, str) else Decimal(value.strip())
            if not amount.is_finite():
                raise InvalidOperation
            cents = int(amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"{value!r} is not a valid amount", details={"value": str(value)})
        if abs(cents) > MAX_CENTS:
            raise ValidationError(
                f"{value!r} exceeds the largest supported amount",
                details={"value": str(value), "max": str(cls(MAX_CENTS))},
            )
        return cls(cents)

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def sum(cls, values: Iterable["Money"]) -> "Money":
        total = 0
        for value in values:
            total += value.cents
        return cls(total)

    @property
    def cents(self) -> int:
        return self._cents

    @property
    def amount(self) -> Decimal:
        return (Decimal(self._cents) / 100).quantize(CENT)

    def is_positive(self) -> bool:
        return self._cents > 0

    def is_negative(self) -> bool:
        return self._cents < 0

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self._cents + other._cents)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self._cents - other._cents)

    def __neg__(self) -> "Money":
        return Money(-self._cents)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._cents == other._cents

    def __lt__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._cents < other._cents

    def __hash__(self) -> int:
        return hash(self._cents)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"

    def __repr__(self) -> str:
        return f"Money('{self}')"
