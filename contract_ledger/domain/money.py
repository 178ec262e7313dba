"""
Fixed-point money value used for contract costs and active-set totals.

Single currency, never negative, exactly two fractional digits and at most
twelve integer digits, which matches a `NUMERIC(14, 2)` column.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from functools import total_ordering
from typing import Any, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from contract_ledger.domain.errors import InvalidCost

CENT = Decimal("0.01")
INTEGER_DIGITS = 12
_UPPER_BOUND = Decimal(10) ** INTEGER_DIGITS

MoneyLike = Union["Money", Decimal, int, str, float]


@total_ordering
class Money(BaseModel):
    """
    Immutable non-negative amount with scale 2.

    Values with fewer than two fractional digits are normalised (``100`` becomes
    ``100.00``); values that need more are rejected rather than rounded.
    """

    amount: Decimal = Field(..., description="Amount with exactly two fractional digits.")

    model_config = {
        "frozen": True,
    }

    @field_validator("amount")
    @classmethod
    def _validate_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError(f"amount must be a finite number: {value}")
        if value < 0:
            raise ValueError(f"amount must not be negative: {value}")
        if value >= _UPPER_BOUND:
            raise ValueError(f"amount must have at most {INTEGER_DIGITS} integer digits: {value}")
        quantized = value.quantize(CENT)
        if quantized != value:
            raise ValueError(f"amount must have at most 2 decimal places: {value}")
        return quantized

    @classmethod
    def of(cls, value: MoneyLike) -> "Money":
        """Build a Money from a raw value, raising InvalidCost when it breaks an invariant."""
        if isinstance(value, Money):
            return value
        if isinstance(value, bool):
            raise InvalidCost(f"Invalid cost amount: {value!r}")
        try:
            return cls(amount=value)
        except (ValidationError, InvalidOperation) as exc:
            raise InvalidCost(f"Invalid cost amount {value!r}: {_first_error(exc)}") from exc

    @classmethod
    def zero(cls) -> "Money":
        return cls(amount=Decimal("0.00"))

    def __add__(self, other: Any) -> "Money":
        if isinstance(other, Money):
            return Money.of(self.amount + other.amount)
        return NotImplemented

    def __radd__(self, other: Any) -> "Money":
        # Lets the builtin sum() start from int 0.
        if other == 0:
            return self
        return self.__add__(other)

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, Money):
            return self.amount < other.amount
        return NotImplemented

    def __str__(self) -> str:
        return str(self.amount)


def _first_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        if errors:
            return str(errors[0].get("msg", exc))
    return str(exc)


__all__ = ["CENT", "INTEGER_DIGITS", "Money", "MoneyLike"]
