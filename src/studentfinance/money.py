"""Decimal helpers for money amounts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_money(value: object) -> Decimal:
    """Coerce ints, floats, strings and Decimals into a 2dp Decimal.

    Floats go through ``str`` first so 0.1 becomes Decimal("0.10"), not the
    binary expansion.
    """

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a money amount: {value!r}") from exc
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        raise TypeError(f"Unsupported money type: {type(value).__name__}")
    if not amount.is_finite():
        raise ValueError(f"Not a money amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


__all__ = ["CENT", "ZERO", "to_money"]
