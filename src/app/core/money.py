"""Fixed-point money helpers.

Balances and amounts are ``Decimal`` values with two fractional digits.
Floats are refused outright so binary rounding never reaches a balance.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Matches the Numeric(19, 2) columns: 17 integer digits and 2 fractional.
MAX_DIGITS = 19
MAX_INTEGER_DIGITS = MAX_DIGITS - 2


def to_money(value: Decimal | int | str) -> Decimal:
    """Convert a value to a two-place Decimal.

    Raises:
        TypeError: If ``value`` is a float
        ValueError: If ``value`` is not a finite number or does not fit in
            ``MAX_DIGITS`` digits once quantized
    """
    if isinstance(value, float):
        raise TypeError("Monetary values must not be floats")
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError(f"Invalid monetary value: {value!r}")
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid monetary value: {value!r}") from exc
    if amount.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValueError(f"Monetary value out of range: {value!r}")
    return amount
