"""Fixed-point money helpers.

Amounts are persisted as decimal strings and computed with `Decimal`, never
with binary floats. All currencies in use have two minor-unit digits.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Convert a persisted amount (str, int or Decimal) to a Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be binary floats")
    if value is None or value == "":
        return ZERO
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc


def quantize(amount) -> Decimal:
    """Round to the currency's minor unit, half away from zero."""
    return to_decimal(amount).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def line_total(unit_price, quantity: int) -> Decimal:
    return quantize(to_decimal(unit_price) * quantity)


def sum_amounts(amounts) -> Decimal:
    total = ZERO
    for amount in amounts:
        total += to_decimal(amount)
    return quantize(total)


def format_amount(amount) -> str:
    """Serialize an amount for storage, always with two decimal places."""
    return str(quantize(amount))
