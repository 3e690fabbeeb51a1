"""Fixed-point money helpers."""

from decimal import ROUND_HALF_UP, Decimal

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Round to two decimal places, half-up.

    Floats (e.g. SUM() results from SQLite) go through str()
    first so binary noise does not leak into the Decimal.
    """
    if value is None or value == "":
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def net_quantity(quantity, weight_deduction=None) -> Decimal:
    """Quantity after weight deduction, floored at zero."""
    net = Decimal(str(quantity)) - Decimal(str(weight_deduction or 0))
    return max(Decimal("0"), net)


def line_amount(quantity, rate, weight_deduction=None) -> Decimal:
    return to_money(net_quantity(quantity, weight_deduction) * Decimal(str(rate)))
