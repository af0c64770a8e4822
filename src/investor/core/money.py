"""Fixed-point money helpers.

Currency is always ``Decimal`` quantized to cents. Floats are converted
through ``str`` so binary representation error never reaches the ledger.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

MoneyInput = Union[Decimal, int, float, str]


def to_money(value: MoneyInput) -> Decimal:
    """Quantize a value to 2 decimal places (half-up)."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a money amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a money amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Return numerator/denominator * 100 at 2 places, or 0 when the denominator is not positive."""
    if denominator <= 0:
        return ZERO
    return (numerator / denominator * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)

