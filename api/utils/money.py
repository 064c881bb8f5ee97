"""Money utilities for GBP amounts with Decimal-only operations.

- Rates, expense amounts and line-item totals are Decimal, never float
- Always 2 decimal places, ROUND_HALF_UP
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union


# Constants
CENT = Decimal("0.01")


def validate_decimal_amount(amount: Union[Decimal, str, int]) -> Decimal:
    """
    Validate and convert amount to Decimal with 2 decimal places.

    Raises:
        ValueError: If amount is float or invalid
    """
    if isinstance(amount, float):
        raise ValueError(
            f"Float not allowed. Got: {amount}. Use Decimal or string."
        )

    try:
        if isinstance(amount, Decimal):
            dec = amount
        elif isinstance(amount, (str, int)):
            dec = Decimal(amount)
        else:
            raise ValueError(f"Invalid type: {type(amount)}")

        return dec.quantize(CENT, rounding=ROUND_HALF_UP)

    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {amount}") from e


def ensure_decimal(x) -> Decimal:
    """Strict conversion to Decimal without losing precision.

    Floats (hours from clock entries) go through repr() so 7.1 stays 7.1.
    None becomes Decimal("0").
    """
    if x is None:
        return Decimal("0")
    if isinstance(x, Decimal):
        return x
    if isinstance(x, (int, str)):
        return Decimal(str(x))
    if isinstance(x, float):
        return Decimal(repr(x))
    raise TypeError(f"ensure_decimal: unsupported type {type(x)}")


def line_total(quantity, unit_amount) -> Decimal:
    """quantity × unit_amount, rounded to pennies."""
    return (ensure_decimal(quantity) * ensure_decimal(unit_amount)).quantize(CENT, rounding=ROUND_HALF_UP)
