"""
Major/minor currency unit conversion.

Amounts cross the adapter boundary in major units (rupees). Processors
such as Razorpay work in the minor unit (paise, x100).
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

MINOR_UNITS_PER_MAJOR = 100
_CENTS = Decimal("0.01")


def _as_decimal(amount: Number) -> Decimal:
    # str() first so floats like 19.99 keep their printed value
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def to_minor_units(amount: Number) -> int:
    """
    Convert a major-unit amount to the processor's integer minor unit.

    Sub-paise fractions are rounded half-up, so 10.005 becomes 1001.
    """
    minor = (_as_decimal(amount) * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(minor)


def to_major_units(minor: Number) -> Decimal:
    """Convert a processor minor-unit amount back to major units (2 places)."""
    return (_as_decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(_CENTS, rounding=ROUND_HALF_UP)
