"""
All balance arithmetic uses exact integers in the smallest currency unit.
Never store floats in monetary state.

Python ints are arbitrary precision, so there is no overflow ceiling here.
Probabilities only meet money in floor_fraction(), which does the
multiplication in exact rational arithmetic.
"""

import math
from fractions import Fraction

from .errors import InvalidAmountError, InvalidProbabilityError

# Type alias for the smallest currency unit (wei, cents, chips...)
Amount = int


def as_amount(value: Amount) -> Amount:
    """
    Validate that a value is an integer amount.

    Raises:
        InvalidAmountError: If value is a float, bool or any non-int
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"Amount must be an integer, got {type(value).__name__}")
    return value


def nonneg(value: Amount) -> Amount:
    """
    Assert that an amount is a non-negative integer.

    Raises:
        InvalidAmountError: If value is not an int or is negative
    """
    as_amount(value)
    if value < 0:
        raise InvalidAmountError(f"Negative amount not allowed: {value}")
    return value


def exact_fraction(x: float | int | str) -> Fraction:
    """
    Exact rational for a probability-like number.

    Floats go through their shortest repr, so 0.6 becomes 3/5 rather than
    the nearest binary double. This keeps (1 * 0.6 - 0.4) equal to 1/5.
    """
    if isinstance(x, bool):
        raise InvalidProbabilityError(f"Expected a number, got {x!r}")
    if isinstance(x, float):
        if not math.isfinite(x):
            raise InvalidProbabilityError(f"Expected a finite number, got {x!r}")
        return Fraction(repr(x))
    if isinstance(x, (int, str, Fraction)):
        return Fraction(x)
    raise InvalidProbabilityError(f"Unsupported type: {type(x).__name__}")


def floor_fraction(amount: Amount, fraction: Fraction | float) -> Amount:
    """
    floor(amount * fraction) without going through floating point.

    Args:
        amount: Non-negative integer amount
        fraction: Fraction of the amount to take

    Returns:
        Integer amount, rounded down
    """
    nonneg(amount)
    if not isinstance(fraction, Fraction):
        fraction = exact_fraction(fraction)
    return math.floor(amount * fraction)


def fmt_amount(amount: Amount, decimals: int = 0, symbol: str = "") -> str:
    """
    Format an amount for display.

    Args:
        amount: Integer amount in the smallest unit
        decimals: Digits of the smallest unit per whole unit (2 for cents, 18 for wei)
        symbol: Optional unit suffix, e.g. "MON"

    Returns:
        String like "1,250" or "12.50 MON". No float conversion is involved.
    """
    as_amount(amount)
    sign = "-" if amount < 0 else ""
    whole, frac = divmod(abs(amount), 10 ** decimals)
    text = f"{sign}{whole:,}"
    if decimals:
        text += "." + str(frac).rjust(decimals, "0")
    return f"{text} {symbol}" if symbol else text


def fmt_fraction(value: Fraction, places: int = 4) -> str:
    """
    Fixed-point text for an exact rational, rounded half to even.

    Works for values of any size; float() would overflow past ~1e308.
    """
    scaled = round(Fraction(value) * 10 ** places)
    sign = "-" if scaled < 0 else ""
    whole, frac = divmod(abs(scaled), 10 ** places)
    if not places:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{str(frac).rjust(places, '0')}"
