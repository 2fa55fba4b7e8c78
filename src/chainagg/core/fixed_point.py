"""18-decimal fixed-point integer arithmetic."""

from decimal import Decimal

DECIMALS = 18
ONE = 10**DECIMALS
SECONDS_PER_YEAR = 60 * 60 * 24 * 365


def tdiv(numerator: int, denominator: int) -> int:
    """
    Integer division truncating toward zero.

    Python's ``//`` floors, which differs for negative operands. All value
    math in the aggregation engine goes through this helper so results match
    the on-chain integer semantics exactly.
    """
    if denominator == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute ``a * b / denominator`` with truncation."""
    return tdiv(a * b, denominator)


def pow10(exponent: int) -> int:
    """Return ``10**exponent`` as an integer scale factor."""
    if exponent < 0:
        raise ValueError(f"Negative scale exponent: {exponent}")
    return 10**exponent


def scale_to_ether(value: int, expo: int) -> int:
    """
    Rescale an integer carrying ``10**expo`` precision to 18 decimals.

    Oracle prices arrive as ``price * 10**expo`` (``expo`` is usually
    negative, e.g. -8 for crypto feeds, -5 for equities).
    """
    shift = DECIMALS + expo
    if shift >= 0:
        return value * pow10(shift)
    return tdiv(value, pow10(-shift))


def to_decimal(value: int, decimals: int = DECIMALS) -> Decimal:
    """Convert a fixed-point integer to a human readable Decimal."""
    return Decimal(value).scaleb(-decimals)
