"""
Decimal Utilities
meddpicc_scoring/scoring/utils.py

Provides precision-safe decimal math for scoring calculations.
"""

from decimal import Decimal, ROUND_HALF_UP


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(
    value: Decimal,
    min_val: Decimal = Decimal("0"),
    max_val: Decimal = Decimal("100"),
) -> Decimal:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """
    Divide with zero-division protection.

    Returns Decimal("0") when the denominator is zero or negative.
    """
    if denominator <= 0:
        return Decimal("0")
    return numerator / denominator


def round_score(value: Decimal, places: int = 2) -> Decimal:
    """Round a score half-up to a fixed number of places."""
    return value.quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP)
