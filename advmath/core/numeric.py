"""Floating point helpers shared by the algebra engine and the function library."""

from __future__ import annotations

import math
from decimal import Decimal

MAX_DECIMAL_PLACES = 10


def is_whole(value: float) -> bool:
    return math.isfinite(value) and float(value).is_integer()


def decimal_places(value: float) -> int:
    """Number of digits after the decimal point in the shortest repr of ``value``."""
    if not math.isfinite(value):
        return 0
    exponent = Decimal(repr(float(value))).normalize().as_tuple().exponent
    if not isinstance(exponent, int) or exponent >= 0:
        return 0
    return min(-exponent, MAX_DECIMAL_PLACES)


def gcf(a: float, b: float) -> float:
    """Greatest common factor of two whole numbers; 1 when either is not whole."""
    if not (is_whole(a) and is_whole(b)):
        return 1.0
    result = math.gcd(int(a), int(b))
    return float(result) if result else 1.0


def reduce_fraction(numerator: float, denominator: float) -> tuple[float, float]:
    """Reduce ``numerator / denominator`` to lowest terms.

    Both parts are first scaled by a power of ten large enough to make them
    integral, then divided by their GCF. Values needing ``MAX_DECIMAL_PLACES``
    or more digits are left as they are. The denominator of the result is
    always positive.
    """
    if not (math.isfinite(numerator) and math.isfinite(denominator)) or denominator == 0:
        return numerator, denominator
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    places = max(decimal_places(numerator), decimal_places(denominator))
    if places >= MAX_DECIMAL_PLACES:
        return numerator, denominator
    if places:
        scale = 10.0 ** places
        numerator = round(numerator * scale)
        denominator = round(denominator * scale)
    factor = gcf(abs(numerator), abs(denominator))
    return float(numerator / factor), float(denominator / factor)


def safe_pow(base: float, exponent: float) -> float:
    """``base ** exponent`` returning NaN or infinity instead of raising."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def safe_div(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan
    return numerator / denominator


def format_value(value: float) -> str:
    """Render a float the way the parser reads it back."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if is_whole(value) and abs(value) < 1e16:
        return str(int(value))
    text = repr(float(value))
    if "e" in text:
        # the parser reads e as a constant, so write the shortest repr out in full
        text = format(Decimal(text), "f")
    return text
