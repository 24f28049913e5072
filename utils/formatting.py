"""Helpers for rendering database values into the text payloads returned by tools.

Numbers are printed the way the employee service has always shown them to clients:
integral scores and bonuses without a trailing ``.0``, plain decimal notation from 1e-6
up to 1e21 (``1e-7`` / ``1e+21`` style beyond that), and averages rounded half-up.
"""
from decimal import ROUND_HALF_UP, Decimal
import math
from typing import Any


def format_number(value: Any) -> str:
    """Render ints and floats compactly: 4.0 -> "4", 4.25 -> "4.25", 5e-05 -> "0.00005", None -> ""."""
    if value is None:
        return ""
    if not isinstance(value, float) or not math.isfinite(value):
        return str(value)
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    exponent = int(exponent)
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def format_fixed(value: float, digits: int = 2) -> str:
    """Fixed-point rendering of the exact binary value; ties go to the larger magnitude (4.125 -> "4.13")."""
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
