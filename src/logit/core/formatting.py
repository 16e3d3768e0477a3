from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext


def fixed(value: float, places: int) -> str:
    """
    Format value with a fixed number of decimals.
    Rounds half away from zero on the exact binary value, so 0.125 -> "0.13"
    and 1.005 -> "1.00". Non-finite values read "NaN", "Infinity" or "-Infinity".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    exact = Decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(exact.adjusted(), 0) + places + 2
        return str(exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def round_half_up(value: float, places: int) -> float:
    return float(fixed(value, places))


def parse_number(value: object) -> float:
    """Leading-number parse of a grade field; blank or junk reads as 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    end = 0
    for i in range(len(text), 0, -1):
        try:
            Decimal(text[:i])
        except InvalidOperation:
            continue
        end = i
        break
    if end == 0:
        return 0.0
    number = float(text[:end])
    if not math.isfinite(number):
        return 0.0
    return number
